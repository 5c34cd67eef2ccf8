"""Pytest configuration and shared fixtures."""

from types import SimpleNamespace
from typing import Any, Callable, Dict
from unittest.mock import AsyncMock, Mock
from uuid import uuid4

import httpx
import pytest
from fastapi.testclient import TestClient

from docintel.core.http_client import ProviderHTTPClient
from docintel.main import app
from docintel.models.extraction import ContentKind, ExtractionRequest
from docintel.services.events import RecordingAuditLogger, RecordingEventDispatcher, RecordingNotifier


@pytest.fixture
def test_client() -> TestClient:
    """Create FastAPI test client.

    The client is not used as a context manager, so the lifespan (and with it
    the database connection) never runs.

    Returns:
        TestClient: FastAPI test client instance
    """
    return TestClient(app)


@pytest.fixture(autouse=True)
def clear_dependency_overrides():
    """Ensure FastAPI dependency overrides are reset between tests."""
    app.dependency_overrides = {}
    yield
    app.dependency_overrides = {}


@pytest.fixture
def mock_session() -> AsyncMock:
    """Async session double. ``add`` is synchronous on a real session."""
    session = AsyncMock()
    session.add = Mock()
    return session


@pytest.fixture
def dispatcher() -> RecordingEventDispatcher:
    return RecordingEventDispatcher()


@pytest.fixture
def audit_logger() -> RecordingAuditLogger:
    return RecordingAuditLogger()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


def make_row(**values: Any) -> SimpleNamespace:
    """ORM row stand-in with a generated id."""
    values.setdefault("id", uuid4())
    return SimpleNamespace(**values)


@pytest.fixture
def row_factory() -> Callable[..., SimpleNamespace]:
    return make_row


@pytest.fixture
def make_http_client() -> Callable[[Callable[[httpx.Request], httpx.Response]], ProviderHTTPClient]:
    """Build a provider client that answers every call with ``handler``.

    Retries are limited to one attempt without delay.
    """

    def factory(handler: Callable[[httpx.Request], httpx.Response]) -> ProviderHTTPClient:
        return ProviderHTTPClient(
            timeout=5.0,
            max_retries=1,
            retry_delay=0,
            transport=httpx.MockTransport(handler),
        )

    return factory


@pytest.fixture
def spreadsheet_request() -> ExtractionRequest:
    """A small waste report exported as TSV."""
    return ExtractionRequest(
        content="Datum\tAdress\tMaterial\tVikt\n2024-01-16\tStorgatan 1\tWellpapp\t185 kg",
        content_kind=ContentKind.SPREADSHEET,
        filename="report_2024-01-31.xlsx",
    )


@pytest.fixture
def items_payload() -> Dict[str, Any]:
    return {
        "items": [
            {
                "date": "2024-01-16",
                "location": "Storgatan 1",
                "material": "Cardboard",
                "weightKg": 185,
                "unit": "Kg",
                "receiver": "Recycling AB",
                "isHazardous": False,
            }
        ]
    }

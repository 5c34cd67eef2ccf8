"""Dependency factories for the FastAPI routes.

Each factory builds a service around the request's database session. Tests
replace them through ``app.dependency_overrides``.
"""

from typing import Annotated

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from docintel.core.database import get_async_session
from docintel.services.events import (
    AuditLogger,
    EventDispatcher,
    LoggingAuditLogger,
    LoggingEventDispatcher,
    LoggingNotifier,
    Notifier,
)
from docintel.services.extraction.config_resolver import ExtractionConfigResolver
from docintel.services.extraction.router import ExtractionRouter
from docintel.services.extraction.usage import UsageTracker
from docintel.services.extraction.user_settings import UserSettingsService
from docintel.services.office.classification import ClassificationService
from docintel.services.office.orchestrator import OfficeDocumentOrchestrator
from docintel.services.office.schema_store import SchemaStoreService
from docintel.services.office.sla import SlaEvaluator
from docintel.services.office.workflow import ReviewWorkflowService

_event_dispatcher = LoggingEventDispatcher()
_audit_logger = LoggingAuditLogger()
_notifier = LoggingNotifier()

SessionDep = Annotated[AsyncSession, Depends(get_async_session)]


async def get_user_id(x_user_id: Annotated[str, Header(alias="X-User-Id", min_length=1)]) -> str:
    """Caller identity from the ``X-User-Id`` header."""
    return x_user_id


def get_event_dispatcher() -> EventDispatcher:
    return _event_dispatcher


def get_audit_logger() -> AuditLogger:
    return _audit_logger


def get_notifier() -> Notifier:
    return _notifier


async def get_config_resolver(db_session: SessionDep) -> ExtractionConfigResolver:
    """Get config resolver instance.

    Args:
        db_session: Database session from dependency injection

    Returns:
        ExtractionConfigResolver: Resolver for models, keys and thresholds
    """
    return ExtractionConfigResolver(db_session)


async def get_usage_tracker(db_session: SessionDep) -> UsageTracker:
    return UsageTracker(db_session)


async def get_extraction_router(
    db_session: SessionDep,
    resolver: Annotated[ExtractionConfigResolver, Depends(get_config_resolver)],
    usage_tracker: Annotated[UsageTracker, Depends(get_usage_tracker)],
) -> ExtractionRouter:
    return ExtractionRouter(db_session, resolver=resolver, usage_tracker=usage_tracker)


async def get_settings_service(db_session: SessionDep) -> UserSettingsService:
    return UserSettingsService(db_session)


async def get_classification_service(db_session: SessionDep) -> ClassificationService:
    return ClassificationService(db_session)


async def get_schema_store(db_session: SessionDep) -> SchemaStoreService:
    return SchemaStoreService(db_session)


async def get_workflow_service(
    db_session: SessionDep,
    dispatcher: Annotated[EventDispatcher, Depends(get_event_dispatcher)],
    audit_logger: Annotated[AuditLogger, Depends(get_audit_logger)],
) -> ReviewWorkflowService:
    return ReviewWorkflowService(db_session, dispatcher=dispatcher, audit_logger=audit_logger)


async def get_sla_evaluator(
    db_session: SessionDep,
    dispatcher: Annotated[EventDispatcher, Depends(get_event_dispatcher)],
    notifier: Annotated[Notifier, Depends(get_notifier)],
) -> SlaEvaluator:
    return SlaEvaluator(db_session, dispatcher=dispatcher, notifier=notifier)


async def get_orchestrator(
    db_session: SessionDep,
    dispatcher: Annotated[EventDispatcher, Depends(get_event_dispatcher)],
    audit_logger: Annotated[AuditLogger, Depends(get_audit_logger)],
    notifier: Annotated[Notifier, Depends(get_notifier)],
) -> OfficeDocumentOrchestrator:
    """Get orchestrator instance.

    Args:
        db_session: Database session shared by every step of the run
        dispatcher: Outbound event dispatcher
        audit_logger: Audit record sink
        notifier: Email sender for SLA breaches

    Returns:
        OfficeDocumentOrchestrator: Orchestrator for one processing run
    """
    return OfficeDocumentOrchestrator(
        db_session,
        dispatcher=dispatcher,
        audit_logger=audit_logger,
        notifier=notifier,
    )

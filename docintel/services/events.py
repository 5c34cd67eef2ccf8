"""Contracts for outbound events, audit records and email.

Delivery lives outside this service. The defaults here only log, and
``RecordingEventDispatcher`` keeps everything in memory for tests and local
runs.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Tuple
from uuid import UUID

from docintel.utils.logging import get_logger

LOGGER = get_logger(__name__)

EVENT_VERSION = 1

DOCUMENT_CLASSIFIED = "document.classified"
DOCUMENT_PROCESSED = "document.processed"
DOCUMENT_APPROVED = "document.approved"
DOCUMENT_REJECTED = "document.rejected"
DOCUMENT_REVIEWED = "document.reviewed"
SLA_WARNING = "sla.warning"
SLA_BREACH = "sla.breach"


@dataclass(frozen=True)
class AuditEntry:
    user_id: str
    document_id: Optional[UUID]
    action: str
    description: str
    metadata: Dict[str, Any] = field(default_factory=dict)


class EventDispatcher(Protocol):
    async def dispatch(self, user_id: str, event: str, payload: Dict[str, Any]) -> None: ...


class AuditLogger(Protocol):
    async def log(self, entry: AuditEntry) -> None: ...


class Notifier(Protocol):
    async def send(self, email: str, subject: str, html: str) -> None: ...


class LoggingEventDispatcher:
    async def dispatch(self, user_id: str, event: str, payload: Dict[str, Any]) -> None:
        LOGGER.info(f"Event dispatched: {event}", extra={"user_id": user_id, "event": event, "payload": payload})


class LoggingAuditLogger:
    async def log(self, entry: AuditEntry) -> None:
        LOGGER.info(
            f"Audit: {entry.action}",
            extra={
                "user_id": entry.user_id,
                "document_id": str(entry.document_id) if entry.document_id else None,
                "description": entry.description,
                "metadata": entry.metadata,
            },
        )


class LoggingNotifier:
    async def send(self, email: str, subject: str, html: str) -> None:
        LOGGER.info(f"Email queued: {subject}", extra={"to": email, "length": len(html)})


class RecordingEventDispatcher:
    """Keeps every dispatched event in order."""

    def __init__(self):
        self.events: List[Tuple[str, str, Dict[str, Any]]] = []

    async def dispatch(self, user_id: str, event: str, payload: Dict[str, Any]) -> None:
        self.events.append((user_id, event, payload))

    def names(self) -> List[str]:
        return [name for _, name, _ in self.events]

    def payloads(self, event: str) -> List[Dict[str, Any]]:
        return [payload for _, name, payload in self.events if name == event]


class RecordingAuditLogger:
    def __init__(self):
        self.entries: List[AuditEntry] = []

    async def log(self, entry: AuditEntry) -> None:
        self.entries.append(entry)


class RecordingNotifier:
    def __init__(self):
        self.sent: List[Tuple[str, str, str]] = []

    async def send(self, email: str, subject: str, html: str) -> None:
        self.sent.append((email, subject, html))

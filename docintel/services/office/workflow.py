"""Review tasks: one mutable task per document plus an append-only event log."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from docintel.core.exceptions import NotFoundError
from docintel.database.models import ReviewTask, ReviewTaskEvent
from docintel.models.office import TERMINAL_REVIEW_STATUSES, ReviewTaskStatus, ReviewTaskSummary
from docintel.repositories.review_repository import ReviewEventRepository, ReviewTaskRepository
from docintel.services.events import (
    DOCUMENT_APPROVED,
    DOCUMENT_REJECTED,
    DOCUMENT_REVIEWED,
    EVENT_VERSION,
    AuditEntry,
    AuditLogger,
    EventDispatcher,
    LoggingAuditLogger,
    LoggingEventDispatcher,
)
from docintel.utils.logging import get_logger

LOGGER = get_logger(__name__)

EVENT_PREFIX = "review."


def event_type_for(status: ReviewTaskStatus) -> str:
    return f"{EVENT_PREFIX}{status.value}"


def review_action_for(status: ReviewTaskStatus) -> str:
    if status == ReviewTaskStatus.APPROVED:
        return DOCUMENT_APPROVED
    if status == ReviewTaskStatus.REJECTED:
        return DOCUMENT_REJECTED
    return DOCUMENT_REVIEWED


def task_summary(task: ReviewTask) -> ReviewTaskSummary:
    return ReviewTaskSummary(
        id=task.id,
        document_id=task.document_id,
        status=ReviewTaskStatus(task.status),
        assigned_to=task.assigned_to,
        due_at=task.due_at,
    )


@dataclass(frozen=True)
class ReviewEventLog:
    """Ordered transition events of one task.

    ``current_status`` folds the log: the last recognised ``review.<status>``
    event wins, and a task without events is ``new``.
    """

    event_types: Tuple[str, ...]

    @classmethod
    def from_events(cls, events: Iterable[ReviewTaskEvent]) -> "ReviewEventLog":
        return cls(tuple(event.event_type for event in events))

    @staticmethod
    def apply(state: ReviewTaskStatus, event_type: str) -> ReviewTaskStatus:
        if not event_type.startswith(EVENT_PREFIX):
            return state
        try:
            return ReviewTaskStatus(event_type[len(EVENT_PREFIX):])
        except ValueError:
            return state

    def current_status(self, initial: ReviewTaskStatus = ReviewTaskStatus.NEW) -> ReviewTaskStatus:
        state = initial
        for event_type in self.event_types:
            state = self.apply(state, event_type)
        return state


class ReviewWorkflowService:
    """Task upserts and transitions.

    Any status may follow any other. Every transition is appended to the
    event log, audited and dispatched.
    """

    def __init__(
        self,
        session: AsyncSession,
        dispatcher: Optional[EventDispatcher] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self.session = session
        self.task_repository = ReviewTaskRepository(session)
        self.event_repository = ReviewEventRepository(session)
        self.dispatcher = dispatcher or LoggingEventDispatcher()
        self.audit_logger = audit_logger or LoggingAuditLogger()

    async def upsert_task(
        self,
        document_id: UUID,
        user_id: str,
        assigned_to: Optional[str] = None,
        due_at: Optional[datetime] = None,
        status: Optional[ReviewTaskStatus] = None,
        notes: Optional[str] = None,
    ) -> ReviewTask:
        """Create the document's task, or update it if it already exists.

        Args:
            document_id: Document the task reviews; one task per document
            user_id: Task owner
            assigned_to: Reviewer; kept as is when None
            due_at: Review deadline; kept as is when None
            status: New status, ``new`` when omitted
            notes: Free text; kept as is when None

        Returns:
            ReviewTask: The created or updated row

        Raises:
            NotFoundError: If the document's task belongs to another user
        """
        status = status or ReviewTaskStatus.NEW
        task = await self.task_repository.get_by_document(document_id)
        if task is not None and task.user_id != user_id:
            raise NotFoundError("Review task for document", document_id)

        if task is None:
            return await self.task_repository.create_task(
                document_id=document_id,
                user_id=user_id,
                assigned_to=assigned_to,
                due_at=due_at,
                status=status.value,
                notes=notes,
            )

        if assigned_to is not None:
            task.assigned_to = assigned_to
        if due_at is not None:
            task.due_at = due_at
        if notes is not None:
            task.notes = notes
        task.status = status.value
        await self.session.flush()

        LOGGER.info(
            "Review task updated",
            extra={"task_id": str(task.id), "document_id": str(document_id), "status": task.status},
        )
        return task

    async def _owned_task(self, task_id: UUID, user_id: str) -> ReviewTask:
        task = await self.task_repository.get_by_id(task_id)
        if task is None or task.user_id != user_id:
            raise NotFoundError("Review task", task_id)
        return task

    async def transition(
        self,
        task_id: UUID,
        user_id: str,
        next_status: ReviewTaskStatus,
        note: Optional[str] = None,
        payload: Optional[Dict[str, Any]] = None,
    ) -> ReviewTask:
        task = await self._owned_task(task_id, user_id)
        previous = task.status

        task.status = next_status.value
        if note:
            task.notes = note
        await self.event_repository.append(task.id, user_id, event_type_for(next_status), payload or {})

        action = review_action_for(next_status)
        await self.audit_logger.log(
            AuditEntry(
                user_id=user_id,
                document_id=task.document_id,
                action=action,
                description=f"Review task moved to {next_status.value}",
                metadata={"taskId": str(task.id), "status": next_status.value, "note": note},
            )
        )
        await self.dispatcher.dispatch(
            user_id,
            action,
            {
                "eventVersion": EVENT_VERSION,
                "documentId": str(task.document_id),
                "taskId": str(task.id),
                "status": next_status.value,
                "terminal": next_status in TERMINAL_REVIEW_STATUSES,
            },
        )

        LOGGER.info(
            "Review task transitioned",
            extra={"task_id": str(task.id), "from": previous, "to": next_status.value},
        )
        return task

    async def list_tasks(
        self,
        user_id: str,
        status: Optional[ReviewTaskStatus] = None,
        limit: int = 50,
    ) -> List[ReviewTask]:
        return await self.task_repository.list_for_user(user_id, status.value if status else None, limit)

    async def task_history(self, task_id: UUID, user_id: str) -> List[ReviewTaskEvent]:
        task = await self._owned_task(task_id, user_id)
        return await self.event_repository.list_for_task(task.id)

"""Repositories for review tasks and their append-only event log."""

from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from docintel.database.models import ReviewTask, ReviewTaskEvent
from docintel.repositories.base_repository import BaseRepository
from docintel.utils.logging import get_logger

LOGGER = get_logger(__name__)

MAX_TASK_PAGE = 200


class ReviewTaskRepository(BaseRepository[ReviewTask]):
    def __init__(self, session: AsyncSession):
        super().__init__(session, ReviewTask)

    async def get_by_document(self, document_id: UUID) -> Optional[ReviewTask]:
        return await self.fetch_one(select(ReviewTask).where(ReviewTask.document_id == document_id))

    async def create_task(self, **values: Any) -> ReviewTask:
        task = await self.create(**values)
        LOGGER.info(
            "Review task created",
            extra={"task_id": str(task.id), "document_id": str(task.document_id), "status": task.status},
        )
        return task

    async def list_for_user(self, user_id: str, status: Optional[str] = None, limit: int = 50) -> List[ReviewTask]:
        """List a user's tasks, newest first.

        Args:
            user_id: Task owner
            status: Optional status filter
            limit: Page size, clamped to 1..200

        Returns:
            List[ReviewTask]: Matching tasks
        """
        limit = min(MAX_TASK_PAGE, max(1, limit))
        query = select(ReviewTask).where(ReviewTask.user_id == user_id)
        if status:
            query = query.where(ReviewTask.status == status)
        query = query.order_by(ReviewTask.created_at.desc()).limit(limit)
        return await self.fetch_all(query)


class ReviewEventRepository(BaseRepository[ReviewTaskEvent]):
    """Insert-only transition log."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, ReviewTaskEvent)

    async def append(self, task_id: UUID, user_id: str, event_type: str, payload: Dict[str, Any]) -> ReviewTaskEvent:
        event = ReviewTaskEvent(task_id=task_id, user_id=user_id, event_type=event_type, payload=payload)
        await self.add(event)
        return event

    async def list_for_task(self, task_id: UUID) -> List[ReviewTaskEvent]:
        return await self.fetch_all(
            select(ReviewTaskEvent)
            .where(ReviewTaskEvent.task_id == task_id)
            .order_by(ReviewTaskEvent.created_at.asc())
        )

from typing import Any, Generic, List, Optional, Type, TypeVar
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.engine import Result
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Executable

from docintel.core.exceptions import DatabaseError
from docintel.utils.logging import get_logger

ModelType = TypeVar("ModelType")

LOGGER = get_logger(__name__)


class BaseRepository(Generic[ModelType]):
    """Query and write helpers over one SQLAlchemy model.

    Writes are flushed, not committed: the calling service owns the
    transaction and commits once its unit of work is complete. Driver
    failures surface as ``DatabaseError``.
    """

    def __init__(self, session: AsyncSession, model: Type[ModelType]):
        """Initialize the repository.

        Args:
            session: SQLAlchemy async session shared with the calling service
            model: The SQLAlchemy model class this repository manages
        """
        self.session = session
        self.model = model
        self.logger = LOGGER

    async def execute(self, query: Executable) -> Result:
        try:
            return await self.session.execute(query)
        except SQLAlchemyError as e:
            self.logger.error(f"Query on {self.model.__name__} failed: {e}", exc_info=True)
            raise DatabaseError(f"Failed to query {self.model.__name__}", original_error=e) from e

    async def fetch_one(self, query: Executable) -> Optional[Any]:
        """First column of the single matching row, or None."""
        result = await self.execute(query)
        return result.scalar_one_or_none()

    async def fetch_all(self, query: Executable) -> List[Any]:
        result = await self.execute(query)
        return list(result.scalars().all())

    async def get_by_id(self, id: UUID) -> Optional[ModelType]:
        """Get a record by its ID.

        Args:
            id: The UUID of the record

        Returns:
            The record if found, None otherwise
        """
        return await self.fetch_one(select(self.model).where(self.model.id == id))

    async def flush(self) -> None:
        """Send pending changes on loaded rows to the database."""
        try:
            await self.session.flush()
        except SQLAlchemyError as e:
            self.logger.error(f"Error writing {self.model.__name__}: {e}", exc_info=True)
            raise DatabaseError(f"Failed to write {self.model.__name__}", original_error=e) from e

    async def add(self, instance: ModelType) -> ModelType:
        """Add a new row and flush it so generated ids are available."""
        self.session.add(instance)
        await self.flush()
        return instance

    async def create(self, **values: Any) -> ModelType:
        return await self.add(self.model(**values))

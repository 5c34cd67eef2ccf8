from abc import ABC, abstractmethod
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from docintel.core.exceptions import AppError
from docintel.utils.logging import get_logger

LOGGER = get_logger(__name__)


class BaseService(ABC):
    """Base class for application services.

    ``execute`` validates the input, runs the service and normalises
    unexpected failures into ``AppError``.
    """

    def __init__(self, session: Optional[AsyncSession] = None):
        """Initialize the service.

        Args:
            session: Optional async session the service's repositories share
        """
        self.session = session
        self.logger = LOGGER

    async def execute(self, *args, **kwargs) -> Any:
        """Validate, then run.

        Raises:
            AppError: Domain errors pass through unchanged; anything else is
                logged and wrapped
        """
        try:
            self.validate(*args, **kwargs)
            return await self.run(*args, **kwargs)
        except AppError:
            raise
        except Exception as e:
            self.logger.error(
                f"Service execution failed: {e}",
                exc_info=True,
                extra={"service": self.__class__.__name__},
            )
            raise AppError(f"Service execution failed: {e}", original_error=e) from e

    def validate(self, *args, **kwargs) -> None:
        """Override to reject bad input with ``ValidationError``."""

    @abstractmethod
    async def run(self, *args, **kwargs) -> Any:
        """Core service logic."""

    async def commit(self) -> None:
        if self.session is not None:
            await self.session.commit()

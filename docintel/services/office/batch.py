"""Process many office documents concurrently."""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Iterable, List, Optional, Set
from uuid import UUID

from docintel.core.config import settings
from docintel.models.office import OfficeProcessingOutcome
from docintel.utils.logging import get_logger

LOGGER = get_logger(__name__)


class BatchItemStatus(str, Enum):
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class BatchItem:
    document_id: UUID
    user_id: str
    filename: str
    raw_text: str


@dataclass
class BatchItemResult:
    document_id: UUID
    status: BatchItemStatus
    outcome: Optional[OfficeProcessingOutcome] = None
    error: Optional[str] = None


# Runs one document; normally wraps OfficeDocumentOrchestrator.execute with
# its own session
DocumentPipeline = Callable[[BatchItem], Awaitable[OfficeProcessingOutcome]]


class CancellationRegistry:
    """Cooperative cancellation. Checked before a document starts, never during."""

    def __init__(self):
        self._cancelled: Set[UUID] = set()

    def cancel(self, document_id: UUID) -> None:
        self._cancelled.add(document_id)

    def is_cancelled(self, document_id: UUID) -> bool:
        return document_id in self._cancelled

    def clear(self, document_id: UUID) -> None:
        self._cancelled.discard(document_id)


class BatchProcessor:
    """Runs independent document pipelines with bounded concurrency.

    One document failing does not affect the others. Results keep the input
    order.
    """

    def __init__(self, pipeline: DocumentPipeline, cancellations: Optional[CancellationRegistry] = None):
        self.pipeline = pipeline
        self.cancellations = cancellations or CancellationRegistry()

    async def process(self, items: Iterable[BatchItem], concurrency: Optional[int] = None) -> List[BatchItemResult]:
        limit = max(1, concurrency or settings.office.batch_concurrency)
        semaphore = asyncio.Semaphore(limit)

        async def run_one(item: BatchItem) -> BatchItemResult:
            async with semaphore:
                if self.cancellations.is_cancelled(item.document_id):
                    LOGGER.info("Document cancelled before start", extra={"document_id": str(item.document_id)})
                    return BatchItemResult(item.document_id, BatchItemStatus.CANCELLED)
                try:
                    outcome = await self.pipeline(item)
                except Exception as e:
                    LOGGER.error(
                        "Document failed in batch",
                        exc_info=True,
                        extra={"document_id": str(item.document_id)},
                    )
                    return BatchItemResult(item.document_id, BatchItemStatus.FAILED, error=str(e))
                return BatchItemResult(item.document_id, BatchItemStatus.COMPLETED, outcome=outcome)

        batch = list(items)
        results = await asyncio.gather(*(run_one(item) for item in batch))

        LOGGER.info(
            "Batch finished",
            extra={
                "documents": len(batch),
                "completed": sum(1 for r in results if r.status == BatchItemStatus.COMPLETED),
                "failed": sum(1 for r in results if r.status == BatchItemStatus.FAILED),
                "cancelled": sum(1 for r in results if r.status == BatchItemStatus.CANCELLED),
                "concurrency": limit,
            },
        )
        return list(results)

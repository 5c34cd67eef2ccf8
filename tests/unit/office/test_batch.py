"""Tests for concurrent batch processing."""

import asyncio
from typing import List
from unittest.mock import Mock
from uuid import uuid4

import pytest

from docintel.services.office.batch import (
    BatchItem,
    BatchItemStatus,
    BatchProcessor,
    CancellationRegistry,
)


def items(count: int) -> List[BatchItem]:
    return [BatchItem(document_id=uuid4(), user_id="user-1", filename=f"doc_{i}.pdf", raw_text="x") for i in range(count)]


@pytest.mark.asyncio
async def test_results_keep_input_order():
    batch = items(5)

    async def pipeline(item: BatchItem):
        # later items finish first
        await asyncio.sleep(0.01 * (5 - batch.index(item)))
        return Mock(name=item.filename)

    results = await BatchProcessor(pipeline).process(batch, concurrency=5)

    assert [r.document_id for r in results] == [item.document_id for item in batch]
    assert all(r.status == BatchItemStatus.COMPLETED for r in results)


@pytest.mark.asyncio
async def test_failure_is_isolated():
    batch = items(3)

    async def pipeline(item: BatchItem):
        if item is batch[1]:
            raise RuntimeError("extraction failed")
        return Mock()

    results = await BatchProcessor(pipeline).process(batch)

    assert [r.status for r in results] == [
        BatchItemStatus.COMPLETED,
        BatchItemStatus.FAILED,
        BatchItemStatus.COMPLETED,
    ]
    assert results[1].error == "extraction failed"
    assert results[1].outcome is None


@pytest.mark.asyncio
async def test_concurrency_limit():
    running = 0
    peak = 0

    async def pipeline(item: BatchItem):
        nonlocal running, peak
        running += 1
        peak = max(peak, running)
        await asyncio.sleep(0.01)
        running -= 1
        return Mock()

    await BatchProcessor(pipeline).process(items(8), concurrency=2)

    assert peak == 2


@pytest.mark.asyncio
async def test_cancelled_documents_are_skipped():
    batch = items(3)
    cancellations = CancellationRegistry()
    cancellations.cancel(batch[0].document_id)
    started = []

    async def pipeline(item: BatchItem):
        started.append(item.document_id)
        return Mock()

    results = await BatchProcessor(pipeline, cancellations).process(batch)

    assert results[0].status == BatchItemStatus.CANCELLED
    assert batch[0].document_id not in started
    assert len(started) == 2


def test_cancellation_can_be_cleared():
    registry = CancellationRegistry()
    document_id = uuid4()
    registry.cancel(document_id)

    registry.clear(document_id)

    assert not registry.is_cancelled(document_id)

"""Usage ledgers for provider calls and the summaries built from them."""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from docintel.models.catalog import estimate_cost
from docintel.models.config import ResolvedExtractionConfig
from docintel.models.extraction import ExtractionResult, KeySource
from docintel.repositories.usage_repository import PlatformUsageRepository, UsageRepository
from docintel.utils.logging import get_logger

LOGGER = get_logger(__name__)


def month_start(now: datetime) -> datetime:
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


class UsageTracker:
    """Writes ledger rows after each adapter call.

    A ledger write never fails the extraction that produced it.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.usage_repository = UsageRepository(session)
        self.platform_usage_repository = PlatformUsageRepository(session)

    async def record_extraction(
        self,
        config: ResolvedExtractionConfig,
        result: ExtractionResult,
        document_id: Optional[UUID] = None,
    ) -> None:
        """Record one adapter invocation.

        BYOK calls are recorded whether they succeeded or not; platform calls
        only when they succeeded.
        """
        usage = result.tokens_used
        cost = estimate_cost(usage.input, usage.output, config.model.id)
        try:
            if config.key_source == KeySource.BYOK:
                await self.usage_repository.record(
                    user_id=config.user_id,
                    model_id=config.model.id,
                    provider=config.model.provider.value,
                    input_tokens=usage.input,
                    output_tokens=usage.output,
                    cost_sek=cost.sek,
                    processing_time_ms=result.processing_time_ms,
                    success=result.success,
                    error_message=result.error,
                    document_id=document_id,
                )
            elif result.success:
                await self.platform_usage_repository.record(
                    user_id=config.user_id,
                    model_id=config.model.id,
                    provider=config.model.provider.value,
                    input_tokens=usage.input,
                    output_tokens=usage.output,
                    cost_usd=cost.usd,
                    cost_sek=cost.sek,
                    document_id=document_id,
                )
            else:
                return
            await self.session.commit()
        except Exception:
            LOGGER.error(
                "Failed to record usage",
                exc_info=True,
                extra={
                    "user_id": config.user_id,
                    "model": config.model.id,
                    "key_source": config.key_source.value,
                },
            )
            await self.session.rollback()

    async def current_month_usage(self, user_id: str, now: Optional[datetime] = None) -> Dict[str, Any]:
        now = now or datetime.now(timezone.utc)
        since = month_start(now)
        totals = await self.usage_repository.totals_since(user_id, since)
        return {"period_start": since.isoformat(), **totals}

    async def usage_by_model(self, user_id: str, since: datetime) -> List[Dict[str, Any]]:
        return await self.usage_repository.by_model_since(user_id, since)

    async def daily_usage(self, user_id: str, days: int = 30, now: Optional[datetime] = None) -> List[Dict[str, Any]]:
        now = now or datetime.now(timezone.utc)
        since = (now - timedelta(days=max(1, days))).replace(hour=0, minute=0, second=0, microsecond=0)
        return await self.usage_repository.daily_since(user_id, since)

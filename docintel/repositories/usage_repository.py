"""Repositories for the BYOK and platform-key usage ledgers."""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import Date, case, cast, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from docintel.database.models import PlatformUsageRecord, UsageRecord
from docintel.repositories.base_repository import BaseRepository


def _as_float(value: Any) -> float:
    return 0.0 if value is None else float(value)


class UsageRepository(BaseRepository[UsageRecord]):
    """BYOK ledger. One row per adapter invocation."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, UsageRecord)

    async def record(
        self,
        user_id: str,
        model_id: str,
        provider: str,
        input_tokens: int,
        output_tokens: int,
        cost_sek: float,
        processing_time_ms: int,
        success: bool,
        error_message: Optional[str] = None,
        document_id: Optional[UUID] = None,
    ) -> UsageRecord:
        row = UsageRecord(
            user_id=user_id,
            model_id=model_id,
            provider=provider,
            document_id=document_id,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            cost_sek=Decimal(str(cost_sek)),
            processing_time_ms=processing_time_ms,
            success=success,
            error_message=error_message,
        )
        await self.add(row)
        return row

    async def totals_since(self, user_id: str, since: datetime) -> Dict[str, Any]:
        """Aggregate a user's ledger rows created at or after ``since``.

        Args:
            user_id: Ledger owner
            since: Inclusive lower bound on ``created_at``

        Returns:
            Dict with total_requests, successful_requests, failed_requests,
            input_tokens, output_tokens and cost_sek
        """
        query = select(
            func.count(UsageRecord.id),
            func.coalesce(func.sum(case((UsageRecord.success.is_(True), 1), else_=0)), 0),
            func.coalesce(func.sum(UsageRecord.input_tokens), 0),
            func.coalesce(func.sum(UsageRecord.output_tokens), 0),
            func.coalesce(func.sum(UsageRecord.cost_sek), 0),
        ).where(UsageRecord.user_id == user_id, UsageRecord.created_at >= since)
        result = await self.execute(query)
        total, succeeded, input_tokens, output_tokens, cost = result.one()
        return {
            "total_requests": int(total or 0),
            "successful_requests": int(succeeded or 0),
            "failed_requests": int(total or 0) - int(succeeded or 0),
            "input_tokens": int(input_tokens or 0),
            "output_tokens": int(output_tokens or 0),
            "cost_sek": round(_as_float(cost), 4),
        }

    async def by_model_since(self, user_id: str, since: datetime) -> List[Dict[str, Any]]:
        query = (
            select(
                UsageRecord.model_id,
                UsageRecord.provider,
                func.count(UsageRecord.id),
                func.coalesce(func.sum(UsageRecord.input_tokens + UsageRecord.output_tokens), 0),
                func.coalesce(func.sum(UsageRecord.cost_sek), 0),
            )
            .where(UsageRecord.user_id == user_id, UsageRecord.created_at >= since)
            .group_by(UsageRecord.model_id, UsageRecord.provider)
            .order_by(func.count(UsageRecord.id).desc())
        )
        result = await self.execute(query)
        return [
            {
                "model_id": model_id,
                "provider": provider,
                "requests": int(requests),
                "tokens": int(tokens or 0),
                "cost_sek": round(_as_float(cost), 4),
            }
            for model_id, provider, requests, tokens, cost in result.all()
        ]

    async def daily_since(self, user_id: str, since: datetime) -> List[Dict[str, Any]]:
        day = cast(UsageRecord.created_at, Date)
        query = (
            select(
                day,
                func.count(UsageRecord.id),
                func.coalesce(func.sum(UsageRecord.input_tokens + UsageRecord.output_tokens), 0),
                func.coalesce(func.sum(UsageRecord.cost_sek), 0),
            )
            .where(UsageRecord.user_id == user_id, UsageRecord.created_at >= since)
            .group_by(day)
            .order_by(day.asc())
        )
        result = await self.execute(query)
        return [
            {
                "date": str(date),
                "requests": int(requests),
                "tokens": int(tokens or 0),
                "cost_sek": round(_as_float(cost), 4),
            }
            for date, requests, tokens, cost in result.all()
        ]


class PlatformUsageRepository(BaseRepository[PlatformUsageRecord]):
    """Managed-key ledger. Only successful calls are written here."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, PlatformUsageRecord)

    async def record(
        self,
        user_id: str,
        model_id: str,
        provider: str,
        input_tokens: int,
        output_tokens: int,
        cost_usd: float,
        cost_sek: float,
        document_id: Optional[UUID] = None,
    ) -> PlatformUsageRecord:
        row = PlatformUsageRecord(
            user_id=user_id,
            model_id=model_id,
            provider=provider,
            document_id=document_id,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            cost_usd=Decimal(str(cost_usd)),
            cost_sek=Decimal(str(cost_sek)),
        )
        await self.add(row)
        return row

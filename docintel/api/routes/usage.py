"""Usage ledger endpoints."""

from datetime import datetime
from typing import Annotated, Any, Dict

from fastapi import APIRouter, Depends, Query

from docintel.dependencies import get_usage_tracker, get_user_id
from docintel.services.extraction.usage import UsageTracker

router = APIRouter()


@router.get(
    "/summary",
    summary="Extraction usage for the current month",
    description="Totals for the calendar month so far, a per-model breakdown and daily totals.",
    operation_id="get_usage_summary",
)
async def usage_summary(
    user_id: Annotated[str, Depends(get_user_id)],
    tracker: Annotated[UsageTracker, Depends(get_usage_tracker)],
    days: Annotated[int, Query(ge=1, le=365)] = 30,
) -> Dict[str, Any]:
    month = await tracker.current_month_usage(user_id)
    since = datetime.fromisoformat(month["period_start"])
    return {
        "month": month,
        "by_model": await tracker.usage_by_model(user_id, since),
        "daily": await tracker.daily_usage(user_id, days=days),
    }

from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from docintel.database.models import SlaEvaluation, SlaRule
from docintel.repositories.base_repository import BaseRepository
from docintel.utils.logging import get_logger

LOGGER = get_logger(__name__)


class SlaRuleRepository(BaseRepository[SlaRule]):
    """Per (user, document type) SLA thresholds."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, SlaRule)

    async def get_rule(self, user_id: str, doc_type: str) -> Optional[SlaRule]:
        return await self.fetch_one(
            select(SlaRule).where(SlaRule.user_id == user_id, SlaRule.doc_type == doc_type)
        )

    async def list_for_user(self, user_id: str) -> List[SlaRule]:
        return await self.fetch_all(
            select(SlaRule).where(SlaRule.user_id == user_id).order_by(SlaRule.doc_type.asc())
        )

    async def upsert_rule(
        self,
        user_id: str,
        doc_type: str,
        warning_minutes: int,
        breach_minutes: int,
        enabled: bool = True,
    ) -> SlaRule:
        rule = await self.get_rule(user_id, doc_type)
        if rule is None:
            rule = SlaRule(user_id=user_id, doc_type=doc_type)
            self.session.add(rule)
        rule.warning_minutes = warning_minutes
        rule.breach_minutes = breach_minutes
        rule.enabled = enabled
        await self.flush()

        LOGGER.info(
            "SLA rule saved",
            extra={"user_id": user_id, "doc_type": doc_type, "warning": warning_minutes, "breach": breach_minutes},
        )
        return rule


class SlaEvaluationRepository(BaseRepository[SlaEvaluation]):
    """Append-only evaluation history."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, SlaEvaluation)

    async def append(
        self,
        document_id: UUID,
        user_id: str,
        doc_type: str,
        risk_level: str,
        reason: str,
        task_id: Optional[UUID] = None,
    ) -> SlaEvaluation:
        return await self.create(
            document_id=document_id,
            task_id=task_id,
            user_id=user_id,
            doc_type=doc_type,
            risk_level=risk_level,
            reason=reason,
        )

    async def list_for_document(self, document_id: UUID, user_id: str) -> List[SlaEvaluation]:
        return await self.fetch_all(
            select(SlaEvaluation)
            .where(SlaEvaluation.document_id == document_id, SlaEvaluation.user_id == user_id)
            .order_by(SlaEvaluation.created_at.asc())
        )

"""Repository for classification rules and persisted classification decisions."""

from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from docintel.database.models import ClassificationRule, DocumentClassification
from docintel.models.office import ClassificationDecision
from docintel.repositories.base_repository import BaseRepository
from docintel.utils.logging import get_logger

LOGGER = get_logger(__name__)


class ClassificationRuleRepository(BaseRepository[ClassificationRule]):
    """User-defined override rules."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, ClassificationRule)

    async def get_active_rules(self, user_id: str) -> List[ClassificationRule]:
        """Get the active rules of a user in evaluation order.

        Args:
            user_id: Rule owner

        Returns:
            List[ClassificationRule]: Active rules by ascending priority, oldest
            first within the same priority
        """
        query = (
            select(ClassificationRule)
            .where(ClassificationRule.user_id == user_id, ClassificationRule.is_active.is_(True))
            .order_by(ClassificationRule.priority.asc(), ClassificationRule.created_at.asc())
        )
        return await self.fetch_all(query)

    async def create_rule(
        self,
        user_id: str,
        priority: int,
        conditions: Dict[str, Any],
        target_doc_type: Optional[str] = None,
        target_schema_id: Optional[UUID] = None,
        name: Optional[str] = None,
    ) -> ClassificationRule:
        rule = ClassificationRule(
            user_id=user_id,
            name=name,
            priority=priority,
            conditions=conditions,
            target_doc_type=target_doc_type,
            target_schema_id=target_schema_id,
        )
        await self.add(rule)
        return rule


class DocumentClassificationRepository(BaseRepository[DocumentClassification]):
    """Persisted classification decisions. Rows are never updated."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, DocumentClassification)

    async def create_decision(
        self,
        document_id: UUID,
        user_id: str,
        decision: ClassificationDecision,
        schema_id: Optional[UUID] = None,
    ) -> DocumentClassification:
        """Store a decision exactly as it was made.

        Args:
            document_id: Classified document
            user_id: Owner of the document
            decision: The decision, including the path that produced it
            schema_id: Schema actually selected (may differ from the rule's pin
                when the pinned schema is not published)

        Returns:
            DocumentClassification: The stored row
        """
        row = DocumentClassification(
            document_id=document_id,
            user_id=user_id,
            model_doc_type=decision.model_doc_type.value,
            model_confidence=decision.model_confidence,
            rule_doc_type=decision.rule_doc_type.value if decision.rule_doc_type else None,
            final_doc_type=decision.final_doc_type.value,
            schema_id=schema_id,
            decision_source=decision.decision_source.value,
            matched_rule_id=decision.matched_rule_id,
        )
        await self.add(row)

        LOGGER.info(
            "Classification persisted",
            extra={
                "document_id": str(document_id),
                "final_doc_type": row.final_doc_type,
                "decision_source": row.decision_source,
            },
        )
        return row

"""Keyword classification of office documents with user override rules."""

from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from docintel.database.models import ClassificationRule
from docintel.models.office import (
    ClassificationDecision,
    ClassificationRuleConditions,
    ClassificationRuleSpec,
    DecisionSource,
    DocType,
)
from docintel.repositories.classification_repository import (
    ClassificationRuleRepository,
    DocumentClassificationRepository,
)
from docintel.utils.logging import get_logger

LOGGER = get_logger(__name__)

# Evaluated in this order; on equal hit counts the earlier type wins
DOC_TYPE_KEYWORDS: Tuple[Tuple[DocType, Tuple[str, ...]], ...] = (
    (DocType.INVOICE, ("invoice", "faktura", "ocr", "iban", "bankgiro")),
    (DocType.PO, ("purchase order", "po", "beställning", "ordernummer")),
    (DocType.CREDIT_NOTE, ("credit note", "kreditnota", "credit memo")),
    (DocType.RECEIPT, ("receipt", "kvitto")),
    (DocType.CONTRACT, ("contract", "agreement", "avtal", "renewal")),
    (DocType.NDA, ("nda", "non-disclosure", "sekretess")),
    (DocType.EMPLOYMENT_AGREEMENT, ("employment", "anställning", "anställningsavtal")),
    (DocType.TICKET_INCIDENT, ("incident", "ticket", "severity", "root cause", "support")),
    (DocType.TICKET_CHANGE, ("change request", "change", "approval status", "scheduled")),
)

NO_SIGNAL_CONFIDENCE = 0.35
BASE_CONFIDENCE = 0.5
CONFIDENCE_PER_HIT = 0.1
MAX_CONFIDENCE = 0.95
FALLBACK_CONFIDENCE_CEILING = 0.45


def keyword_hits(haystack: str, terms: Iterable[str]) -> int:
    return sum(1 for term in terms if term in haystack)


def classify_with_keywords(filename: str, text: str) -> Tuple[DocType, float]:
    """Score every document type by keyword hits in ``filename`` and ``text``.

    Terms match as lowercase substrings. The type with the most hits wins;
    with no hits at all the result is ``unknown_office`` at 0.35.

    Returns:
        Tuple of (doc_type, confidence) with confidence in [0.35, 0.95]

    Example:
        >>> classify_with_keywords("scan.pdf", "Invoice OCR 1234 Bankgiro 5050-1055")
        (<DocType.INVOICE: 'invoice'>, 0.8)
    """
    haystack = f"{filename or ''} {text or ''}".lower()
    best_type = DocType.UNKNOWN_OFFICE
    best_score = 0

    for doc_type, terms in DOC_TYPE_KEYWORDS:
        score = keyword_hits(haystack, terms)
        if score > best_score:
            best_type, best_score = doc_type, score

    if best_score == 0:
        return DocType.UNKNOWN_OFFICE, NO_SIGNAL_CONFIDENCE

    confidence = min(BASE_CONFIDENCE + best_score * CONFIDENCE_PER_HIT, MAX_CONFIDENCE)
    return best_type, round(confidence, 4)


def rule_matches(rule: ClassificationRuleSpec, filename: str, text: str) -> bool:
    filename_lc = (filename or "").lower()
    conditions = rule.conditions

    if conditions.filename_pattern and conditions.filename_pattern.lower() not in filename_lc:
        return False
    if conditions.keyword:
        keyword = conditions.keyword.lower()
        if keyword not in (text or "").lower() and keyword not in filename_lc:
            return False
    return True


def first_matching_rule(
    rules: Sequence[ClassificationRuleSpec], filename: str, text: str
) -> Optional[ClassificationRuleSpec]:
    """First rule, by ascending priority, whose present conditions all hold.

    Python's sort is stable, so rules with equal priority keep their given
    order.
    """
    for rule in sorted(rules, key=lambda r: r.priority):
        if rule_matches(rule, filename, text):
            return rule
    return None


def decide(
    filename: str,
    text: str,
    rules: Sequence[ClassificationRuleSpec] = (),
) -> ClassificationDecision:
    """Combine the keyword guess with the user's override rules.

    A matched rule always makes the decision a ``rule_override``; its target
    type and schema apply when set. Without a matching rule, an
    ``unknown_office`` guess below 0.45 confidence is marked ``fallback``.
    """
    model_type, model_confidence = classify_with_keywords(filename, text)
    rule = first_matching_rule(rules, filename, text)

    if rule is not None:
        return ClassificationDecision(
            model_doc_type=model_type,
            model_confidence=model_confidence,
            rule_doc_type=rule.target_doc_type,
            final_doc_type=rule.target_doc_type or model_type,
            schema_id=rule.target_schema_id,
            decision_source=DecisionSource.RULE_OVERRIDE,
            matched_rule_id=rule.id,
        )

    source = DecisionSource.MODEL
    if model_type == DocType.UNKNOWN_OFFICE and model_confidence < FALLBACK_CONFIDENCE_CEILING:
        source = DecisionSource.FALLBACK

    return ClassificationDecision(
        model_doc_type=model_type,
        model_confidence=model_confidence,
        final_doc_type=model_type,
        decision_source=source,
    )


def rule_spec_from_row(row: ClassificationRule) -> Optional[ClassificationRuleSpec]:
    """Convert a stored rule. Rows with an unrecognised target type are skipped."""
    conditions: Dict[str, Any] = row.conditions or {}
    try:
        target = DocType(row.target_doc_type) if row.target_doc_type else None
    except ValueError:
        LOGGER.warning(
            "Ignoring classification rule with unknown target type",
            extra={"rule_id": str(row.id), "target_doc_type": row.target_doc_type},
        )
        return None

    return ClassificationRuleSpec(
        id=row.id,
        priority=row.priority,
        conditions=ClassificationRuleConditions(
            filename_pattern=conditions.get("filename_pattern") if isinstance(conditions.get("filename_pattern"), str) else None,
            keyword=conditions.get("keyword") if isinstance(conditions.get("keyword"), str) else None,
        ),
        target_doc_type=target,
        target_schema_id=row.target_schema_id,
    )


class ClassificationService:
    """Loads a user's rules, classifies and persists decisions."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.rule_repository = ClassificationRuleRepository(session)
        self.decision_repository = DocumentClassificationRepository(session)

    async def load_rules(self, user_id: str) -> List[ClassificationRuleSpec]:
        rows = await self.rule_repository.get_active_rules(user_id)
        specs = [rule_spec_from_row(row) for row in rows]
        return [spec for spec in specs if spec is not None]

    async def classify(self, user_id: str, filename: str, text: str) -> ClassificationDecision:
        rules = await self.load_rules(user_id)
        decision = decide(filename, text, rules)

        LOGGER.info(
            "Document classified",
            extra={
                "user_id": user_id,
                "model_doc_type": decision.model_doc_type.value,
                "model_confidence": decision.model_confidence,
                "final_doc_type": decision.final_doc_type.value,
                "decision_source": decision.decision_source.value,
                "rules_evaluated": len(rules),
            },
        )
        return decision

    async def persist(
        self,
        document_id: UUID,
        user_id: str,
        decision: ClassificationDecision,
        schema_id: Optional[UUID] = None,
    ) -> None:
        await self.decision_repository.create_decision(
            document_id=document_id,
            user_id=user_id,
            decision=decision,
            schema_id=schema_id if schema_id is not None else decision.schema_id,
        )

    async def create_rule(
        self,
        user_id: str,
        spec: ClassificationRuleSpec,
        name: Optional[str] = None,
    ) -> ClassificationRule:
        """Store a new override rule.

        Args:
            user_id: Rule owner
            spec: Priority, conditions and targets
            name: Optional label shown in listings

        Returns:
            ClassificationRule: The stored row, active immediately
        """
        row = await self.rule_repository.create_rule(
            user_id=user_id,
            priority=spec.priority,
            conditions=spec.conditions.model_dump(exclude_none=True),
            target_doc_type=spec.target_doc_type.value if spec.target_doc_type else None,
            target_schema_id=spec.target_schema_id,
            name=name,
        )
        LOGGER.info(
            "Classification rule created",
            extra={"user_id": user_id, "rule_id": str(row.id), "priority": spec.priority},
        )
        return row

    async def list_rules(self, user_id: str) -> List[ClassificationRule]:
        return await self.rule_repository.get_active_rules(user_id)

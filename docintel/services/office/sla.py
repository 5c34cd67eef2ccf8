"""SLA risk for documents waiting on review."""

import math
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from docintel.core.config import settings
from docintel.core.exceptions import ValidationError
from docintel.database.models import SlaEvaluation, SlaRule
from docintel.models.office import DocType, SlaOutcome, SlaRiskLevel
from docintel.repositories.sla_repository import SlaEvaluationRepository, SlaRuleRepository
from docintel.services.events import (
    EVENT_VERSION,
    SLA_BREACH,
    SLA_WARNING,
    EventDispatcher,
    LoggingEventDispatcher,
    LoggingNotifier,
    Notifier,
)
from docintel.utils.logging import get_logger

LOGGER = get_logger(__name__)

BREACH_EMAIL_SUBJECT = "SLA breach alert"


def minutes_since(created_at: datetime, now: Optional[datetime] = None) -> int:
    """Whole minutes elapsed, never negative. Naive datetimes are read as UTC."""
    now = now or datetime.now(timezone.utc)
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return max(0, math.floor((now - created_at).total_seconds() / 60))


def evaluate_risk(age_minutes: int, warning_minutes: int, breach_minutes: int) -> SlaRiskLevel:
    if age_minutes >= breach_minutes:
        return SlaRiskLevel.BREACH
    if age_minutes >= warning_minutes:
        return SlaRiskLevel.WARNING
    return SlaRiskLevel.NONE


def breach_email_html(document_id: UUID, doc_type: str) -> str:
    return f"<p>Document <strong>{document_id}</strong> for <strong>{doc_type}</strong> exceeded SLA.</p>"


class SlaEvaluator:
    """Evaluates document age against per-type thresholds.

    Every call appends an evaluation row, including ``none`` results.
    ``warning`` dispatches ``sla.warning``; ``breach`` dispatches
    ``sla.breach`` and emails the contact address when one is known.
    """

    def __init__(
        self,
        session: AsyncSession,
        dispatcher: Optional[EventDispatcher] = None,
        notifier: Optional[Notifier] = None,
    ):
        self.session = session
        self.rule_repository = SlaRuleRepository(session)
        self.evaluation_repository = SlaEvaluationRepository(session)
        self.dispatcher = dispatcher or LoggingEventDispatcher()
        self.notifier = notifier or LoggingNotifier()

    async def thresholds(self, user_id: str, doc_type: str) -> Tuple[int, int]:
        rule = await self.rule_repository.get_rule(user_id, doc_type)
        if rule is None or not rule.enabled:
            return settings.office.sla_default_warning_minutes, settings.office.sla_default_breach_minutes
        return rule.warning_minutes, rule.breach_minutes

    async def evaluate(
        self,
        document_id: UUID,
        user_id: str,
        doc_type: Optional[str],
        created_at: Optional[datetime],
        task_id: Optional[UUID] = None,
        contact_email: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> SlaOutcome:
        """Evaluate and record SLA risk for one document.

        Args:
            document_id: Evaluated document
            user_id: Document owner
            doc_type: Final document type, ``unknown_office`` when None
            created_at: Document creation time; None yields risk ``none``
                with an "Unknown age" reason
            task_id: Review task of the document, if any
            contact_email: Recipient of the breach email
            now: Evaluation time, current time by default

        Returns:
            SlaOutcome: Risk level, reason and the thresholds used
        """
        doc_type = doc_type or DocType.UNKNOWN_OFFICE.value
        warning_minutes, breach_minutes = await self.thresholds(user_id, doc_type)

        if created_at is None:
            risk = SlaRiskLevel.NONE
            age_minutes = None
            reason = f"Unknown age: document has no creation time (warning={warning_minutes} breach={breach_minutes})"
        else:
            age_minutes = minutes_since(created_at, now)
            risk = evaluate_risk(age_minutes, warning_minutes, breach_minutes)
            reason = f"Age={age_minutes}m threshold warning={warning_minutes} breach={breach_minutes}"

        await self.evaluation_repository.append(
            document_id=document_id,
            user_id=user_id,
            doc_type=doc_type,
            risk_level=risk.value,
            reason=reason,
            task_id=task_id,
        )

        outcome = SlaOutcome(
            document_id=document_id,
            task_id=task_id,
            doc_type=doc_type,
            risk_level=risk,
            reason=reason,
            age_minutes=age_minutes,
            warning_minutes=warning_minutes,
            breach_minutes=breach_minutes,
        )

        if risk == SlaRiskLevel.WARNING:
            await self.dispatcher.dispatch(user_id, SLA_WARNING, self._payload(outcome))
        elif risk == SlaRiskLevel.BREACH:
            await self.dispatcher.dispatch(user_id, SLA_BREACH, self._payload(outcome))
            if contact_email:
                await self.notifier.send(contact_email, BREACH_EMAIL_SUBJECT, breach_email_html(document_id, doc_type))

        LOGGER.info(
            "SLA evaluated",
            extra={"document_id": str(document_id), "doc_type": doc_type, "risk": risk.value, "age_minutes": age_minutes},
        )
        return outcome

    @staticmethod
    def _payload(outcome: SlaOutcome) -> Dict[str, Any]:
        return {
            "eventVersion": EVENT_VERSION,
            "documentId": str(outcome.document_id),
            "taskId": str(outcome.task_id) if outcome.task_id else None,
            "riskLevel": outcome.risk_level.value,
            "reason": outcome.reason,
            "docType": outcome.doc_type,
            "ageMinutes": outcome.age_minutes,
            "warningMinutes": outcome.warning_minutes,
            "breachMinutes": outcome.breach_minutes,
        }

    async def upsert_rule(
        self,
        user_id: str,
        doc_type: DocType,
        warning_minutes: int,
        breach_minutes: int,
        enabled: bool = True,
    ) -> SlaRule:
        if warning_minutes < 0 or breach_minutes < 0:
            raise ValidationError("SLA thresholds must not be negative")
        if warning_minutes > breach_minutes:
            raise ValidationError("Warning threshold must not exceed breach threshold")
        return await self.rule_repository.upsert_rule(user_id, doc_type.value, warning_minutes, breach_minutes, enabled)

    async def list_rules(self, user_id: str) -> List[SlaRule]:
        return await self.rule_repository.list_for_user(user_id)

    async def history(self, document_id: UUID, user_id: str) -> List[SlaEvaluation]:
        return await self.evaluation_repository.list_for_document(document_id, user_id)

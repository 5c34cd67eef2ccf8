"""Tests for SLA risk evaluation."""

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from docintel.core.config import settings
from docintel.core.exceptions import ValidationError
from docintel.models.office import DocType, SlaRiskLevel
from docintel.services.office.sla import SlaEvaluator, evaluate_risk, minutes_since

NOW = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def evaluator(mock_session, dispatcher, notifier):
    service = SlaEvaluator(mock_session, dispatcher=dispatcher, notifier=notifier)
    service.rule_repository = AsyncMock()
    service.rule_repository.get_rule.return_value = SimpleNamespace(
        warning_minutes=60, breach_minutes=240, enabled=True
    )
    service.evaluation_repository = AsyncMock()
    return service


@pytest.mark.asyncio
async def test_breach_dispatches_and_emails(evaluator, dispatcher, notifier):
    document_id = uuid4()

    outcome = await evaluator.evaluate(
        document_id,
        "user-1",
        "invoice",
        created_at=NOW - timedelta(minutes=300),
        contact_email="ops@example.com",
        now=NOW,
    )

    assert outcome.risk_level == SlaRiskLevel.BREACH
    assert outcome.age_minutes == 300
    assert outcome.reason == "Age=300m threshold warning=60 breach=240"
    assert dispatcher.names() == ["sla.breach"]
    payload = dispatcher.payloads("sla.breach")[0]
    assert payload["ageMinutes"] == 300
    assert payload["riskLevel"] == "breach"
    assert payload["reason"] == "Age=300m threshold warning=60 breach=240"
    assert payload["taskId"] is None
    assert len(notifier.sent) == 1
    email, subject, html = notifier.sent[0]
    assert email == "ops@example.com"
    assert subject == "SLA breach alert"
    assert str(document_id) in html
    evaluator.evaluation_repository.append.assert_awaited_once()
    assert evaluator.evaluation_repository.append.await_args.kwargs["risk_level"] == "breach"


@pytest.mark.asyncio
async def test_breach_without_contact_sends_no_email(evaluator, dispatcher, notifier):
    await evaluator.evaluate(uuid4(), "user-1", "invoice", created_at=NOW - timedelta(hours=5), now=NOW)

    assert dispatcher.names() == ["sla.breach"]
    assert notifier.sent == []


@pytest.mark.asyncio
async def test_warning_dispatches_only_warning(evaluator, dispatcher, notifier):
    task_id = uuid4()
    outcome = await evaluator.evaluate(
        uuid4(),
        "user-1",
        "invoice",
        task_id=task_id,
        created_at=NOW - timedelta(minutes=90),
        contact_email="ops@example.com",
        now=NOW,
    )

    assert outcome.risk_level == SlaRiskLevel.WARNING
    assert dispatcher.names() == ["sla.warning"]
    payload = dispatcher.payloads("sla.warning")[0]
    assert payload["riskLevel"] == "warning"
    assert payload["taskId"] == str(task_id)
    assert payload["reason"] == outcome.reason
    assert notifier.sent == []


@pytest.mark.asyncio
async def test_fresh_document_is_recorded_without_events(evaluator, dispatcher):
    outcome = await evaluator.evaluate(uuid4(), "user-1", "invoice", created_at=NOW - timedelta(minutes=5), now=NOW)

    assert outcome.risk_level == SlaRiskLevel.NONE
    assert dispatcher.events == []
    evaluator.evaluation_repository.append.assert_awaited_once()


@pytest.mark.asyncio
@pytest.mark.parametrize("rule", [None, SimpleNamespace(warning_minutes=1, breach_minutes=2, enabled=False)])
async def test_missing_or_disabled_rule_uses_defaults(evaluator, rule):
    evaluator.rule_repository.get_rule.return_value = rule

    outcome = await evaluator.evaluate(uuid4(), "user-1", "nda", created_at=NOW, now=NOW)

    assert outcome.warning_minutes == settings.office.sla_default_warning_minutes
    assert outcome.breach_minutes == settings.office.sla_default_breach_minutes


@pytest.mark.asyncio
async def test_unknown_age(evaluator, dispatcher):
    outcome = await evaluator.evaluate(uuid4(), "user-1", None, created_at=None, now=NOW)

    assert outcome.risk_level == SlaRiskLevel.NONE
    assert outcome.age_minutes is None
    assert outcome.reason.startswith("Unknown age")
    assert outcome.doc_type == "unknown_office"
    assert dispatcher.events == []


class TestUpsertRule:
    @pytest.mark.asyncio
    async def test_rejects_warning_after_breach(self, evaluator):
        with pytest.raises(ValidationError):
            await evaluator.upsert_rule("user-1", DocType.INVOICE, 300, 240)

        evaluator.rule_repository.upsert_rule.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_rejects_negative(self, evaluator):
        with pytest.raises(ValidationError):
            await evaluator.upsert_rule("user-1", DocType.INVOICE, -1, 240)

    @pytest.mark.asyncio
    async def test_stores_rule(self, evaluator):
        await evaluator.upsert_rule("user-1", DocType.INVOICE, 30, 120, enabled=False)

        evaluator.rule_repository.upsert_rule.assert_awaited_once_with("user-1", "invoice", 30, 120, False)


class TestAge:
    def test_naive_datetimes_are_utc(self):
        assert minutes_since(datetime(2024, 3, 1, 11, 0), NOW) == 60

    def test_future_creation_is_zero(self):
        assert minutes_since(NOW + timedelta(minutes=10), NOW) == 0

    def test_partial_minutes_round_down(self):
        assert minutes_since(NOW - timedelta(seconds=119), NOW) == 1

    def test_risk_boundaries(self):
        assert evaluate_risk(59, 60, 240) == SlaRiskLevel.NONE
        assert evaluate_risk(60, 60, 240) == SlaRiskLevel.WARNING
        assert evaluate_risk(240, 60, 240) == SlaRiskLevel.BREACH

"""Tests for the office document orchestrator."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from docintel.core.exceptions import AppError, NotFoundError, ValidationError
from docintel.models.config import ResolvedConfig
from docintel.models.office import DecisionSource, DocType, ReviewTaskStatus, SlaRiskLevel
from docintel.services.office.orchestrator import OfficeDocumentOrchestrator

APPROVABLE_TEXT = (
    "Invoice no: INV-1042\n"
    "Faktura\n"
    "OCR 12345\n"
    "Bankgiro 5050-1055\n"
    "Supplier: Acme AB\n"
    "Customer: Beta AB\n"
    "Date: 2024-03-01\n"
    "Due date: 2024-03-31\n"
    "Total: 1 250,50 SEK"
)

# Looks like an invoice but carries no document number
BLOCKED_TEXT = "OCR 4711\nBankgiro 5050-1055\nDate: 2024-03-01\nTotal: 980,00 SEK"


@pytest.fixture
def orchestrator(mock_session, dispatcher, audit_logger, notifier, row_factory):
    service = OfficeDocumentOrchestrator(
        mock_session,
        dispatcher=dispatcher,
        audit_logger=audit_logger,
        notifier=notifier,
    )

    service.classification_service.rule_repository = AsyncMock()
    service.classification_service.rule_repository.get_active_rules.return_value = []
    service.classification_service.decision_repository = AsyncMock()

    service.schema_store.template_repository = AsyncMock()
    service.schema_store.template_repository.get_latest_published.return_value = None
    service.schema_store.version_repository = AsyncMock()

    service.workflow.task_repository = AsyncMock()
    service.workflow.task_repository.get_by_document.return_value = None
    service.workflow.task_repository.create_task.side_effect = lambda **values: row_factory(**values)
    service.workflow.event_repository = AsyncMock()

    service.sla_evaluator.rule_repository = AsyncMock()
    service.sla_evaluator.rule_repository.get_rule.return_value = None
    service.sla_evaluator.evaluation_repository = AsyncMock()

    service.document_repository = AsyncMock()
    service.document_repository.get_owner.return_value = "user-1"
    service.document_repository.get_created_at.return_value = datetime.now(timezone.utc)
    return service


def config(**overrides) -> ResolvedConfig:
    values = {"user_id": "user-1", "auto_approve_threshold": 85}
    values.update(overrides)
    return ResolvedConfig(**values)


@pytest.mark.asyncio
async def test_complete_invoice_is_approved(orchestrator, mock_session):
    document_id = uuid4()

    outcome = await orchestrator.execute(document_id, "user-1", "scan.pdf", APPROVABLE_TEXT, config())

    assert outcome.status == "approved"
    assert outcome.should_approve is True
    assert outcome.classification.final_doc_type == DocType.INVOICE
    assert outcome.classification.decision_source == DecisionSource.MODEL
    assert outcome.schema_selection.is_default is True
    assert outcome.result.validation.confidence == 90
    # every default field except status
    assert outcome.result.validation.completeness == 88
    assert outcome.result.fields["amount"] == 1250.5
    assert outcome.review_task.status == ReviewTaskStatus.APPROVED
    assert outcome.sla.risk_level == SlaRiskLevel.NONE
    mock_session.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_default_threshold_sends_invoice_to_review(orchestrator):
    outcome = await orchestrator.execute(uuid4(), "user-1", "scan.pdf", APPROVABLE_TEXT, ResolvedConfig(user_id="user-1"))

    assert outcome.status == "needs_review"
    assert outcome.review_task.status == ReviewTaskStatus.NEW


@pytest.mark.asyncio
async def test_blocking_issue_prevents_approval(orchestrator):
    lenient = config(auto_approve_threshold=0, high_confidence_threshold=0)

    outcome = await orchestrator.execute(uuid4(), "user-1", "scan.pdf", BLOCKED_TEXT, lenient)

    assert outcome.status == "needs_review"
    assert outcome.should_approve is False
    assert "Missing required field: Document ID" in outcome.result.validation.blocking_issues


@pytest.mark.asyncio
async def test_events_and_audit_order(orchestrator, dispatcher, audit_logger):
    document_id = uuid4()

    await orchestrator.execute(document_id, "user-1", "scan.pdf", APPROVABLE_TEXT, config())

    assert dispatcher.names() == ["document.processed", "document.classified"]
    processed = dispatcher.payloads("document.processed")[0]
    assert processed["documentId"] == str(document_id)
    assert processed["status"] == "approved"
    assert processed["schemaId"] is None
    assert processed["classification"]["final_doc_type"] == "invoice"
    assert [entry.action for entry in audit_logger.entries] == ["document.classified", "document.processed"]
    assert audit_logger.entries[1].metadata["autoApproved"] is True


@pytest.mark.asyncio
async def test_records_every_step(orchestrator):
    document_id = uuid4()
    due = datetime(2024, 4, 1, tzinfo=timezone.utc)

    await orchestrator.execute(document_id, "user-1", "scan.pdf", BLOCKED_TEXT, config(review_due_at=due))

    orchestrator.classification_service.decision_repository.create_decision.assert_awaited_once()
    assert orchestrator.workflow.task_repository.create_task.await_args.kwargs["due_at"] == due
    orchestrator.sla_evaluator.evaluation_repository.append.assert_awaited_once()
    save = orchestrator.document_repository.save_office_result.await_args
    assert save.args == (document_id, "user-1")
    assert save.kwargs["status"] == "needs_review"
    assert save.kwargs["document_domain"] == "office_it"
    assert save.kwargs["extracted_data"]["doc_type"] == "invoice"


@pytest.mark.asyncio
async def test_old_document_breaches_sla(orchestrator, dispatcher, notifier):
    orchestrator.document_repository.get_created_at.return_value = datetime(2020, 1, 1, tzinfo=timezone.utc)

    outcome = await orchestrator.execute(
        uuid4(), "user-1", "scan.pdf", APPROVABLE_TEXT, config(contact_email="ops@example.com")
    )

    assert outcome.sla.risk_level == SlaRiskLevel.BREACH
    assert dispatcher.names() == ["sla.breach", "document.processed", "document.classified"]
    assert [subject for _, subject, _ in notifier.sent] == ["SLA breach alert"]


@pytest.mark.asyncio
async def test_missing_creation_time_counts_from_now(orchestrator):
    orchestrator.document_repository.get_created_at.return_value = None

    outcome = await orchestrator.execute(uuid4(), "user-1", "scan.pdf", APPROVABLE_TEXT, config())

    assert outcome.sla.risk_level == SlaRiskLevel.NONE
    assert outcome.sla.age_minutes == 0


class TestValidation:
    @pytest.mark.asyncio
    async def test_config_for_another_user(self, orchestrator, mock_session):
        with pytest.raises(ValidationError):
            await orchestrator.execute(uuid4(), "user-1", "scan.pdf", APPROVABLE_TEXT, config(user_id="user-2"))

        mock_session.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_blank_filename(self, orchestrator):
        with pytest.raises(ValidationError):
            await orchestrator.execute(uuid4(), "user-1", "", APPROVABLE_TEXT, config())

    @pytest.mark.asyncio
    async def test_unexpected_failure_is_wrapped(self, orchestrator, mock_session):
        orchestrator.classification_service.rule_repository.get_active_rules.side_effect = RuntimeError("db down")

        with pytest.raises(AppError) as exc_info:
            await orchestrator.execute(uuid4(), "user-1", "scan.pdf", APPROVABLE_TEXT, config())

        assert isinstance(exc_info.value.original_error, RuntimeError)
        mock_session.commit.assert_not_awaited()


class TestOwnership:
    @pytest.mark.asyncio
    async def test_other_users_document_is_not_found(self, orchestrator, mock_session, dispatcher, audit_logger):
        orchestrator.document_repository.get_owner.return_value = "alice"

        with pytest.raises(NotFoundError):
            await orchestrator.execute(uuid4(), "mallory", "scan.pdf", APPROVABLE_TEXT, config(user_id="mallory"))

        orchestrator.classification_service.decision_repository.create_decision.assert_not_awaited()
        orchestrator.workflow.task_repository.get_by_document.assert_not_awaited()
        orchestrator.document_repository.save_office_result.assert_not_awaited()
        assert dispatcher.events == []
        assert audit_logger.entries == []
        mock_session.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_other_users_task_stops_the_run(self, orchestrator, mock_session, row_factory):
        orchestrator.document_repository.get_owner.return_value = None
        orchestrator.workflow.task_repository.get_by_document.return_value = row_factory(
            user_id="alice", status="in_review"
        )

        with pytest.raises(NotFoundError):
            await orchestrator.execute(uuid4(), "mallory", "scan.pdf", APPROVABLE_TEXT, config(user_id="mallory"))

        orchestrator.document_repository.save_office_result.assert_not_awaited()
        mock_session.commit.assert_not_awaited()

"""Tests for keyword classification and override rules."""

from types import SimpleNamespace
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from docintel.models.office import (
    ClassificationRuleConditions,
    ClassificationRuleSpec,
    DecisionSource,
    DocType,
)
from docintel.services.office.classification import (
    ClassificationService,
    classify_with_keywords,
    decide,
    first_matching_rule,
    rule_spec_from_row,
)


def rule(priority: int = 100, filename_pattern=None, keyword=None, target=None, schema_id=None) -> ClassificationRuleSpec:
    return ClassificationRuleSpec(
        id=uuid4(),
        priority=priority,
        conditions=ClassificationRuleConditions(filename_pattern=filename_pattern, keyword=keyword),
        target_doc_type=target,
        target_schema_id=schema_id,
    )


class TestKeywordClassifier:
    def test_invoice_with_many_signals_is_capped(self):
        text = "Invoice\nOCR: 5560360793\nBankgiro 5050-1055\nIBAN SE45 5000 0000 0583 9825 7466"

        doc_type, confidence = classify_with_keywords("faktura_1042.pdf", text)

        assert doc_type == DocType.INVOICE
        assert confidence == 0.95

    def test_single_hit(self):
        assert classify_with_keywords("scan.pdf", "Invoice total 100") == (DocType.INVOICE, 0.6)

    def test_no_signal(self):
        assert classify_with_keywords("notes.txt", "Hello world") == (DocType.UNKNOWN_OFFICE, 0.35)

    def test_ticket_incident(self):
        doc_type, confidence = classify_with_keywords("inc.txt", "Incident INC-42\nSeverity: high\nRoot cause: disk")

        assert doc_type == DocType.TICKET_INCIDENT
        assert confidence == 0.8

    def test_tie_goes_to_earlier_type(self):
        assert classify_with_keywords("x", "receipt contract")[0] == DocType.RECEIPT

    def test_confidence_bounds(self):
        samples = [
            ("a.pdf", ""),
            ("b.pdf", "invoice faktura ocr iban bankgiro purchase order"),
            ("c.pdf", "nda"),
        ]
        for filename, text in samples:
            _, confidence = classify_with_keywords(filename, text)
            assert 0.35 <= confidence <= 0.95


class TestRules:
    def test_lowest_priority_number_wins(self):
        late = rule(priority=50, keyword="acme", target=DocType.NDA)
        early = rule(priority=5, keyword="acme", target=DocType.PO)

        assert first_matching_rule([late, early], "f.pdf", "ACME AB") is early

    def test_all_present_conditions_must_hold(self):
        both = rule(filename_pattern="acme", keyword="renewal", target=DocType.CONTRACT)

        assert first_matching_rule([both], "acme.pdf", "nothing relevant") is None
        assert first_matching_rule([both], "acme.pdf", "Renewal date") is both

    def test_keyword_may_match_filename(self):
        by_name = rule(keyword="kvitto", target=DocType.RECEIPT)

        assert first_matching_rule([by_name], "Kvitto_03.jpg", "") is by_name

    def test_rule_without_conditions_matches_everything(self):
        catch_all = rule(target=DocType.CONTRACT)

        assert first_matching_rule([catch_all], "any.pdf", "any") is catch_all


class TestDecide:
    def test_rule_override(self):
        schema_id = uuid4()
        override = rule(priority=10, filename_pattern="acme", target=DocType.CONTRACT, schema_id=schema_id)

        decision = decide("ACME_invoice.pdf", "Invoice", [override])

        assert decision.model_doc_type == DocType.INVOICE
        assert decision.rule_doc_type == DocType.CONTRACT
        assert decision.final_doc_type == DocType.CONTRACT
        assert decision.decision_source == DecisionSource.RULE_OVERRIDE
        assert decision.schema_id == schema_id
        assert decision.matched_rule_id == override.id

    def test_rule_without_target_keeps_model_type(self):
        decision = decide("acme.pdf", "Invoice", [rule(filename_pattern="acme")])

        assert decision.final_doc_type == DocType.INVOICE
        assert decision.decision_source == DecisionSource.RULE_OVERRIDE

    def test_unknown_without_rule_is_fallback(self):
        decision = decide("notes.txt", "Hello world")

        assert decision.final_doc_type == DocType.UNKNOWN_OFFICE
        assert decision.decision_source == DecisionSource.FALLBACK

    def test_unknown_with_matching_rule_is_override(self):
        decision = decide("notes.txt", "Hello world", [rule(keyword="hello", target=DocType.TICKET_CHANGE)])

        assert decision.final_doc_type == DocType.TICKET_CHANGE
        assert decision.decision_source == DecisionSource.RULE_OVERRIDE

    def test_model_decision(self):
        decision = decide("scan.pdf", "Invoice total 100", [rule(keyword="never-present", target=DocType.NDA)])

        assert decision.decision_source == DecisionSource.MODEL
        assert decision.final_doc_type == DocType.INVOICE
        assert decision.rule_doc_type is None


class TestClassificationService:
    @pytest.fixture
    def service(self, mock_session) -> ClassificationService:
        service = ClassificationService(mock_session)
        service.rule_repository = AsyncMock()
        service.decision_repository = AsyncMock()
        return service

    def test_row_with_unknown_target_is_skipped(self):
        row = SimpleNamespace(
            id=uuid4(), priority=1, conditions={"keyword": "x"}, target_doc_type="spreadsheet", target_schema_id=None
        )

        assert rule_spec_from_row(row) is None

    def test_row_conversion_ignores_non_string_conditions(self):
        row = SimpleNamespace(
            id=uuid4(), priority=3, conditions={"keyword": 42, "filename_pattern": "acme"}, target_doc_type="nda",
            target_schema_id=None,
        )

        spec = rule_spec_from_row(row)

        assert spec.conditions.keyword is None
        assert spec.conditions.filename_pattern == "acme"
        assert spec.target_doc_type == DocType.NDA

    @pytest.mark.asyncio
    async def test_classify_uses_stored_rules(self, service):
        service.rule_repository.get_active_rules.return_value = [
            SimpleNamespace(id=uuid4(), priority=1, conditions={"keyword": "acme"}, target_doc_type="bogus",
                            target_schema_id=None),
            SimpleNamespace(id=uuid4(), priority=2, conditions={"keyword": "acme"}, target_doc_type="contract",
                            target_schema_id=None),
        ]

        decision = await service.classify("user-1", "scan.pdf", "Invoice from ACME")

        assert decision.final_doc_type == DocType.CONTRACT
        service.rule_repository.get_active_rules.assert_awaited_once_with("user-1")

    @pytest.mark.asyncio
    async def test_persist_prefers_resolved_schema(self, service):
        decision = decide("scan.pdf", "Invoice")
        document_id, schema_id = uuid4(), uuid4()

        await service.persist(document_id, "user-1", decision, schema_id=schema_id)

        kwargs = service.decision_repository.create_decision.await_args.kwargs
        assert kwargs["document_id"] == document_id
        assert kwargs["schema_id"] == schema_id

    @pytest.mark.asyncio
    async def test_create_rule_stores_conditions_without_blanks(self, service):
        service.rule_repository.create_rule.return_value = SimpleNamespace(id=uuid4())
        spec = rule(priority=5, keyword="acme", target=DocType.CONTRACT)

        await service.create_rule("user-1", spec, name="ACME contracts")

        service.rule_repository.create_rule.assert_awaited_once_with(
            user_id="user-1",
            priority=5,
            conditions={"keyword": "acme"},
            target_doc_type="contract",
            target_schema_id=None,
            name="ACME contracts",
        )

"""Tests for repository write and query behaviour."""

from decimal import Decimal
from unittest.mock import Mock
from uuid import uuid4

import pytest
from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import OperationalError

from docintel.core.exceptions import DatabaseError
from docintel.database.models import ReviewTask, ReviewTaskEvent, SlaRule, UsageRecord
from docintel.repositories.base_repository import BaseRepository
from docintel.repositories.document_repository import DocumentRepository
from docintel.repositories.review_repository import ReviewEventRepository, ReviewTaskRepository
from docintel.repositories.sla_repository import SlaRuleRepository
from docintel.repositories.usage_repository import UsageRepository


def result_with(rows=None, scalar=None) -> Mock:
    result = Mock()
    result.scalars.return_value.all.return_value = rows or []
    result.scalar_one_or_none.return_value = scalar
    return result


def compiled(statement) -> str:
    return str(statement.compile(dialect=postgresql.dialect(), compile_kwargs={"literal_binds": True}))


class TestBaseRepository:
    @pytest.mark.asyncio
    async def test_create_flushes_without_commit(self, mock_session):
        repository = BaseRepository(mock_session, ReviewTask)

        task = await repository.create(document_id=uuid4(), user_id="user-1", status="new")

        mock_session.add.assert_called_once_with(task)
        mock_session.flush.assert_awaited_once()
        mock_session.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_query_errors_become_database_errors(self, mock_session):
        mock_session.execute.side_effect = OperationalError("SELECT", {}, Exception("connection lost"))
        repository = BaseRepository(mock_session, ReviewTask)

        with pytest.raises(DatabaseError):
            await repository.get_by_id(uuid4())

    @pytest.mark.asyncio
    async def test_flush_errors_become_database_errors(self, mock_session):
        mock_session.flush.side_effect = OperationalError("INSERT", {}, Exception("constraint"))

        with pytest.raises(DatabaseError):
            await BaseRepository(mock_session, ReviewTask).create(document_id=uuid4(), user_id="user-1", status="new")

    @pytest.mark.asyncio
    async def test_missing_row_is_none(self, mock_session):
        mock_session.execute.return_value = result_with(scalar=None)

        assert await BaseRepository(mock_session, ReviewTask).get_by_id(uuid4()) is None


class TestReviewRepositories:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("requested, expected", [(0, 1), (50, 50), (5000, 200)])
    async def test_task_page_is_clamped(self, mock_session, requested, expected):
        mock_session.execute.return_value = result_with()

        await ReviewTaskRepository(mock_session).list_for_user("user-1", limit=requested)

        statement = mock_session.execute.await_args.args[0]
        assert compiled(statement).endswith(f"LIMIT {expected}")

    @pytest.mark.asyncio
    async def test_status_filter(self, mock_session):
        mock_session.execute.return_value = result_with()

        await ReviewTaskRepository(mock_session).list_for_user("user-1", status="approved")

        assert "review_tasks.status = 'approved'" in compiled(mock_session.execute.await_args.args[0])

    @pytest.mark.asyncio
    async def test_events_are_only_appended(self, mock_session):
        task_id = uuid4()

        event = await ReviewEventRepository(mock_session).append(task_id, "user-1", "review.approved", {"a": 1})

        assert isinstance(event, ReviewTaskEvent)
        assert event.event_type == "review.approved"
        assert event.payload == {"a": 1}
        mock_session.add.assert_called_once_with(event)


class TestDocumentRepository:
    @pytest.mark.asyncio
    async def test_result_is_only_stored_on_own_document(self, mock_session):
        mock_session.execute.return_value = result_with(scalar=None)

        stored = await DocumentRepository(mock_session).save_office_result(
            uuid4(), "mallory", status="approved", document_domain="office_it", doc_type="invoice", extracted_data={}
        )

        statement = mock_session.execute.await_args.args[0].compile(dialect=postgresql.dialect())
        assert stored is None
        assert "documents.user_id = " in str(statement)
        assert "mallory" in statement.params.values()
        mock_session.flush.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_creation_time_is_scoped_to_owner(self, mock_session):
        mock_session.execute.return_value = result_with(scalar=None)

        assert await DocumentRepository(mock_session).get_created_at(uuid4(), "mallory") is None

        statement = mock_session.execute.await_args.args[0].compile(dialect=postgresql.dialect())
        assert "documents.user_id = " in str(statement)
        assert "mallory" in statement.params.values()


class TestSlaRuleRepository:
    @pytest.mark.asyncio
    async def test_upsert_creates_missing_rule(self, mock_session):
        mock_session.execute.return_value = result_with(scalar=None)

        rule = await SlaRuleRepository(mock_session).upsert_rule("user-1", "invoice", 30, 120)

        assert isinstance(rule, SlaRule)
        assert (rule.warning_minutes, rule.breach_minutes, rule.enabled) == (30, 120, True)
        mock_session.add.assert_called_once_with(rule)

    @pytest.mark.asyncio
    async def test_upsert_updates_existing_rule(self, mock_session):
        existing = SlaRule(user_id="user-1", doc_type="invoice", warning_minutes=60, breach_minutes=240, enabled=True)
        mock_session.execute.return_value = result_with(scalar=existing)

        rule = await SlaRuleRepository(mock_session).upsert_rule("user-1", "invoice", 10, 20, enabled=False)

        assert rule is existing
        assert (rule.warning_minutes, rule.breach_minutes, rule.enabled) == (10, 20, False)
        mock_session.add.assert_not_called()


@pytest.mark.asyncio
async def test_usage_cost_is_stored_as_decimal(mock_session):
    row = await UsageRepository(mock_session).record(
        user_id="user-1",
        model_id="gpt-5.2",
        provider="openai",
        input_tokens=1000,
        output_tokens=500,
        cost_sek=0.125,
        processing_time_ms=1200,
        success=True,
    )

    assert isinstance(row, UsageRecord)
    assert row.cost_sek == Decimal("0.125")

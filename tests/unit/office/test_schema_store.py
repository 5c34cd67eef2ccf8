"""Tests for schema versioning and published schema resolution."""

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from typing import Dict, List, Optional, Tuple
from uuid import UUID, uuid4

import pytest

from docintel.core.exceptions import NotFoundError, ValidationError
from docintel.models.office import (
    DocType,
    SchemaFieldDefinition,
    SchemaFieldType,
    SchemaTemplateDefinition,
)
from docintel.services.office.schema_store import SchemaStoreService, build_default_schema


class InMemoryTemplates:
    def __init__(self):
        self.rows: Dict[UUID, SimpleNamespace] = {}
        self._clock = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def tick(self) -> datetime:
        self._clock += timedelta(seconds=1)
        return self._clock

    async def get_for_user(self, schema_id: UUID, user_id: str) -> Optional[SimpleNamespace]:
        row = self.rows.get(schema_id)
        return row if row is not None and row.user_id == user_id else None

    async def get_published_by_id(self, schema_id: UUID, user_id: str) -> Optional[SimpleNamespace]:
        row = await self.get_for_user(schema_id, user_id)
        return row if row is not None and row.status == "published" else None

    async def get_latest_published(self, user_id: str, doc_type: str) -> Optional[SimpleNamespace]:
        candidates = [
            r for r in self.rows.values() if r.user_id == user_id and r.doc_type == doc_type and r.status == "published"
        ]
        return max(candidates, key=lambda r: r.updated_at) if candidates else None

    async def list_for_user(self, user_id: str) -> List[SimpleNamespace]:
        return [r for r in self.rows.values() if r.user_id == user_id]

    async def create_template(self, user_id: str, name: str, doc_type: str) -> SimpleNamespace:
        row = SimpleNamespace(
            id=uuid4(),
            user_id=user_id,
            name=name,
            doc_type=doc_type,
            document_domain="office_it",
            status="draft",
            current_version=1,
            updated_at=self.tick(),
        )
        self.rows[row.id] = row
        return row


class InMemoryVersions:
    def __init__(self):
        self.rows: Dict[Tuple[UUID, int], SimpleNamespace] = {}

    async def create_version(self, schema_id: UUID, version: int, definition: dict, created_by: str) -> SimpleNamespace:
        row = SimpleNamespace(
            id=uuid4(),
            schema_id=schema_id,
            version=version,
            definition=definition,
            created_by=created_by,
            published_at=None,
        )
        self.rows[(schema_id, version)] = row
        return row

    async def get_version(self, schema_id: UUID, version: int) -> Optional[SimpleNamespace]:
        return self.rows.get((schema_id, version))

    async def mark_published(self, schema_id: UUID, version: int, published_at: datetime) -> Optional[SimpleNamespace]:
        row = self.rows.get((schema_id, version))
        if row is not None:
            row.published_at = published_at
        return row


def invoice_schema(*keys: str) -> SchemaTemplateDefinition:
    return SchemaTemplateDefinition(
        doc_type=DocType.INVOICE,
        fields=[SchemaFieldDefinition(key=key, label=key.title(), required=True) for key in keys],
    )


@pytest.fixture
def store(mock_session) -> SchemaStoreService:
    service = SchemaStoreService(mock_session)
    service.template_repository = InMemoryTemplates()
    service.version_repository = InMemoryVersions()
    return service


class TestDefaultSchema:
    def test_shape(self):
        schema = build_default_schema(DocType.PO)

        keys = [field.key for field in schema.fields]
        assert schema.doc_type == DocType.PO
        assert keys == ["document_id", "supplier", "customer", "date", "due_date", "amount", "currency", "status"]
        assert schema.fields[0].required is True
        assert schema.fields[0].type == SchemaFieldType.ID_REF
        assert [t.key for t in schema.tables] == ["line_items"]
        assert schema.rules[0].expression == {"type": "required", "field": "date"}

    @pytest.mark.asyncio
    async def test_nothing_published_uses_default(self, store):
        resolved = await store.get_published_schema("user-1", DocType.NDA)

        assert resolved.is_default is True
        assert resolved.schema_id is None
        assert resolved.version == 1
        assert resolved.definition.doc_type == DocType.NDA


class TestPublishing:
    @pytest.mark.asyncio
    async def test_publish_round_trip(self, store):
        template = await store.create_schema("user-1", "  Supplier invoices ", invoice_schema("supplier"))
        assert template.name == "Supplier invoices"

        # Drafts are not used for extraction
        assert (await store.get_published_schema("user-1", DocType.INVOICE)).is_default is True

        await store.publish(template.id, "user-1")
        resolved = await store.get_published_schema("user-1", DocType.INVOICE)

        assert resolved.is_default is False
        assert resolved.schema_id == template.id
        assert resolved.version == 1
        assert [f.key for f in resolved.definition.fields] == ["supplier"]
        assert store.version_repository.rows[(template.id, 1)].published_at is not None

    @pytest.mark.asyncio
    async def test_other_users_schema_is_invisible(self, store):
        template = await store.create_schema("user-1", "Invoices", invoice_schema("supplier"))
        await store.publish(template.id, "user-1")

        assert (await store.get_published_schema("user-2", DocType.INVOICE)).is_default is True
        with pytest.raises(NotFoundError):
            await store.publish(template.id, "user-2")

    @pytest.mark.asyncio
    async def test_new_version_increments_and_keeps_history(self, store):
        template = await store.create_schema("user-1", "Invoices", invoice_schema("supplier"))

        row = await store.add_version(template.id, "user-1", invoice_schema("supplier", "amount"))

        assert row.version == 2
        assert template.current_version == 2
        assert len((await store.get_version(template.id, "user-1", 1)).fields) == 1
        assert len((await store.get_version(template.id, "user-1", 2)).fields) == 2

    @pytest.mark.asyncio
    async def test_new_version_keeps_schema_doc_type(self, store):
        template = await store.create_schema("user-1", "Invoices", invoice_schema("supplier"))
        other_type = SchemaTemplateDefinition(doc_type=DocType.PO)

        row = await store.add_version(template.id, "user-1", other_type)

        assert row.definition["doc_type"] == "invoice"
        assert row.definition["version"] == 2

    @pytest.mark.asyncio
    async def test_missing_version(self, store):
        template = await store.create_schema("user-1", "Invoices", invoice_schema("supplier"))

        with pytest.raises(NotFoundError):
            await store.get_version(template.id, "user-1", 7)

    @pytest.mark.asyncio
    async def test_blank_name_rejected(self, store):
        with pytest.raises(ValidationError):
            await store.create_schema("user-1", "   ", invoice_schema("supplier"))

    @pytest.mark.asyncio
    async def test_most_recently_updated_published_schema_wins(self, store):
        older = await store.create_schema("user-1", "Old", invoice_schema("supplier"))
        newer = await store.create_schema("user-1", "New", invoice_schema("customer"))
        await store.publish(older.id, "user-1")
        await store.publish(newer.id, "user-1")
        older.updated_at = newer.updated_at + timedelta(seconds=1)

        resolved = await store.get_published_schema("user-1", DocType.INVOICE)

        assert resolved.schema_id == older.id


class TestBrokenSchemas:
    @pytest.mark.asyncio
    async def test_invalid_stored_definition_falls_back(self, store):
        template = await store.create_schema("user-1", "Invoices", invoice_schema("supplier"))
        await store.publish(template.id, "user-1")
        store.version_repository.rows[(template.id, 1)].definition = {"fields": "not-a-list"}

        resolved = await store.get_published_schema("user-1", DocType.INVOICE)

        assert resolved.is_default is True
        assert resolved.schema_id == template.id

    @pytest.mark.asyncio
    async def test_pinned_schema_must_be_published(self, store):
        template = await store.create_schema("user-1", "Invoices", invoice_schema("supplier"))

        resolved = await store.get_published_schema("user-1", DocType.INVOICE, schema_id=template.id)

        assert resolved.is_default is True
        assert resolved.schema_id is None

    @pytest.mark.asyncio
    async def test_pinned_schema_is_used_for_any_type(self, store):
        template = await store.create_schema("user-1", "Contracts", invoice_schema("party_a"))
        await store.publish(template.id, "user-1")

        resolved = await store.get_published_schema("user-1", DocType.CONTRACT, schema_id=template.id)

        assert resolved.schema_id == template.id
        assert resolved.definition.fields[0].key == "party_a"

"""Versioned field/table schemas per (user, document type)."""

from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from docintel.core.exceptions import NotFoundError, ValidationError
from docintel.database.models import SchemaTemplate, SchemaTemplateVersion
from docintel.models.office import (
    DocType,
    ResolvedSchema,
    RuleSeverity,
    SchemaFieldDefinition,
    SchemaFieldType,
    SchemaRuleDefinition,
    SchemaStatus,
    SchemaTableDefinition,
    SchemaTemplateDefinition,
)
from docintel.repositories.schema_repository import SchemaTemplateRepository, SchemaVersionRepository
from docintel.utils.logging import get_logger

LOGGER = get_logger(__name__)


def build_default_schema(doc_type: DocType) -> SchemaTemplateDefinition:
    """In-memory schema used whenever nothing is published for a type."""
    return SchemaTemplateDefinition(
        version=1,
        doc_type=doc_type,
        fields=[
            SchemaFieldDefinition(key="document_id", label="Document ID", type=SchemaFieldType.ID_REF, required=True),
            SchemaFieldDefinition(key="supplier", label="Supplier"),
            SchemaFieldDefinition(key="customer", label="Customer"),
            SchemaFieldDefinition(key="date", label="Date", type=SchemaFieldType.DATE),
            SchemaFieldDefinition(key="due_date", label="Due Date", type=SchemaFieldType.DATE),
            SchemaFieldDefinition(key="amount", label="Amount", type=SchemaFieldType.CURRENCY),
            SchemaFieldDefinition(
                key="currency",
                label="Currency",
                type=SchemaFieldType.ENUM,
                enum_values=["SEK", "EUR", "USD"],
            ),
            SchemaFieldDefinition(key="status", label="Status"),
        ],
        tables=[
            SchemaTableDefinition(
                key="line_items",
                label="Line items",
                fields=[
                    SchemaFieldDefinition(key="description", label="Description"),
                    SchemaFieldDefinition(key="quantity", label="Quantity", type=SchemaFieldType.NUMBER),
                    SchemaFieldDefinition(key="unit_price", label="Unit price", type=SchemaFieldType.CURRENCY),
                    SchemaFieldDefinition(key="amount", label="Amount", type=SchemaFieldType.CURRENCY),
                ],
            )
        ],
        rules=[
            SchemaRuleDefinition(
                key="required_date",
                severity=RuleSeverity.BLOCKING,
                expression={"type": "required", "field": "date"},
                message="Document date is required",
            )
        ],
    )


class SchemaStoreService:
    """Resolves the published schema for extraction and manages versions.

    Version rows are never modified after insert, apart from the
    ``published_at`` stamp. Publishing moves the template's status; the
    version to use is always the template's ``current_version``.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.template_repository = SchemaTemplateRepository(session)
        self.version_repository = SchemaVersionRepository(session)

    async def get_published_schema(
        self,
        user_id: str,
        doc_type: DocType,
        schema_id: Optional[UUID] = None,
    ) -> ResolvedSchema:
        """Pick the schema an extraction run should use.

        Args:
            user_id: Schema owner
            doc_type: Document type being extracted
            schema_id: Pinned schema (from a classification rule); looked up
                instead of the type when given

        Returns:
            ResolvedSchema: The published definition, or the default schema
            when nothing usable is published. Never raises for missing
            configuration.
        """
        if schema_id is not None:
            template = await self.template_repository.get_published_by_id(schema_id, user_id)
        else:
            template = await self.template_repository.get_latest_published(user_id, doc_type.value)

        if template is None:
            LOGGER.info(
                "No published schema, using default",
                extra={"user_id": user_id, "doc_type": doc_type.value, "schema_id": str(schema_id) if schema_id else None},
            )
            return ResolvedSchema(definition=build_default_schema(doc_type), version=1, is_default=True)

        version = template.current_version or 1
        row = await self.version_repository.get_version(template.id, version)
        definition = self._parse_definition(row, template)
        if definition is None:
            return ResolvedSchema(
                schema_id=template.id,
                version=version,
                definition=build_default_schema(doc_type),
                is_default=True,
            )

        return ResolvedSchema(schema_id=template.id, version=version, definition=definition)

    @staticmethod
    def _parse_definition(
        row: Optional[SchemaTemplateVersion], template: SchemaTemplate
    ) -> Optional[SchemaTemplateDefinition]:
        if row is None or not row.definition:
            LOGGER.warning(
                "Published schema has no definition for its current version",
                extra={"schema_id": str(template.id), "version": template.current_version},
            )
            return None
        try:
            return SchemaTemplateDefinition.model_validate(row.definition)
        except PydanticValidationError:
            LOGGER.warning(
                "Stored schema definition is invalid",
                exc_info=True,
                extra={"schema_id": str(template.id), "version": row.version},
            )
            return None

    async def _owned_template(self, schema_id: UUID, user_id: str) -> SchemaTemplate:
        template = await self.template_repository.get_for_user(schema_id, user_id)
        if template is None:
            raise NotFoundError("Schema", schema_id)
        return template

    async def create_schema(
        self,
        user_id: str,
        name: str,
        definition: SchemaTemplateDefinition,
    ) -> SchemaTemplate:
        """Create a draft schema whose first version is ``definition``."""
        if not name or not name.strip():
            raise ValidationError("Schema name is required")

        template = await self.template_repository.create_template(user_id, name.strip(), definition.doc_type.value)
        stored = definition.model_copy(update={"version": 1})
        await self.version_repository.create_version(
            template.id, 1, stored.model_dump(mode="json"), created_by=user_id
        )
        return template

    async def add_version(
        self,
        schema_id: UUID,
        user_id: str,
        definition: SchemaTemplateDefinition,
    ) -> SchemaTemplateVersion:
        """Append a version and point the schema at it.

        The definition's doc type is forced to the schema's own type.
        """
        template = await self._owned_template(schema_id, user_id)
        next_version = (template.current_version or 0) + 1
        stored = definition.model_copy(update={"version": next_version, "doc_type": DocType(template.doc_type)})

        row = await self.version_repository.create_version(
            template.id, next_version, stored.model_dump(mode="json"), created_by=user_id
        )
        template.current_version = next_version
        template.updated_at = datetime.now(timezone.utc)
        return row

    async def publish(self, schema_id: UUID, user_id: str) -> SchemaTemplate:
        template = await self._owned_template(schema_id, user_id)
        now = datetime.now(timezone.utc)

        template.status = SchemaStatus.PUBLISHED.value
        template.updated_at = now
        await self.version_repository.mark_published(template.id, template.current_version, now)

        LOGGER.info(
            "Schema published",
            extra={"schema_id": str(template.id), "version": template.current_version, "doc_type": template.doc_type},
        )
        return template

    async def list_schemas(self, user_id: str) -> List[SchemaTemplate]:
        return await self.template_repository.list_for_user(user_id)

    async def get_version(self, schema_id: UUID, user_id: str, version: int) -> SchemaTemplateDefinition:
        template = await self._owned_template(schema_id, user_id)
        row = await self.version_repository.get_version(template.id, version)
        if row is None:
            raise NotFoundError("Schema version", f"{schema_id}@{version}")
        return SchemaTemplateDefinition.model_validate(row.definition)

"""Repositories for schema templates and their immutable versions."""

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from docintel.database.models import SchemaTemplate, SchemaTemplateVersion
from docintel.models.office import DOCUMENT_DOMAIN, SchemaStatus
from docintel.repositories.base_repository import BaseRepository
from docintel.utils.logging import get_logger

LOGGER = get_logger(__name__)


class SchemaTemplateRepository(BaseRepository[SchemaTemplate]):
    def __init__(self, session: AsyncSession):
        super().__init__(session, SchemaTemplate)

    async def get_for_user(self, schema_id: UUID, user_id: str) -> Optional[SchemaTemplate]:
        return await self.fetch_one(
            select(SchemaTemplate).where(SchemaTemplate.id == schema_id, SchemaTemplate.user_id == user_id)
        )

    async def get_published_by_id(self, schema_id: UUID, user_id: str) -> Optional[SchemaTemplate]:
        return await self.fetch_one(
            select(SchemaTemplate).where(
                SchemaTemplate.id == schema_id,
                SchemaTemplate.user_id == user_id,
                SchemaTemplate.status == SchemaStatus.PUBLISHED.value,
            )
        )

    async def get_latest_published(self, user_id: str, doc_type: str) -> Optional[SchemaTemplate]:
        """Most recently updated published schema for a document type.

        Args:
            user_id: Schema owner
            doc_type: Document type the schema targets

        Returns:
            The schema row, or None when nothing is published
        """
        query = (
            select(SchemaTemplate)
            .where(
                SchemaTemplate.user_id == user_id,
                SchemaTemplate.doc_type == doc_type,
                SchemaTemplate.status == SchemaStatus.PUBLISHED.value,
            )
            .order_by(SchemaTemplate.updated_at.desc())
            .limit(1)
        )
        return await self.fetch_one(query)

    async def list_for_user(self, user_id: str) -> List[SchemaTemplate]:
        query = (
            select(SchemaTemplate)
            .where(SchemaTemplate.user_id == user_id, SchemaTemplate.document_domain == DOCUMENT_DOMAIN)
            .order_by(SchemaTemplate.updated_at.desc())
        )
        return await self.fetch_all(query)

    async def create_template(self, user_id: str, name: str, doc_type: str) -> SchemaTemplate:
        template = SchemaTemplate(
            user_id=user_id,
            name=name,
            doc_type=doc_type,
            document_domain=DOCUMENT_DOMAIN,
            status=SchemaStatus.DRAFT.value,
            current_version=1,
        )
        await self.add(template)

        LOGGER.info("Schema template created", extra={"schema_id": str(template.id), "doc_type": doc_type})
        return template


class SchemaVersionRepository(BaseRepository[SchemaTemplateVersion]):
    """Version rows are insert-only; only ``published_at`` is ever stamped."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, SchemaTemplateVersion)

    async def create_version(
        self,
        schema_id: UUID,
        version: int,
        definition: Dict[str, Any],
        created_by: Optional[str] = None,
    ) -> SchemaTemplateVersion:
        row = SchemaTemplateVersion(
            schema_id=schema_id,
            version=version,
            definition=definition,
            created_by=created_by,
        )
        await self.add(row)

        LOGGER.info("Schema version created", extra={"schema_id": str(schema_id), "version": version})
        return row

    async def get_version(self, schema_id: UUID, version: int) -> Optional[SchemaTemplateVersion]:
        return await self.fetch_one(
            select(SchemaTemplateVersion).where(
                SchemaTemplateVersion.schema_id == schema_id,
                SchemaTemplateVersion.version == version,
            )
        )

    async def mark_published(self, schema_id: UUID, version: int, published_at: datetime) -> Optional[SchemaTemplateVersion]:
        row = await self.get_version(schema_id, version)
        if row is None:
            return None
        row.published_at = published_at
        await self.flush()
        return row

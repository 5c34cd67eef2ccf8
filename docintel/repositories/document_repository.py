from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from docintel.database.models import Document
from docintel.repositories.base_repository import BaseRepository
from docintel.utils.logging import get_logger

LOGGER = get_logger(__name__)


class DocumentRepository(BaseRepository[Document]):
    """Uploaded documents. Only the fields the office flow reads or writes."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Document)

    async def get_for_user(self, document_id: UUID, user_id: str) -> Optional[Document]:
        return await self.fetch_one(
            select(Document).where(Document.id == document_id, Document.user_id == user_id)
        )

    async def get_owner(self, document_id: UUID) -> Optional[str]:
        return await self.fetch_one(select(Document.user_id).where(Document.id == document_id))

    async def get_created_at(self, document_id: UUID, user_id: str) -> Optional[datetime]:
        return await self.fetch_one(
            select(Document.created_at).where(Document.id == document_id, Document.user_id == user_id)
        )

    async def save_office_result(
        self,
        document_id: UUID,
        user_id: str,
        status: str,
        document_domain: str,
        doc_type: str,
        extracted_data: Dict[str, Any],
    ) -> Optional[Document]:
        """Store the office extraction on the user's document row, if it exists."""
        document = await self.get_for_user(document_id, user_id)
        if document is None:
            LOGGER.warning("Document row missing, result not stored", extra={"document_id": str(document_id)})
            return None
        document.status = status
        document.document_domain = document_domain
        document.doc_type = doc_type
        document.extracted_data = extracted_data
        await self.flush()
        return document

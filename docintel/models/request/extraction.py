"""Request bodies for the row extraction endpoint."""

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from docintel.models.extraction import ContentKind, ExtractionRequest


class ExtractRowsRequest(BaseModel):
    """Text or TSV content to extract line items from.

    Attributes:
        content: Table text, usually a spreadsheet exported as TSV
        filename: Source filename; a date in it helps the model
        content_kind: Only spreadsheet text is accepted over JSON
        model_id: Catalog model to use instead of the user's preference
        custom_instructions: Extra prompt instructions for this call
        document_id: Document the usage should be recorded against
    """

    model_config = ConfigDict(protected_namespaces=())

    content: str = Field(..., min_length=1, description="Table text to extract rows from")
    filename: str = Field(..., min_length=1, examples=["report_2024-03-01.xlsx"])
    content_kind: ContentKind = Field(default=ContentKind.SPREADSHEET)
    model_id: Optional[str] = Field(default=None, examples=["gemini-3-flash"])
    custom_instructions: Optional[str] = None
    document_id: Optional[UUID] = None

    def to_extraction_request(self) -> ExtractionRequest:
        return ExtractionRequest(
            content=self.content,
            content_kind=self.content_kind,
            filename=self.filename,
            custom_instructions=self.custom_instructions,
        )

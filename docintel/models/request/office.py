"""Request bodies for the office document endpoints."""

from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from docintel.models.office import DocType, ReviewTaskStatus, SchemaTemplateDefinition


class ProcessDocumentRequest(BaseModel):
    filename: str = Field(..., min_length=1, examples=["faktura_1042.pdf"])
    raw_text: str = Field(..., description="Text content of the document")


class CreateSchemaRequest(BaseModel):
    name: str = Field(..., min_length=1, examples=["Supplier invoices"])
    definition: SchemaTemplateDefinition


class UpdateSchemaRequest(BaseModel):
    """A new version of an existing schema."""

    definition: SchemaTemplateDefinition


class AssignReviewRequest(BaseModel):
    document_id: UUID
    assigned_to: str = Field(..., min_length=1)
    due_at: Optional[datetime] = None
    notes: Optional[str] = None


class TransitionReviewRequest(BaseModel):
    status: ReviewTaskStatus
    note: Optional[str] = None
    payload: Dict[str, Any] = Field(default_factory=dict)


class SlaRuleRequest(BaseModel):
    doc_type: DocType
    warning_minutes: int = Field(..., ge=0, examples=[60])
    breach_minutes: int = Field(..., ge=0, examples=[240])
    enabled: bool = True

    @model_validator(mode="after")
    def check_order(self) -> "SlaRuleRequest":
        if self.warning_minutes > self.breach_minutes:
            raise ValueError("warning_minutes must not exceed breach_minutes")
        return self

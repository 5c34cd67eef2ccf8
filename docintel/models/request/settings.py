"""Request bodies for user settings, provider keys and classification rules."""

from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from docintel.models.office import ClassificationRuleConditions, ClassificationRuleSpec, DocType


class UpdatePreferencesRequest(BaseModel):
    """Preferences to change. Fields left out keep their stored value."""

    model_config = ConfigDict(protected_namespaces=())

    preferred_model: Optional[str] = Field(default=None, examples=["gemini-3-flash"])
    custom_instructions: Optional[str] = None
    auto_approve_threshold: Optional[int] = Field(default=None, ge=0, le=100)
    review_due_at: Optional[datetime] = None
    contact_email: Optional[str] = Field(default=None, examples=["ops@example.com"])
    material_synonyms: Optional[Dict[str, List[str]]] = None
    known_receivers: Optional[List[str]] = None
    extraction_max_tokens: Optional[int] = Field(default=None, gt=0)


class StoreApiKeyRequest(BaseModel):
    api_key: str = Field(..., min_length=1)


class CreateClassificationRuleRequest(BaseModel):
    name: Optional[str] = None
    priority: int = Field(default=100, examples=[10])
    conditions: ClassificationRuleConditions
    target_doc_type: Optional[DocType] = None
    target_schema_id: Optional[UUID] = None

    @model_validator(mode="after")
    def check_conditions(self) -> "CreateClassificationRuleRequest":
        if not self.conditions.filename_pattern and not self.conditions.keyword:
            raise ValueError("A rule needs a filename_pattern or a keyword")
        return self

    def to_spec(self) -> ClassificationRuleSpec:
        return ClassificationRuleSpec(
            priority=self.priority,
            conditions=self.conditions,
            target_doc_type=self.target_doc_type,
            target_schema_id=self.target_schema_id,
        )

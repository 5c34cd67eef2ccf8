"""Response models for the office document endpoints.

Built from ORM rows with ``from_attributes``.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class SchemaResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    doc_type: str
    document_domain: str
    status: str
    current_version: int
    updated_at: Optional[datetime] = None


class SchemaVersionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    schema_id: UUID
    version: int
    definition: Dict[str, Any]
    published_at: Optional[datetime] = None


class ReviewTaskResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    document_id: UUID
    status: str
    assigned_to: Optional[str] = None
    due_at: Optional[datetime] = None
    notes: Optional[str] = None
    updated_at: Optional[datetime] = None


class ReviewEventResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    task_id: UUID
    user_id: str
    event_type: str
    payload: Dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[datetime] = None


class ReviewHistoryResponse(BaseModel):
    task_id: UUID
    current_status: str = Field(..., description="Status folded from the event log")
    events: List[ReviewEventResponse]


class SlaRuleResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    doc_type: str
    warning_minutes: int
    breach_minutes: int
    enabled: bool


class SlaEvaluationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    document_id: UUID
    task_id: Optional[UUID] = None
    doc_type: str
    risk_level: str
    reason: str
    created_at: Optional[datetime] = None


class ClassificationRuleResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: Optional[str] = None
    priority: int
    conditions: Dict[str, Any]
    target_doc_type: Optional[str] = None
    target_schema_id: Optional[UUID] = None
    is_active: bool

"""Data models for the office document flow."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

DOCUMENT_DOMAIN = "office_it"


class DocType(str, Enum):
    INVOICE = "invoice"
    PO = "po"
    CREDIT_NOTE = "credit_note"
    RECEIPT = "receipt"
    CONTRACT = "contract"
    NDA = "nda"
    EMPLOYMENT_AGREEMENT = "employment_agreement"
    TICKET_INCIDENT = "ticket_incident"
    TICKET_CHANGE = "ticket_change"
    UNKNOWN_OFFICE = "unknown_office"


COMMERCIAL_DOC_TYPES = frozenset({DocType.INVOICE, DocType.PO, DocType.CREDIT_NOTE, DocType.RECEIPT})
AGREEMENT_DOC_TYPES = frozenset({DocType.CONTRACT, DocType.NDA, DocType.EMPLOYMENT_AGREEMENT})
TICKET_DOC_TYPES = frozenset({DocType.TICKET_INCIDENT, DocType.TICKET_CHANGE})


class DecisionSource(str, Enum):
    MODEL = "model"
    RULE_OVERRIDE = "rule_override"
    FALLBACK = "fallback"


class SchemaFieldType(str, Enum):
    TEXT = "text"
    LONG_TEXT = "long_text"
    NUMBER = "number"
    CURRENCY = "currency"
    DATE = "date"
    DATETIME = "datetime"
    BOOLEAN = "boolean"
    ENUM = "enum"
    EMAIL = "email"
    PHONE = "phone"
    ORG_NUMBER = "org_number"
    IBAN = "iban"
    BG_PG = "bg_pg"
    ID_REF = "id_ref"


class RuleSeverity(str, Enum):
    WARNING = "warning"
    BLOCKING = "blocking"


class SchemaStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class ReviewTaskStatus(str, Enum):
    NEW = "new"
    ASSIGNED = "assigned"
    IN_REVIEW = "in_review"
    CHANGES_REQUESTED = "changes_requested"
    APPROVED = "approved"
    REJECTED = "rejected"


TERMINAL_REVIEW_STATUSES = frozenset({ReviewTaskStatus.APPROVED, ReviewTaskStatus.REJECTED})


class SlaRiskLevel(str, Enum):
    NONE = "none"
    WARNING = "warning"
    BREACH = "breach"


class SchemaFieldDefinition(BaseModel):
    key: str
    label: str
    type: SchemaFieldType = SchemaFieldType.TEXT
    required: bool = False
    enum_values: List[str] = Field(default_factory=list)
    validators: List[str] = Field(default_factory=list)
    aliases: List[str] = Field(default_factory=list)


class SchemaTableDefinition(BaseModel):
    key: str
    label: str
    fields: List[SchemaFieldDefinition] = Field(default_factory=list)


class SchemaRuleDefinition(BaseModel):
    key: str
    severity: RuleSeverity
    expression: Dict[str, Any] = Field(
        default_factory=dict,
        description='Rule expression, e.g. {"type": "required", "field": "date"}',
    )
    message: str


class SchemaTemplateDefinition(BaseModel):
    """One immutable version of a document schema."""

    version: int = Field(default=1, ge=1)
    doc_type: DocType
    fields: List[SchemaFieldDefinition] = Field(default_factory=list)
    tables: List[SchemaTableDefinition] = Field(default_factory=list)
    rules: List[SchemaRuleDefinition] = Field(default_factory=list)


class ResolvedSchema(BaseModel):
    """Schema selected for a run, including where it came from."""

    schema_id: Optional[UUID] = None
    version: int = 1
    definition: SchemaTemplateDefinition
    is_default: bool = False


class ClassificationRuleConditions(BaseModel):
    filename_pattern: Optional[str] = None
    keyword: Optional[str] = None


class ClassificationRuleSpec(BaseModel):
    """Read-only view of a user-defined override rule."""

    id: Optional[UUID] = None
    priority: int = 100
    conditions: ClassificationRuleConditions = Field(default_factory=ClassificationRuleConditions)
    target_doc_type: Optional[DocType] = None
    target_schema_id: Optional[UUID] = None


class ClassificationDecision(BaseModel):
    model_config = ConfigDict(frozen=True, protected_namespaces=())

    model_doc_type: DocType
    model_confidence: float = Field(..., ge=0, le=1)
    rule_doc_type: Optional[DocType] = None
    final_doc_type: DocType
    schema_id: Optional[UUID] = None
    decision_source: DecisionSource
    matched_rule_id: Optional[UUID] = None


class ValidationOutcome(BaseModel):
    completeness: int = Field(default=0, ge=0, le=100)
    confidence: int = Field(default=0, ge=0, le=100)
    blocking_issues: List[str] = Field(default_factory=list)
    warning_issues: List[str] = Field(default_factory=list)


class OfficeExtractionResult(BaseModel):
    document_domain: str = DOCUMENT_DOMAIN
    doc_type: DocType
    schema_id: Optional[UUID] = None
    schema_version: int = 1
    classification: ClassificationDecision
    fields: Dict[str, Any] = Field(default_factory=dict)
    tables: Dict[str, List[Dict[str, Any]]] = Field(default_factory=dict)
    links: Dict[str, Optional[str]] = Field(default_factory=dict)
    status_signals: Dict[str, Any] = Field(default_factory=dict)
    validation: ValidationOutcome = Field(default_factory=ValidationOutcome)
    raw_text: str = ""


class ReviewTaskSummary(BaseModel):
    id: UUID
    document_id: UUID
    status: ReviewTaskStatus
    assigned_to: Optional[str] = None
    due_at: Optional[datetime] = None


class SlaOutcome(BaseModel):
    document_id: UUID
    task_id: Optional[UUID] = None
    doc_type: str
    risk_level: SlaRiskLevel
    reason: str
    age_minutes: Optional[int] = None
    warning_minutes: int
    breach_minutes: int


class OfficeProcessingOutcome(BaseModel):
    """Everything one processing run decided, step by step."""

    document_id: UUID
    status: str = Field(..., description="approved | needs_review")
    should_approve: bool
    classification: ClassificationDecision
    schema_selection: ResolvedSchema
    result: OfficeExtractionResult
    review_task: ReviewTaskSummary
    sla: SlaOutcome

"""Data models for the row-based extraction flow."""

from enum import Enum
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from docintel.core.exceptions import ExtractionErrorCategory


class ContentKind(str, Enum):
    """Kind of content handed to an adapter."""

    SPREADSHEET = "spreadsheet"
    PDF = "pdf"
    IMAGE = "image"


class KeySource(str, Enum):
    """Whose credential paid for a provider call."""

    BYOK = "byok"
    PLATFORM = "platform"


class ExtractionSettings(BaseModel):
    """Per-user tuning passed along with a request."""

    model_config = ConfigDict(frozen=True)

    material_synonyms: Dict[str, List[str]] = Field(
        default_factory=dict,
        description="Standard material name mapped to the synonyms found in documents",
    )
    known_receivers: List[str] = Field(default_factory=list)
    extraction_max_tokens: Optional[int] = Field(default=None, gt=0)


class ExtractionRequest(BaseModel):
    """One extraction call. Immutable; the router derives copies instead of mutating."""

    model_config = ConfigDict(frozen=True)

    content: Union[str, bytes]
    content_kind: ContentKind
    filename: str
    custom_instructions: Optional[str] = None
    settings: ExtractionSettings = Field(default_factory=ExtractionSettings)

    @property
    def is_binary(self) -> bool:
        return isinstance(self.content, bytes) and self.content_kind != ContentKind.SPREADSHEET

    @property
    def table_text(self) -> str:
        """Text placed in the prompt's table section."""
        if self.is_binary:
            return f"(Document content attached as {self.content_kind.value})"
        if isinstance(self.content, bytes):
            return self.content.decode("utf-8", errors="replace")
        return self.content

    @property
    def default_receiver(self) -> str:
        receivers = self.settings.known_receivers
        return receivers[0] if receivers else "Unknown"


class ExtractedRow(BaseModel):
    """A normalized line item produced by an adapter."""

    date: str = ""
    location: str = ""
    material: str = ""
    weight_kg: float = Field(default=0.0, ge=0)
    unit: str = Field(default="kg", min_length=1)
    receiver: str = ""
    is_hazardous: bool = False
    confidence: Optional[float] = Field(default=None, ge=0, le=1)


class TokenUsage(BaseModel):
    input: int = 0
    output: int = 0

    @property
    def total(self) -> int:
        return self.input + self.output


class VatInfo(BaseModel):
    rate: Optional[int] = None
    amount: Optional[float] = None
    is_inclusive: bool = False


class LocaleMetadata(BaseModel):
    """Swedish business identifiers found in a provider response."""

    org_numbers: List[str] = Field(default_factory=list)
    plusgiro: List[str] = Field(default_factory=list)
    bankgiro: List[str] = Field(default_factory=list)
    ocr_references: List[str] = Field(default_factory=list)
    vat_numbers: List[str] = Field(default_factory=list)
    vat_info: VatInfo = Field(default_factory=VatInfo)

    @property
    def is_empty(self) -> bool:
        return not (
            self.org_numbers
            or self.plusgiro
            or self.bankgiro
            or self.ocr_references
            or self.vat_numbers
            or self.vat_info.rate is not None
            or self.vat_info.amount is not None
        )


class ExtractionResult(BaseModel):
    """Outcome of one extraction attempt, successful or not."""

    success: bool
    items: List[ExtractedRow] = Field(default_factory=list)
    model: str
    provider: str
    tokens_used: TokenUsage = Field(default_factory=TokenUsage)
    cost: float = Field(default=0.0, description="Estimated cost in USD")
    processing_time_ms: int = 0
    error: Optional[str] = None
    error_category: Optional[ExtractionErrorCategory] = None
    suggestions: List[str] = Field(default_factory=list)
    raw_response: Optional[str] = None
    locale_metadata: Optional[LocaleMetadata] = None
    key_source: Optional[KeySource] = None

"""Per-request configuration values, resolved once and passed down explicitly."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, SecretStr

from docintel.models.catalog import AIModel
from docintel.models.extraction import ExtractionSettings, KeySource


class ResolvedExtractionConfig(BaseModel):
    """Model and credential chosen for one extraction call."""

    model_config = ConfigDict(frozen=True, protected_namespaces=())

    user_id: str
    model: AIModel
    api_key: SecretStr
    key_source: KeySource
    custom_instructions: Optional[str] = None
    extraction_settings: Optional[ExtractionSettings] = None


class ResolvedConfig(BaseModel):
    """Thresholds and contact details for one office processing run."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    auto_approve_threshold: int = 90
    high_confidence_threshold: float = 0.85
    low_confidence_threshold: float = 0.5
    home_currency: str = "SEK"
    review_due_at: Optional[datetime] = None
    contact_email: Optional[str] = None
    raw_text_sample_limit: int = 12000

    @property
    def high_confidence_percent(self) -> int:
        return round(self.high_confidence_threshold * 100)


class ModelAvailability(BaseModel):
    """A catalog entry as seen by one user."""

    model_config = ConfigDict(protected_namespaces=())

    model: AIModel
    available: bool
    key_source: Optional[KeySource] = None

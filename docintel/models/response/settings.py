"""Response models for user settings and provider keys."""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict


class PreferencesResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True, protected_namespaces=())

    preferred_model: Optional[str] = None
    custom_instructions: Optional[str] = None
    auto_approve_threshold: Optional[int] = None
    review_due_at: Optional[datetime] = None
    contact_email: Optional[str] = None
    material_synonyms: Optional[Dict[str, List[str]]] = None
    known_receivers: Optional[List[str]] = None
    extraction_max_tokens: Optional[int] = None


class ApiKeyStatusResponse(BaseModel):
    """Stored key metadata. The key itself is never returned."""

    model_config = ConfigDict(from_attributes=True)

    provider: str
    is_valid: bool
    updated_at: Optional[datetime] = None

"""Platform-managed provider keys."""

from typing import Dict, Mapping, Optional

from docintel.core.config import PlatformKeySettings, settings
from docintel.models.catalog import AIProvider
from docintel.utils.logging import get_logger

LOGGER = get_logger(__name__)

# The anonymous fallback user never gets managed keys
ANONYMOUS_USER_ID = "default"


def is_eligible_for_managed_keys(user_id: Optional[str], enabled: Optional[bool] = None) -> bool:
    """Whether a user may fall back to platform keys."""
    if enabled is None:
        enabled = settings.platform_keys.managed_keys_enabled
    return bool(user_id) and user_id != ANONYMOUS_USER_ID and enabled


class PlatformKeyStore:
    """Read-only provider -> key map."""

    def __init__(self, keys: Optional[Mapping[AIProvider, str]] = None, managed_keys_enabled: bool = True):
        self._keys: Dict[AIProvider, str] = {provider: key for provider, key in (keys or {}).items() if key}
        self.managed_keys_enabled = managed_keys_enabled

    @classmethod
    def from_settings(cls, key_settings: Optional[PlatformKeySettings] = None) -> "PlatformKeyStore":
        key_settings = key_settings or settings.platform_keys
        return cls(
            keys={
                AIProvider.GOOGLE: key_settings.google_api_key,
                AIProvider.OPENAI: key_settings.openai_api_key,
                AIProvider.ANTHROPIC: key_settings.anthropic_api_key,
                AIProvider.MISTRAL: key_settings.mistral_api_key,
            },
            managed_keys_enabled=key_settings.managed_keys_enabled,
        )

    def get(self, provider: AIProvider) -> Optional[str]:
        return self._keys.get(provider)

    def has_key(self, provider: AIProvider) -> bool:
        return provider in self._keys

    def key_for_user(self, user_id: Optional[str], provider: AIProvider) -> Optional[str]:
        """The managed key for ``provider`` if this user may use it."""
        if not is_eligible_for_managed_keys(user_id, self.managed_keys_enabled):
            return None
        return self.get(provider)

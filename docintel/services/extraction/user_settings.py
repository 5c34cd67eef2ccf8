"""Per-user preferences and BYOK provider keys."""

from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from docintel.core.exceptions import ValidationError
from docintel.core.security import ApiKeyCipher
from docintel.database.models import UserApiKey, UserSetting
from docintel.models.catalog import PROVIDERS, AIProvider, get_model_by_id
from docintel.repositories.settings_repository import ApiKeyRepository, UserSettingsRepository
from docintel.utils.logging import get_logger

LOGGER = get_logger(__name__)


class UserSettingsService:
    """Writes what ``ExtractionConfigResolver`` later reads.

    Keys are encrypted before they reach the repository and are never
    returned.
    """

    def __init__(self, session: AsyncSession, cipher: Optional[ApiKeyCipher] = None):
        self.session = session
        self.settings_repository = UserSettingsRepository(session)
        self.api_key_repository = ApiKeyRepository(session)
        self.cipher = cipher or ApiKeyCipher()

    async def update_preferences(self, user_id: str, values: Dict[str, Any]) -> UserSetting:
        """Store the given preferences; omitted ones keep their value.

        Raises:
            ValidationError: If ``preferred_model`` is not in the catalog
        """
        preferred_model = values.get("preferred_model")
        if preferred_model is not None and get_model_by_id(preferred_model) is None:
            raise ValidationError(f"Unknown model: {preferred_model}")
        return await self.settings_repository.upsert(user_id, **values)

    async def store_api_key(self, user_id: str, provider: AIProvider, api_key: str) -> UserApiKey:
        """Encrypt and store a provider key, replacing any earlier one.

        A key without the provider's usual prefix is rejected rather than
        stored as invalid, so a typo never shadows a working platform key.
        """
        key = api_key.strip()
        if not key:
            raise ValidationError("API key must not be empty")

        prefix = PROVIDERS[provider].api_key_prefix
        if prefix and not key.startswith(prefix):
            raise ValidationError(f"{PROVIDERS[provider].name} keys start with '{prefix}'")

        row = await self.api_key_repository.upsert_key(user_id, provider.value, self.cipher.encrypt(key), is_valid=True)
        LOGGER.info("Provider key stored", extra={"user_id": user_id, "provider": provider.value})
        return row

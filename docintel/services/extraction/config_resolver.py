"""Resolve which model, key and thresholds apply to a user's request."""

from typing import List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from docintel.core.config import settings
from docintel.core.exceptions import ExtractionErrorCategory, ExtractionRoutingError
from docintel.core.security import ApiKeyCipher
from docintel.database.models import UserSetting
from docintel.models.catalog import AVAILABLE_MODELS, AIProvider, get_model_by_id
from docintel.models.config import ModelAvailability, ResolvedConfig, ResolvedExtractionConfig
from docintel.models.extraction import ExtractionSettings, KeySource
from docintel.repositories.settings_repository import ApiKeyRepository, UserSettingsRepository
from docintel.services.extraction.keys import PlatformKeyStore
from docintel.utils.logging import get_logger

LOGGER = get_logger(__name__)


def missing_key_message(provider: AIProvider) -> str:
    return f"No API key configured for {provider.value}. Please add your API key in Settings."


class ExtractionConfigResolver:
    """Reads user settings and keys once and hands back immutable config.

    Key precedence is the user's own valid key, then a platform key when the
    user is eligible for managed keys.
    """

    def __init__(
        self,
        session: AsyncSession,
        cipher: Optional[ApiKeyCipher] = None,
        platform_keys: Optional[PlatformKeyStore] = None,
    ):
        self.session = session
        self.settings_repository = UserSettingsRepository(session)
        self.api_key_repository = ApiKeyRepository(session)
        self.cipher = cipher or ApiKeyCipher()
        self.platform_keys = platform_keys or PlatformKeyStore.from_settings()

    async def _user_key(self, user_id: str, provider: AIProvider) -> Optional[str]:
        row = await self.api_key_repository.get_for_provider(user_id, provider.value)
        if row is None or not row.is_valid:
            return None
        return self.cipher.decrypt(row.encrypted_key)

    async def _select_key(self, user_id: str, provider: AIProvider) -> Tuple[Optional[str], Optional[KeySource]]:
        user_key = await self._user_key(user_id, provider)
        if user_key:
            return user_key, KeySource.BYOK
        platform_key = self.platform_keys.key_for_user(user_id, provider)
        if platform_key:
            return platform_key, KeySource.PLATFORM
        return None, None

    @staticmethod
    def _extraction_settings(row: Optional[UserSetting]) -> Optional[ExtractionSettings]:
        if row is None:
            return None
        return ExtractionSettings(
            material_synonyms=row.material_synonyms or {},
            known_receivers=row.known_receivers or [],
            extraction_max_tokens=row.extraction_max_tokens or None,
        )

    async def resolve(self, user_id: str, model_id: Optional[str] = None) -> ResolvedExtractionConfig:
        """Pick the model and key for one extraction.

        Args:
            user_id: Requesting user
            model_id: Explicit model; falls back to the user's preferred model,
                then the platform default

        Returns:
            ResolvedExtractionConfig: Model, key and key source

        Raises:
            ExtractionRoutingError: ``unknown_model`` or ``api_key``
        """
        row = await self.settings_repository.get_by_user(user_id)
        chosen_id = model_id or (row.preferred_model if row else None) or settings.platform_keys.default_model

        model = get_model_by_id(chosen_id)
        if model is None:
            raise ExtractionRoutingError(
                ExtractionErrorCategory.UNKNOWN_MODEL,
                f"Unknown model: {chosen_id}",
                model_id=chosen_id,
            )

        api_key, key_source = await self._select_key(user_id, model.provider)
        if api_key is None:
            raise ExtractionRoutingError(
                ExtractionErrorCategory.API_KEY,
                missing_key_message(model.provider),
                model_id=model.id,
                provider=model.provider.value,
            )

        LOGGER.info(
            "Extraction config resolved",
            extra={"user_id": user_id, "model": model.id, "key_source": key_source.value},
        )
        return ResolvedExtractionConfig(
            user_id=user_id,
            model=model,
            api_key=api_key,
            key_source=key_source,
            custom_instructions=row.custom_instructions if row else None,
            extraction_settings=self._extraction_settings(row),
        )

    async def resolve_office(self, user_id: str) -> ResolvedConfig:
        """Thresholds for the office flow. User settings override the defaults."""
        row = await self.settings_repository.get_by_user(user_id)
        office = settings.office

        threshold = office.auto_approve_threshold
        if row is not None and row.auto_approve_threshold is not None:
            threshold = row.auto_approve_threshold

        return ResolvedConfig(
            user_id=user_id,
            auto_approve_threshold=threshold,
            high_confidence_threshold=office.high_confidence_threshold,
            low_confidence_threshold=office.low_confidence_threshold,
            home_currency=office.home_currency,
            review_due_at=row.review_due_at if row else None,
            contact_email=row.contact_email if row else None,
            raw_text_sample_limit=office.raw_text_sample_limit,
        )

    async def available_models(self, user_id: str) -> List[ModelAvailability]:
        valid_providers = set(await self.api_key_repository.list_valid_providers(user_id))
        availability: List[ModelAvailability] = []
        for model in AVAILABLE_MODELS:
            if model.provider.value in valid_providers:
                availability.append(ModelAvailability(model=model, available=True, key_source=KeySource.BYOK))
            elif self.platform_keys.key_for_user(user_id, model.provider):
                availability.append(ModelAvailability(model=model, available=True, key_source=KeySource.PLATFORM))
            else:
                availability.append(ModelAvailability(model=model, available=False))
        return availability

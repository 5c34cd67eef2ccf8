"""Repositories for user preferences and BYOK provider keys."""

from typing import Any, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from docintel.database.models import UserApiKey, UserSetting
from docintel.repositories.base_repository import BaseRepository
from docintel.utils.logging import get_logger

LOGGER = get_logger(__name__)


class UserSettingsRepository(BaseRepository[UserSetting]):
    def __init__(self, session: AsyncSession):
        super().__init__(session, UserSetting)

    async def get_by_user(self, user_id: str) -> Optional[UserSetting]:
        return await self.fetch_one(select(UserSetting).where(UserSetting.user_id == user_id))

    async def upsert(self, user_id: str, **values: Any) -> UserSetting:
        """Create or update the settings row of a user.

        Args:
            user_id: Owner of the settings
            **values: Columns to set; unknown names are ignored

        Returns:
            UserSetting: The stored row
        """
        row = await self.get_by_user(user_id)
        if row is None:
            row = UserSetting(user_id=user_id)
            self.session.add(row)
        for key, value in values.items():
            if hasattr(row, key):
                setattr(row, key, value)
        await self.flush()

        LOGGER.info("User settings saved", extra={"user_id": user_id, "fields": sorted(values)})
        return row


class ApiKeyRepository(BaseRepository[UserApiKey]):
    """Encrypted provider keys, one per (user, provider)."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, UserApiKey)

    async def get_for_provider(self, user_id: str, provider: str) -> Optional[UserApiKey]:
        """Get the key row a user stored for a provider.

        Args:
            user_id: Key owner
            provider: Provider id, e.g. ``google``

        Returns:
            The row (valid or not) if one exists

        Example:
            >>> repo = ApiKeyRepository(session)
            >>> row = await repo.get_for_provider("user-1", "openai")
            >>> row.is_valid
            True
        """
        return await self.fetch_one(
            select(UserApiKey).where(UserApiKey.user_id == user_id, UserApiKey.provider == provider)
        )

    async def list_valid_providers(self, user_id: str) -> List[str]:
        return await self.fetch_all(
            select(UserApiKey.provider).where(UserApiKey.user_id == user_id, UserApiKey.is_valid.is_(True))
        )

    async def upsert_key(self, user_id: str, provider: str, encrypted_key: str, is_valid: bool = True) -> UserApiKey:
        row = await self.get_for_provider(user_id, provider)
        if row is None:
            row = UserApiKey(user_id=user_id, provider=provider, encrypted_key=encrypted_key, is_valid=is_valid)
            self.session.add(row)
        else:
            row.encrypted_key = encrypted_key
            row.is_valid = is_valid
        await self.flush()

        LOGGER.info("API key stored", extra={"user_id": user_id, "provider": provider, "is_valid": is_valid})
        return row

"""Tests for preference updates and BYOK key storage."""

from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from docintel.core.exceptions import ValidationError
from docintel.core.security import ApiKeyCipher
from docintel.models.catalog import AIProvider
from docintel.services.extraction.user_settings import UserSettingsService


@pytest.fixture
def cipher() -> ApiKeyCipher:
    return ApiKeyCipher("test-secret")


@pytest.fixture
def service(mock_session, cipher) -> UserSettingsService:
    service = UserSettingsService(mock_session, cipher=cipher)
    service.settings_repository = AsyncMock()
    service.api_key_repository = AsyncMock()
    return service


class TestPreferences:
    @pytest.mark.asyncio
    async def test_known_model_is_stored(self, service):
        service.settings_repository.upsert.return_value = SimpleNamespace(preferred_model="gpt-5.2")

        row = await service.update_preferences("user-1", {"preferred_model": "gpt-5.2", "auto_approve_threshold": 80})

        assert row.preferred_model == "gpt-5.2"
        service.settings_repository.upsert.assert_awaited_once_with(
            "user-1", preferred_model="gpt-5.2", auto_approve_threshold=80
        )

    @pytest.mark.asyncio
    async def test_unknown_model_is_rejected(self, service):
        with pytest.raises(ValidationError, match="Unknown model"):
            await service.update_preferences("user-1", {"preferred_model": "gpt-2"})

        service.settings_repository.upsert.assert_not_called()

    @pytest.mark.asyncio
    async def test_other_fields_skip_model_check(self, service):
        await service.update_preferences("user-1", {"contact_email": "ops@example.com"})

        service.settings_repository.upsert.assert_awaited_once_with("user-1", contact_email="ops@example.com")


class TestApiKeys:
    @pytest.mark.asyncio
    async def test_key_is_encrypted_before_storage(self, service, cipher):
        await service.store_api_key("user-1", AIProvider.OPENAI, "  sk-live-123  ")

        args = service.api_key_repository.upsert_key.await_args
        user_id, provider, token = args.args
        assert (user_id, provider) == ("user-1", "openai")
        assert token != "sk-live-123"
        assert cipher.decrypt(token) == "sk-live-123"
        assert args.kwargs == {"is_valid": True}

    @pytest.mark.asyncio
    async def test_wrong_prefix_is_rejected(self, service):
        with pytest.raises(ValidationError, match="AIza"):
            await service.store_api_key("user-1", AIProvider.GOOGLE, "sk-live-123")

        service.api_key_repository.upsert_key.assert_not_called()

    @pytest.mark.asyncio
    async def test_blank_key_is_rejected(self, service):
        with pytest.raises(ValidationError):
            await service.store_api_key("user-1", AIProvider.OPENAI, "   ")

    @pytest.mark.asyncio
    async def test_provider_without_prefix_accepts_any_key(self, service):
        await service.store_api_key("user-1", AIProvider.MISTRAL, "abc123")

        service.api_key_repository.upsert_key.assert_awaited_once()

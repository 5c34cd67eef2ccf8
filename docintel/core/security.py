"""Encryption of user-supplied provider keys at rest."""

import base64
import hashlib
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken

from docintel.core.config import settings
from docintel.utils.logging import get_logger

LOGGER = get_logger(__name__)


class ApiKeyCipher:
    """Fernet wrapper keyed from ``API_KEY_ENCRYPTION_SECRET``."""

    def __init__(self, secret: Optional[str] = None):
        raw = (secret or settings.api_key_encryption_secret).encode("utf-8")
        # Fernet wants 32 url-safe base64 bytes; derive them from the secret
        derived = base64.urlsafe_b64encode(hashlib.sha256(raw).digest())
        self._fernet = Fernet(derived)

    def encrypt(self, api_key: str) -> str:
        return self._fernet.encrypt(api_key.encode("utf-8")).decode("utf-8")

    def decrypt(self, token: str) -> Optional[str]:
        """Decrypt a stored key.

        Returns:
            The plaintext key, or None when the token is unreadable (rotated
            secret, corrupted row). An unreadable key counts as no key.
        """
        try:
            return self._fernet.decrypt(token.encode("utf-8")).decode("utf-8")
        except (InvalidToken, ValueError):
            LOGGER.warning("Stored API key could not be decrypted")
            return None

"""
Field-level encryption for sensitive display columns
(client name and ID number, pet name and species, service and staff names)
"""

import logging
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken

from .config import FIELD_ENCRYPTION_KEY

logger = logging.getLogger(__name__)


class DecryptError(Exception):
    """Raised when a stored value cannot be decrypted with the configured key"""


class FieldCipher:
    """Fernet wrapper used to encrypt reference data at rest and decrypt it on read"""

    def __init__(self, key: Optional[str] = None):
        self.fernet = Fernet(key) if key else None

    def encrypt(self, value: str) -> str:
        """Encrypt a value for storage"""
        if not self.fernet:
            logger.warning("FIELD_ENCRYPTION_KEY not set, storing value in plain text")
            return value
        return self.fernet.encrypt(value.encode()).decode()

    def decrypt(self, value: str) -> str:
        """Decrypt a stored value, raising DecryptError when it is not a valid token"""
        if not self.fernet:
            return value
        try:
            return self.fernet.decrypt(value.encode()).decode()
        except (InvalidToken, UnicodeError, AttributeError, TypeError) as e:
            raise DecryptError(f"Unable to decrypt field value: {type(e).__name__}") from e


def decrypt_or_empty(cipher: FieldCipher, value: Optional[str]) -> str:
    """
    Decrypt a display field for a response.

    Empty values render as "" and so do values that fail to decrypt: one bad
    column must not fail a whole listing.
    """
    if not value:
        return ""
    try:
        return cipher.decrypt(value)
    except DecryptError as e:
        logger.error(f"❌ Error decrypting field: {e}")
        return ""


# Global cipher instance
field_cipher = FieldCipher(FIELD_ENCRYPTION_KEY)


def get_field_cipher() -> FieldCipher:
    """Dependency injection for the field cipher"""
    return field_cipher

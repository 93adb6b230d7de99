"""
Encryption utilities for guest and employee identifiers stored at rest.

Uses Fernet symmetric encryption (AES-128-CBC with HMAC).
Requires ENCRYPTION_KEY environment variable to be set.
"""

import logging
import os
from functools import lru_cache

from cryptography.fernet import Fernet, InvalidToken

logger = logging.getLogger("hotelpms.encryption")

FERNET_PREFIX = "gAAAAA"


@lru_cache(maxsize=1)
def get_fernet() -> Fernet:
    key = os.getenv("ENCRYPTION_KEY")
    if not key:
        raise ValueError(
            "ENCRYPTION_KEY environment variable must be set. "
            'Generate one with: python -c "from cryptography.fernet import Fernet; print(Fernet.generate_key().decode())"'
        )
    try:
        return Fernet(key.encode())
    except ValueError as e:
        raise ValueError(f"Invalid ENCRYPTION_KEY format: {e}")


def encrypt_value(value: str | None) -> str | None:
    if not value:
        return value
    return get_fernet().encrypt(value.encode()).decode()


def decrypt_value(encrypted: str | None) -> str | None:
    """
    Decrypt a stored value.

    Returns None (and logs) when the token cannot be decrypted with the
    configured key, so one rotated key does not break whole list pages.
    """
    if not encrypted:
        return encrypted
    try:
        return get_fernet().decrypt(encrypted.encode()).decode()
    except InvalidToken:
        logger.warning("Decryption failed: invalid token (wrong key or corrupted data)")
        return None


def is_encrypted(value: str | None) -> bool:
    if not value:
        return False
    return value.startswith(FERNET_PREFIX)


def mask_value(value: str | None, visible: int = 4) -> str | None:
    """Mask all but the last ``visible`` characters, e.g. for passport numbers in lists."""
    if not value:
        return value
    if len(value) <= visible:
        return "*" * len(value)
    return "*" * (len(value) - visible) + value[-visible:]

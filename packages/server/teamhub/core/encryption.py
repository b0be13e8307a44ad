"""Sealing of JSON payloads at rest (SSO client config data)."""

import json

from cryptography.fernet import Fernet, InvalidToken

from teamhub.core.config import get_settings
from teamhub.core.errors import SealedDataError


def get_encryption_fernet() -> Fernet:
    """Build the Fernet instance from the configured key."""
    key = get_settings().encryption_key
    if not key:
        raise RuntimeError("TEAMHUB_ENCRYPTION_KEY is not set")
    return Fernet(key.encode())


def encrypt_json(data: dict) -> str:
    """Serialize ``data`` as JSON and seal it."""
    f = get_encryption_fernet()
    return f.encrypt(json.dumps(data).encode()).decode()


def decrypt_json(token: str) -> dict:
    """Open a sealed payload produced by ``encrypt_json``."""
    f = get_encryption_fernet()
    try:
        decrypted = f.decrypt(token.encode())
    except InvalidToken as exc:
        raise SealedDataError(
            "Sealed payload could not be decrypted with the configured key"
        ) from exc
    return json.loads(decrypted.decode())

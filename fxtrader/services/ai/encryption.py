"""
At-rest encryption for the stored AI API key.

The key is Fernet-encrypted before it is written to the ``/ai_config``
document. The Fernet key is derived with HKDF from ``AI_ENCRYPTION_KEY``
(or ``SESSION_SECRET`` when no dedicated secret is set).
"""

import base64
import os
from functools import lru_cache

import structlog
from cryptography.fernet import Fernet
from cryptography.hazmat.primitives.hashes import SHA256
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from fxtrader.core.config import settings

logger = structlog.get_logger()

HKDF_INFO = b"fx-ai-trader-ai-encryption"
_DEV_SECRET = "fx-ai-trader-local-development-secret"
_PROTECTED_ENVIRONMENTS = ("production", "staging")


def _secret_material() -> str:
    secret = os.environ.get("AI_ENCRYPTION_KEY") or os.environ.get("SESSION_SECRET")
    if secret:
        return secret

    if settings.environment in _PROTECTED_ENVIRONMENTS:
        logger.critical("ai_encryption_secret_missing", environment=settings.environment)
        raise RuntimeError(
            f"AI_ENCRYPTION_KEY or SESSION_SECRET is required when ENVIRONMENT={settings.environment}"
        )

    logger.warning("ai_encryption_using_dev_secret")
    return _DEV_SECRET


@lru_cache(maxsize=1)
def _cipher() -> Fernet:
    derived = HKDF(algorithm=SHA256(), length=32, salt=None, info=HKDF_INFO).derive(
        _secret_material().encode()
    )
    return Fernet(base64.urlsafe_b64encode(derived))


def encrypt_secret(plaintext: str) -> str:
    """Encrypt an API key. Empty input stays empty."""
    return _cipher().encrypt(plaintext.encode()).decode() if plaintext else ""


def decrypt_secret(ciphertext: str) -> str:
    """Decrypt a stored API key.

    Raises:
        cryptography.fernet.InvalidToken: Wrong secret or tampered value
    """
    return _cipher().decrypt(ciphertext.encode()).decode() if ciphertext else ""

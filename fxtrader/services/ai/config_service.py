"""
AI Configuration Service

Manages the single AI configuration document stored at ``/ai_config``:
- Reading with default filling
- Saving with the API key encrypted at rest
- Migrating the legacy document shape
- Masked view for the admin UI
"""

from datetime import UTC, datetime
from typing import Any

import structlog
from cryptography.fernet import InvalidToken
from sqlalchemy.ext.asyncio import AsyncSession

from fxtrader.core.config import settings
from fxtrader.core.exceptions import ConfigurationError, ValidationError
from fxtrader.core.models import AIConfig, MigrationResult
from fxtrader.db import ConfigDocumentModel
from fxtrader.services.ai.detection import PROVIDER_DISPLAY_NAMES, detect_provider, mask_api_key
from fxtrader.services.ai.encryption import decrypt_secret, encrypt_secret
from fxtrader.services.ai.models_registry import default_model
from fxtrader.services.ai.prompts import DEFAULT_PERSONA

logger = structlog.get_logger()

AI_CONFIG_PATH = "/ai_config"

# Canonical document keys
KEY_API_KEY = "aiApiKey"
KEY_MODEL = "aiModelName"
KEY_PERSONA = "aiPersona"
KEY_UPDATED_AT = "updatedAt"
KEY_MIGRATED_FROM = "migratedFrom"

# Keys written by older admin panels
LEGACY_API_KEY = "apiKey"
LEGACY_MODEL_KEYS = ("model", KEY_MODEL)
LEGACY_PERSONA_KEYS = ("persona", KEY_PERSONA)


def resolve_config(
    api_key: str | None = None,
    model: str | None = None,
    persona: str | None = None,
) -> AIConfig:
    """Build a complete AIConfig, filling every missing field.

    This is the only place defaults are applied. The model default
    depends on the provider detected from ``api_key``.
    """
    api_key = api_key or ""
    return AIConfig(
        api_key=api_key,
        model=model or default_model(detect_provider(api_key)),
        persona=persona or DEFAULT_PERSONA,
    )


def _first_present(document: dict[str, Any], keys: tuple[str, ...]) -> str | None:
    for key in keys:
        value = document.get(key)
        if value:
            return value
    return None


class AIConfigService:
    """Service for reading and writing the AI configuration document."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _load_document(self) -> dict[str, Any] | None:
        row = await self.db.get(ConfigDocumentModel, AI_CONFIG_PATH)
        return dict(row.value) if row is not None and row.value else None

    async def _save_document(self, document: dict[str, Any]) -> None:
        row = await self.db.get(ConfigDocumentModel, AI_CONFIG_PATH)
        if row is None:
            self.db.add(ConfigDocumentModel(path=AI_CONFIG_PATH, value=document))
        else:
            # JSON columns only track reassignment
            row.value = document
        await self.db.commit()

    def _decrypt_key(self, ciphertext: str) -> str:
        try:
            return decrypt_secret(ciphertext)
        except InvalidToken as e:
            logger.error("ai_config_decrypt_failed", path=AI_CONFIG_PATH)
            raise ConfigurationError(
                "API key tersimpan tidak dapat dibaca. Simpan ulang konfigurasi AI.",
                details={"path": AI_CONFIG_PATH},
            ) from e

    async def get_config(self) -> AIConfig:
        """Read the active configuration, defaults filled in.

        A missing document or a document without ``aiApiKey`` falls back
        to ``DEFAULT_AI_KEY`` from the environment.
        """
        document = await self._load_document() or {}

        encrypted_key = document.get(KEY_API_KEY)
        if encrypted_key:
            api_key = self._decrypt_key(encrypted_key)
        else:
            api_key = settings.default_ai_key

        return resolve_config(
            api_key=api_key,
            model=document.get(KEY_MODEL),
            persona=document.get(KEY_PERSONA),
        )

    async def set_config(
        self,
        api_key: str,
        model: str | None = None,
        persona: str | None = None,
    ) -> AIConfig:
        """Save a new configuration and return it with defaults filled in."""
        api_key = (api_key or "").strip()
        if not api_key:
            raise ValidationError("API key wajib diisi", details={"field": "apiKey"})

        config = resolve_config(api_key=api_key, model=model, persona=persona)
        await self._save_document({
            KEY_API_KEY: encrypt_secret(config.api_key),
            KEY_MODEL: config.model,
            KEY_PERSONA: config.persona,
            KEY_UPDATED_AT: datetime.now(UTC).isoformat(),
        })

        logger.info(
            "ai_config_saved",
            provider=detect_provider(config.api_key).value,
            model=config.model,
            custom_persona=config.persona != DEFAULT_PERSONA,
        )
        return config

    async def migrate(self) -> MigrationResult:
        """Rewrite a legacy document into the canonical shape.

        Running it again on a canonical document changes nothing.
        """
        document = await self._load_document()

        if document is None:
            return MigrationResult(migrated=False, message="Tidak ada konfigurasi AI untuk dimigrasi")

        if KEY_API_KEY in document:
            return MigrationResult(
                migrated=False,
                message="Konfigurasi AI sudah dalam format terbaru",
                config=self._public_view(document),
            )

        legacy_key = document.get(LEGACY_API_KEY) or ""
        config = resolve_config(
            api_key=legacy_key,
            model=_first_present(document, LEGACY_MODEL_KEYS),
            persona=_first_present(document, LEGACY_PERSONA_KEYS),
        )
        canonical = {
            KEY_API_KEY: encrypt_secret(config.api_key),
            KEY_MODEL: config.model,
            KEY_PERSONA: config.persona,
            KEY_UPDATED_AT: datetime.now(UTC).isoformat(),
            KEY_MIGRATED_FROM: "legacy",
        }
        await self._save_document(canonical)

        logger.info(
            "ai_config_migrated",
            provider=detect_provider(config.api_key).value,
            model=config.model,
            had_api_key=bool(legacy_key),
        )
        return MigrationResult(
            migrated=True,
            message="Konfigurasi AI berhasil dimigrasi",
            config=self._public_view(canonical),
        )

    def _public_view(self, document: dict[str, Any]) -> dict[str, Any]:
        """Document with the encrypted key removed."""
        return {
            key: value
            for key, value in document.items()
            if key not in (KEY_API_KEY, LEGACY_API_KEY)
        }

    async def describe(self) -> dict[str, Any]:
        """Masked view of the active configuration for the admin UI."""
        document = await self._load_document() or {}
        config = await self.get_config()
        provider = detect_provider(config.api_key)

        return {
            "provider": provider.value,
            "provider_name": PROVIDER_DISPLAY_NAMES[provider],
            "model": config.model,
            "persona": config.persona,
            "has_api_key": bool(config.api_key),
            "api_key_mask": mask_api_key(config.api_key),
            "is_configured": KEY_API_KEY in document,
            "updated_at": document.get(KEY_UPDATED_AT),
        }

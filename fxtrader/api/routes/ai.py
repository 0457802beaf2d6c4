"""
AI Configuration API Routes

Admin endpoints for the AI configuration document.

Routes:
- GET    /providers        - List supported providers with defaults
- POST   /detect           - Detect the provider of an API key
- GET    /config           - Masked active configuration
- POST   /config           - Save a new configuration
- POST   /config/migrate   - Migrate a legacy configuration document
- POST   /config/test      - Test credentials before saving
"""

import re
import time
from typing import Annotated

import structlog
from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession

from fxtrader.api.middleware import add_ai_to_wide_event
from fxtrader.core.exceptions import FxTraderException
from fxtrader.core.models import APIResponse, ProviderIdentity
from fxtrader.db import get_db
from fxtrader.services.ai.config_service import AIConfigService
from fxtrader.services.ai.detection import PROVIDER_DISPLAY_NAMES, detect_provider
from fxtrader.services.ai.gateway import AIGateway, get_ai_gateway
from fxtrader.services.ai.models_registry import default_model
from fxtrader.services.ai.providers import get_all_providers

logger = structlog.get_logger()

router = APIRouter()


# ============================================================================
# Request Models
# ============================================================================

class ConfigUpdate(BaseModel):
    """Request to save the AI configuration."""
    model_config = ConfigDict(populate_by_name=True)

    api_key: str = Field(alias="apiKey")
    model: str | None = Field(default=None, alias="aiModelName")
    persona: str | None = Field(default=None, alias="aiPersona")


class ConfigTestRequest(BaseModel):
    """Request to test credentials before saving."""
    model_config = ConfigDict(populate_by_name=True)

    api_key: str = Field(alias="apiKey")
    model: str | None = Field(default=None, alias="aiModelName")


class DetectRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    api_key: str = Field(alias="apiKey")


# ============================================================================
# Provider Endpoints
# ============================================================================

@router.get("/providers")
async def list_providers() -> APIResponse:
    """List supported providers with display name, default model and vision support."""
    return APIResponse(
        success=True,
        data={"providers": get_all_providers()},
    )


@router.post("/detect")
async def detect(request: DetectRequest) -> APIResponse:
    """Detect which provider issued a key. No network call is made."""
    provider = detect_provider(request.api_key)
    if provider == ProviderIdentity.UNKNOWN:
        return APIResponse(
            success=False,
            message="Provider tidak dikenali. Periksa API Key.",
            data={"provider": provider.value, "provider_name": PROVIDER_DISPLAY_NAMES[provider]},
        )

    return APIResponse(
        success=True,
        data={
            "provider": provider.value,
            "provider_name": PROVIDER_DISPLAY_NAMES[provider],
            "default_model": default_model(provider),
        },
    )


# ============================================================================
# Config Endpoints
# ============================================================================

@router.get("/config")
async def get_config(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> APIResponse:
    """Return the active configuration with the API key masked."""
    service = AIConfigService(db)
    return APIResponse(success=True, data=await service.describe())


@router.post("/config")
async def save_config(
    request: ConfigUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> APIResponse:
    """Save the AI configuration. Model and persona default when empty."""
    service = AIConfigService(db)
    config = await service.set_config(request.api_key, request.model, request.persona)

    provider = detect_provider(config.api_key)
    add_ai_to_wide_event(provider=provider.value, model=config.model)

    return APIResponse(
        success=True,
        message="Konfigurasi AI berhasil disimpan",
        data=await service.describe(),
    )


@router.post("/config/migrate")
async def migrate_config(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> APIResponse:
    """Rewrite a legacy configuration document in the current format."""
    service = AIConfigService(db)
    result = await service.migrate()
    return APIResponse(
        success=True,
        message=result.message,
        data={"migrated": result.migrated, "config": result.config},
    )


@router.post("/config/test")
async def test_config(
    request: ConfigTestRequest,
    gateway: Annotated[AIGateway, Depends(get_ai_gateway)],
) -> APIResponse:
    """Test credentials BEFORE saving them.

    Failures are reported as ``success=false`` with a sanitized message.
    """
    provider = detect_provider(request.api_key)
    model = request.model or default_model(provider)
    start_time = time.time()

    try:
        result = await gateway.test_connection(request.api_key, model, provider=provider)
    except FxTraderException as e:
        elapsed_ms = int((time.time() - start_time) * 1000)
        safe_error = _sanitize_error(e.message)
        logger.warning(
            "ai_connection_test_failed",
            provider=provider.value,
            model=model,
            error_type=type(e).__name__,
            error=safe_error,
        )
        return APIResponse(
            success=False,
            message=f"Koneksi gagal: {safe_error}",
            data={
                "provider": provider.value,
                "model": model,
                "elapsed_ms": elapsed_ms,
                "error": safe_error,
            },
        )

    add_ai_to_wide_event(provider=result.provider.value, model=result.model)
    return APIResponse(
        success=True,
        message=result.message,
        data={
            "provider": result.provider.value,
            "model": result.model,
            "elapsed_ms": result.elapsed_ms,
            "test_response": result.test_response,
        },
    )


def _sanitize_error(error: str) -> str:
    """Strip potential API keys and full URLs from error messages."""
    error = re.sub(r"https?://[^\s\"']+", "[URL REDACTED]", error)
    error = re.sub(
        r"(sk-|key-|api-|AIza|bearer\s+)[A-Za-z0-9\-_]{16,}",
        r"\1[REDACTED]",
        error,
        flags=re.IGNORECASE,
    )
    error = re.sub(r"([?&]key=)[^&\s]+", r"\1[REDACTED]", error)
    return error

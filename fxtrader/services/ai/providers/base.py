"""
Base Provider Implementation

Common functionality shared across all provider adapters: data URI
handling, JSON POSTs over an injected ``httpx.AsyncClient`` and vendor
error extraction.
"""

import json
from typing import Any, ClassVar

import httpx
import structlog

from fxtrader.core.config import settings
from fxtrader.core.exceptions import (
    ExternalServiceError,
    InvalidImageError,
    MalformedResponseError,
    UpstreamError,
)
from fxtrader.core.models import ProviderIdentity
from fxtrader.services.ai.interface import AIProviderInterface

logger = structlog.get_logger()

DEFAULT_IMAGE_MIME_TYPE = "image/png"


def split_data_uri(data_uri: str) -> tuple[str, str]:
    """Split ``data:<mime>;base64,<payload>`` into (mime_type, payload).

    Only the first comma separates header and payload.
    """
    if not data_uri or not data_uri.startswith("data:") or "," not in data_uri:
        raise InvalidImageError("Gambar harus berupa data URI base64")

    header, payload = data_uri.split(",", 1)
    if ";base64" not in header:
        raise InvalidImageError("Gambar harus berupa data URI base64")
    if not payload:
        raise InvalidImageError("Data gambar kosong")

    mime_type = header[len("data:"):].split(";", 1)[0] or DEFAULT_IMAGE_MIME_TYPE
    return mime_type, payload


def extract_error_message(body: Any, raw_text: str) -> str:
    """Vendor ``error.message`` when present, else the raw response body."""
    if isinstance(body, dict):
        error = body.get("error", body)
        if isinstance(error, dict):
            message = error.get("message")
            if isinstance(message, str) and message:
                return message
    return raw_text


class BaseProvider(AIProviderInterface):
    """Base class for provider adapters.

    Adapters are created per call with the caller's API key and HTTP
    client and are discarded afterwards.
    """

    provider: ClassVar[ProviderIdentity] = ProviderIdentity.UNKNOWN
    SUPPORTS_VISION: ClassVar[bool] = False

    def __init__(self, api_key: str, http_client: httpx.AsyncClient):
        """Initialize provider.

        Args:
            api_key: Vendor API key
            http_client: Client used for every outbound request
        """
        self.api_key = api_key
        self.http_client = http_client

    @property
    def provider_name(self) -> str:
        return self.provider.value

    @classmethod
    def get_provider_info(cls) -> dict[str, Any]:
        """Return display info for the admin UI."""
        from fxtrader.services.ai.detection import PROVIDER_DISPLAY_NAMES
        from fxtrader.services.ai.models_registry import default_model

        return {
            "name": PROVIDER_DISPLAY_NAMES[cls.provider],
            "default_model": default_model(cls.provider),
            "supports_vision": cls.SUPPORTS_VISION,
        }

    def _warn_image_ignored(self, model: str) -> None:
        logger.warning(
            "ai_image_ignored",
            provider=self.provider_name,
            model=model,
            reason="provider adapter sends text only",
        )

    def _malformed(self, path: str) -> MalformedResponseError:
        return MalformedResponseError(
            self.provider_name,
            f"Respons {self.provider_name} tidak berisi {path}",
            details={"path": path},
        )

    async def _post_json(
        self,
        url: str,
        payload: dict[str, Any],
        headers: dict[str, str] | None = None,
        params: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        """POST a JSON body and return the decoded 2xx response object."""
        try:
            response = await self.http_client.post(
                url,
                json=payload,
                headers={"Content-Type": "application/json", **(headers or {})},
                params=params,
                timeout=settings.ai_request_timeout,
            )
        except httpx.TransportError as e:
            logger.error("ai_transport_error", provider=self.provider_name, error=str(e))
            raise ExternalServiceError(
                self.provider_name,
                f"Gagal terhubung ke {self.provider_name}: {e}",
            ) from e

        try:
            body: Any = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            body = None

        if not response.is_success:
            message = extract_error_message(body, response.text)
            logger.error(
                "ai_upstream_error",
                provider=self.provider_name,
                status=response.status_code,
                error=message[:500],
            )
            raise UpstreamError(self.provider_name, response.status_code, message)

        if not isinstance(body, dict):
            raise self._malformed("JSON object")
        return body

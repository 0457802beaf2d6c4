"""
Claude Provider

Adapter for the native Anthropic Messages API. The OpenAI wire format is
rejected by this endpoint, so the request is built by hand.
"""

from typing import Any

import structlog

from fxtrader.core.config import settings
from fxtrader.core.models import ProviderIdentity
from fxtrader.services.ai.providers.base import BaseProvider, split_data_uri

logger = structlog.get_logger()


class ClaudeProvider(BaseProvider):
    """Anthropic Claude adapter.

    Uses the Anthropic API endpoint.
    Default URL: https://api.anthropic.com/v1
    """

    provider = ProviderIdentity.CLAUDE
    SUPPORTS_VISION = True

    def _get_headers(self) -> dict[str, str]:
        return {
            "x-api-key": self.api_key,
            "anthropic-version": settings.anthropic_version,
        }

    def _build_payload(
        self,
        model: str,
        persona: str,
        user_prompt: str,
        image_data_uri: str | None,
    ) -> dict[str, Any]:
        content: list[dict[str, Any]] = []

        if image_data_uri:
            mime_type, payload = split_data_uri(image_data_uri)
            content.append({
                "type": "image",
                "source": {
                    "type": "base64",
                    "media_type": mime_type,
                    "data": payload,
                },
            })

        content.append({"type": "text", "text": user_prompt})

        return {
            "model": model,
            "max_tokens": settings.anthropic_max_tokens,
            "system": persona,
            "messages": [{"role": "user", "content": content}],
        }

    async def invoke(
        self,
        model: str,
        persona: str,
        user_prompt: str,
        image_data_uri: str | None = None,
    ) -> str:
        logger.info(
            "ai_invoke_start",
            provider=self.provider_name,
            model=model,
            has_image=bool(image_data_uri),
        )

        data = await self._post_json(
            f"{settings.anthropic_base_url}/messages",
            self._build_payload(model, persona, user_prompt, image_data_uri),
            headers=self._get_headers(),
        )

        # content[0].text
        text = None
        blocks = data.get("content")
        if isinstance(blocks, list) and blocks and isinstance(blocks[0], dict):
            text = blocks[0].get("text")

        if not isinstance(text, str) or not text.strip():
            raise self._malformed("content[0].text")

        logger.info(
            "ai_invoke_success",
            provider=self.provider_name,
            model=model,
            response_len=len(text),
        )
        return text

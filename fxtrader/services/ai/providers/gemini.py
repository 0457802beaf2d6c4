"""
Gemini Provider

Calls the Generative Language API (``generateContent``) directly with
the API key as query parameter.
"""

from typing import Any

import structlog

from fxtrader.core.config import settings
from fxtrader.core.models import ProviderIdentity
from fxtrader.services.ai.providers.base import BaseProvider, split_data_uri

logger = structlog.get_logger()


class GeminiProvider(BaseProvider):
    """Google Gemini adapter.

    Gemini has no system role in this request shape, so persona and
    prompt are sent as one text block. Images go alongside as
    ``inlineData`` parts.
    """

    provider = ProviderIdentity.GEMINI
    SUPPORTS_VISION = True

    def _build_payload(
        self,
        persona: str,
        user_prompt: str,
        image_data_uri: str | None,
    ) -> dict[str, Any]:
        parts: list[dict[str, Any]] = [{"text": f"{persona}\n{user_prompt}"}]

        if image_data_uri:
            mime_type, payload = split_data_uri(image_data_uri)
            parts.append({
                "inlineData": {
                    "mimeType": mime_type,
                    "data": payload,
                }
            })

        return {"contents": [{"parts": parts}]}

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

        url = f"{settings.gemini_base_url}/models/{model}:generateContent"
        data = await self._post_json(
            url,
            self._build_payload(persona, user_prompt, image_data_uri),
            params={"key": self.api_key},
        )

        # candidates[0].content.parts[0].text
        text = None
        candidates = data.get("candidates")
        if isinstance(candidates, list) and candidates and isinstance(candidates[0], dict):
            content = candidates[0].get("content")
            parts = content.get("parts") if isinstance(content, dict) else None
            if isinstance(parts, list) and parts and isinstance(parts[0], dict):
                text = parts[0].get("text")

        if not isinstance(text, str) or not text.strip():
            if isinstance(candidates, list) and candidates and isinstance(candidates[0], dict):
                # Safety blocks come back as a candidate without content
                logger.warning(
                    "gemini_finish_reason",
                    model=model,
                    reason=candidates[0].get("finishReason"),
                )
            raise self._malformed("candidates[0].content.parts[0].text")

        logger.info(
            "ai_invoke_success",
            provider=self.provider_name,
            model=model,
            response_len=len(text),
        )
        return text

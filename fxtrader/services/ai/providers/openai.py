"""
OpenAI Provider

Adapter for the OpenAI chat completions API. Also the base for every
vendor that speaks the same wire format (DeepSeek, Llama, OpenRouter).
"""

import json
from typing import Any

import structlog
from openai import APIConnectionError, APIStatusError, AsyncOpenAI

from fxtrader.core.config import settings
from fxtrader.core.exceptions import ExternalServiceError, UpstreamError
from fxtrader.core.models import ProviderIdentity
from fxtrader.services.ai.providers.base import BaseProvider, extract_error_message, split_data_uri

logger = structlog.get_logger()


class OpenAIProvider(BaseProvider):
    """OpenAI-compatible chat completions adapter.

    Subclasses override ``_get_base_url`` and ``_get_default_headers``.
    """

    provider = ProviderIdentity.OPENAI
    SUPPORTS_VISION = True

    def _get_base_url(self) -> str:
        return settings.openai_base_url

    def _get_default_headers(self) -> dict[str, str]:
        """Get default headers for requests.

        Override in subclasses for provider-specific headers.
        """
        return {}

    def _get_client(self) -> AsyncOpenAI:
        """Create an SDK client bound to the injected HTTP client."""
        return AsyncOpenAI(
            api_key=self.api_key,
            base_url=self._get_base_url(),
            default_headers=self._get_default_headers(),
            http_client=self.http_client,
            timeout=settings.ai_request_timeout,
            max_retries=0,
        )

    def _build_messages(
        self,
        model: str,
        persona: str,
        user_prompt: str,
        image_data_uri: str | None,
    ) -> list[dict[str, Any]]:
        user_content: str | list[dict[str, Any]] = user_prompt

        if image_data_uri:
            if self.SUPPORTS_VISION:
                mime_type, payload = split_data_uri(image_data_uri)
                user_content = [
                    {"type": "text", "text": user_prompt},
                    {
                        "type": "image_url",
                        "image_url": {"url": f"data:{mime_type};base64,{payload}"},
                    },
                ]
            else:
                self._warn_image_ignored(model)

        return [
            {"role": "system", "content": persona},
            {"role": "user", "content": user_content},
        ]

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

        messages = self._build_messages(model, persona, user_prompt, image_data_uri)
        client = self._get_client()

        try:
            completion = await client.chat.completions.create(
                model=model,
                messages=messages,
            )
        except APIStatusError as e:
            message = extract_error_message(e.body, e.response.text)
            logger.error(
                "ai_upstream_error",
                provider=self.provider_name,
                status=e.status_code,
                error=message[:500],
            )
            raise UpstreamError(self.provider_name, e.status_code, message) from e
        except APIConnectionError as e:
            logger.error("ai_transport_error", provider=self.provider_name, error=str(e))
            raise ExternalServiceError(
                self.provider_name,
                f"Gagal terhubung ke {self.provider_name}: {e}",
            ) from e
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            # The SDK decodes 2xx bodies itself and lets parse errors through
            logger.error("ai_malformed_body", provider=self.provider_name, error=str(e)[:200])
            raise self._malformed("JSON object") from e

        # choices[0].message.content
        choices = getattr(completion, "choices", None) or []
        message = getattr(choices[0], "message", None) if choices else None
        content = getattr(message, "content", None) if message is not None else None

        if not isinstance(content, str) or not content.strip():
            raise self._malformed("choices[0].message.content")

        logger.info(
            "ai_invoke_success",
            provider=self.provider_name,
            model=model,
            response_len=len(content),
        )
        return content

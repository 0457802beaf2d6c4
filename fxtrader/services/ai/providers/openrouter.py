"""
OpenRouter Provider

OpenRouter speaks the OpenAI chat completions format on its own host and
requires attribution headers on every request.
"""

from fxtrader.core.config import settings
from fxtrader.core.models import ProviderIdentity
from fxtrader.services.ai.providers.openai import OpenAIProvider


class OpenRouterProvider(OpenAIProvider):
    """OpenRouter adapter (OpenAI-compatible, different host)."""

    provider = ProviderIdentity.OPENROUTER
    SUPPORTS_VISION = True

    def _get_base_url(self) -> str:
        return settings.openrouter_base_url

    def _get_default_headers(self) -> dict[str, str]:
        return {
            "HTTP-Referer": settings.openrouter_referer,
            "X-Title": settings.openrouter_title,
        }

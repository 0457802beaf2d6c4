"""
Llama Provider

Adapter for OpenAI-shaped Llama hosts (Meta Llama API by default).
"""

from fxtrader.core.config import settings
from fxtrader.core.models import ProviderIdentity
from fxtrader.services.ai.providers.openai import OpenAIProvider


class LlamaProvider(OpenAIProvider):
    """Llama adapter. Images are not sent."""

    provider = ProviderIdentity.LLAMA
    SUPPORTS_VISION = False

    def _get_base_url(self) -> str:
        return settings.llama_base_url

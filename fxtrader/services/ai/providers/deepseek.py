"""
DeepSeek Provider

Adapter for the DeepSeek API (OpenAI-compatible). Text only.
"""

from fxtrader.core.config import settings
from fxtrader.core.models import ProviderIdentity
from fxtrader.services.ai.providers.openai import OpenAIProvider


class DeepSeekProvider(OpenAIProvider):
    """DeepSeek adapter.

    Default URL: https://api.deepseek.com
    """

    provider = ProviderIdentity.DEEPSEEK
    SUPPORTS_VISION = False

    def _get_base_url(self) -> str:
        return settings.deepseek_base_url

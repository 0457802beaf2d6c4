"""
Provider Adapters Package

Contains implementations for each supported AI provider.
To add a new provider:
1. Create a new file implementing BaseProvider
2. Add a ProviderIdentity member and a detection rule
3. Register the class in PROVIDER_REGISTRY below
"""

from typing import Any

from fxtrader.core.models import ProviderIdentity
from fxtrader.services.ai.providers.base import BaseProvider, split_data_uri
from fxtrader.services.ai.providers.claude import ClaudeProvider
from fxtrader.services.ai.providers.deepseek import DeepSeekProvider
from fxtrader.services.ai.providers.gemini import GeminiProvider
from fxtrader.services.ai.providers.llama import LlamaProvider
from fxtrader.services.ai.providers.openai import OpenAIProvider
from fxtrader.services.ai.providers.openrouter import OpenRouterProvider

# Registry mapping provider identity -> adapter class
PROVIDER_REGISTRY: dict[ProviderIdentity, type[BaseProvider]] = {
    ProviderIdentity.OPENAI: OpenAIProvider,
    ProviderIdentity.GEMINI: GeminiProvider,
    ProviderIdentity.CLAUDE: ClaudeProvider,
    ProviderIdentity.DEEPSEEK: DeepSeekProvider,
    ProviderIdentity.OPENROUTER: OpenRouterProvider,
    ProviderIdentity.LLAMA: LlamaProvider,
}


def get_all_providers() -> dict[str, dict[str, Any]]:
    """Return info for all registered providers.

    Used by the admin UI to build the provider list.
    """
    return {
        provider.value: provider_cls.get_provider_info()
        for provider, provider_cls in PROVIDER_REGISTRY.items()
    }


__all__ = [
    "PROVIDER_REGISTRY",
    "BaseProvider",
    "ClaudeProvider",
    "DeepSeekProvider",
    "GeminiProvider",
    "LlamaProvider",
    "OpenAIProvider",
    "OpenRouterProvider",
    "get_all_providers",
    "split_data_uri",
]

"""
AI Models Registry

Default model per provider, used whenever the caller leaves the model
name empty.
"""

from fxtrader.core.models import ProviderIdentity

DEFAULT_MODELS: dict[ProviderIdentity, str] = {
    ProviderIdentity.OPENAI: "gpt-4o",
    ProviderIdentity.GEMINI: "gemini-1.5-flash",
    ProviderIdentity.CLAUDE: "claude-3-5-sonnet-20241022",
    ProviderIdentity.DEEPSEEK: "deepseek-chat",
    ProviderIdentity.OPENROUTER: "mistralai/mistral-7b-instruct",
    ProviderIdentity.LLAMA: "Llama-3.3-70B-Instruct",
}

# Provider-neutral fallback: a fast multimodal model
FALLBACK_MODEL = DEFAULT_MODELS[ProviderIdentity.GEMINI]


def default_model(provider: ProviderIdentity) -> str:
    """Get the default model for a provider. Never fails."""
    return DEFAULT_MODELS.get(provider, FALLBACK_MODEL)

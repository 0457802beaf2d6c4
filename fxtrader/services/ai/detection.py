"""
Provider detection from API keys.

Vendors do not tag their keys, so the provider is sniffed from prefixes
and substrings. Order matters: OpenAI, DeepSeek and some OpenRouter keys
all start with ``sk-``, so the more specific rules run first. A future
vendor issuing plain ``sk-`` keys will be classified as OpenAI.
"""

from fxtrader.core.models import ProviderIdentity

# (kind, needle, provider) evaluated top to bottom, first match wins
DETECTION_RULES: tuple[tuple[str, str, ProviderIdentity], ...] = (
    ("prefix", "sk-or-", ProviderIdentity.OPENROUTER),
    ("contains", "deepseek", ProviderIdentity.DEEPSEEK),
    ("contains", "openrouter", ProviderIdentity.OPENROUTER),
    ("prefix", "sk-ant-", ProviderIdentity.CLAUDE),
    ("prefix", "AIza", ProviderIdentity.GEMINI),
    ("prefix", "sk-", ProviderIdentity.OPENAI),
    ("prefix", "claude-", ProviderIdentity.CLAUDE),
    ("prefix", "llama-", ProviderIdentity.LLAMA),
)

PROVIDER_DISPLAY_NAMES: dict[ProviderIdentity, str] = {
    ProviderIdentity.OPENAI: "OpenAI",
    ProviderIdentity.GEMINI: "Google Gemini",
    ProviderIdentity.CLAUDE: "Anthropic Claude",
    ProviderIdentity.DEEPSEEK: "DeepSeek",
    ProviderIdentity.OPENROUTER: "OpenRouter",
    ProviderIdentity.LLAMA: "Meta Llama",
    ProviderIdentity.UNKNOWN: "Unknown",
}


def detect_provider(api_key: str | None) -> ProviderIdentity:
    """Map an API key to the vendor that issued it."""
    if not api_key:
        return ProviderIdentity.UNKNOWN

    for kind, needle, provider in DETECTION_RULES:
        if kind == "prefix" and api_key.startswith(needle):
            return provider
        if kind == "contains" and needle in api_key:
            return provider

    return ProviderIdentity.UNKNOWN


def mask_api_key(api_key: str | None) -> str | None:
    """Mask a key for display, keeping the first and last four characters."""
    if not api_key:
        return None
    if len(api_key) <= 8:
        return "*" * len(api_key)
    return f"{api_key[:4]}{'*' * (len(api_key) - 8)}{api_key[-4:]}"

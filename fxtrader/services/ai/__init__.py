"""
AI Service Package

Multi-provider AI gateway:
- Provider detection from the API key
- One adapter per vendor (OpenAI, Gemini, Claude, DeepSeek, OpenRouter, Llama)
- Admin-editable configuration document with the key encrypted at rest
- Normalization of free-form replies into trading recommendations
"""

from fxtrader.services.ai.config_service import AIConfigService, resolve_config
from fxtrader.services.ai.detection import detect_provider
from fxtrader.services.ai.gateway import AIGateway, call_ai, get_ai_gateway
from fxtrader.services.ai.interface import AIProviderInterface
from fxtrader.services.ai.models_registry import default_model
from fxtrader.services.ai.normalizer import classify_keywords, normalize, parse_structured

__all__ = [
    "AIConfigService",
    "AIGateway",
    "AIProviderInterface",
    "call_ai",
    "classify_keywords",
    "default_model",
    "detect_provider",
    "get_ai_gateway",
    "normalize",
    "parse_structured",
    "resolve_config",
]

"""
Core models and types for Fx AI Trader.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Enums
# =============================================================================


class ProviderIdentity(str, Enum):
    """AI vendor inferred from an API key."""
    OPENAI = "openai"
    GEMINI = "gemini"
    CLAUDE = "claude"
    DEEPSEEK = "deepseek"
    OPENROUTER = "openrouter"
    LLAMA = "llama"
    UNKNOWN = "unknown"


class Recommendation(str, Enum):
    BUY = "Buy"
    SELL = "Sell"
    WAIT = "Wait"


class Confidence(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# =============================================================================
# Base Models
# =============================================================================


class BaseSchema(BaseModel):
    """Base schema with common configuration."""
    model_config = ConfigDict(from_attributes=True)


class AIConfig(BaseModel):
    """Fully resolved AI configuration. Build it with ``resolve_config``."""
    model_config = ConfigDict(frozen=True)

    api_key: str
    model: str
    persona: str


class AnalysisResult(BaseSchema):
    """Structured trading recommendation derived from raw model text."""
    recommendation: Recommendation
    explanation: str
    confidence: Confidence = Confidence.MEDIUM


class ChartAnalysis(BaseSchema):
    result: AnalysisResult
    provider: ProviderIdentity
    model: str
    # None when no pre-check ran
    is_likely_chart: bool | None = None


class ExplanationResult(BaseSchema):
    explanation: str
    provider: ProviderIdentity
    model: str


class ConnectionTestResult(BaseSchema):
    success: bool
    message: str
    provider: ProviderIdentity
    model: str
    test_response: str | None = None
    elapsed_ms: int = 0


class MigrationResult(BaseSchema):
    migrated: bool
    message: str
    config: dict[str, Any] = Field(default_factory=dict)


# =============================================================================
# Response Models
# =============================================================================


class APIResponse(BaseSchema):
    success: bool = True
    message: str | None = None
    data: Any = None
    meta: dict[str, Any] | None = None

"""
Core package initialization.
"""

from fxtrader.core.config import Settings, get_settings, settings
from fxtrader.core.models import (
    AIConfig,
    AnalysisResult,
    APIResponse,
    ChartAnalysis,
    Confidence,
    ConnectionTestResult,
    ExplanationResult,
    MigrationResult,
    ProviderIdentity,
    Recommendation,
)

__all__ = [
    # Config
    "Settings",
    "get_settings",
    "settings",
    # Enums
    "ProviderIdentity",
    "Recommendation",
    "Confidence",
    # Models
    "AIConfig",
    "AnalysisResult",
    "ChartAnalysis",
    "ExplanationResult",
    "ConnectionTestResult",
    "MigrationResult",
    "APIResponse",
]

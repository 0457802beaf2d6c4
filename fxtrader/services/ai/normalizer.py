"""
Response normalization.

Turns free-form model text into an ``AnalysisResult`` in two stages:

1. ``parse_structured`` - the text is (or contains, inside a Markdown
   code fence) a JSON object with a recognizable recommendation.
2. ``classify_keywords`` - fallback that scans the text for BUY/SELL
   keywords in English or Indonesian.

``normalize`` composes both and never raises.
"""

import json
import re
from typing import Any

import structlog

from fxtrader.core.models import AnalysisResult, Confidence, Recommendation

logger = structlog.get_logger()

_CODE_FENCE = re.compile(r"^\s*```[a-zA-Z0-9_-]*\s*\n?(.*?)\n?\s*```\s*$", re.DOTALL)

RECOMMENDATION_ALIASES: dict[str, Recommendation] = {
    "buy": Recommendation.BUY,
    "beli": Recommendation.BUY,
    "sell": Recommendation.SELL,
    "jual": Recommendation.SELL,
    "wait": Recommendation.WAIT,
    "tunggu": Recommendation.WAIT,
    "hold": Recommendation.WAIT,
}

CONFIDENCE_ALIASES: dict[str, Confidence] = {
    "high": Confidence.HIGH,
    "tinggi": Confidence.HIGH,
    "medium": Confidence.MEDIUM,
    "sedang": Confidence.MEDIUM,
    "low": Confidence.LOW,
    "rendah": Confidence.LOW,
}


def _strip_code_fence(raw: str) -> str:
    match = _CODE_FENCE.match(raw)
    return match.group(1) if match else raw


def _map_confidence(value: Any) -> Confidence:
    if isinstance(value, str):
        return CONFIDENCE_ALIASES.get(value.strip().lower(), Confidence.MEDIUM)
    return Confidence.MEDIUM


def parse_structured(raw: str) -> AnalysisResult | None:
    """Parse a JSON analysis object. Returns None when the text isn't one."""
    if not raw:
        return None

    try:
        data = json.loads(_strip_code_fence(raw).strip())
    except (json.JSONDecodeError, ValueError):
        return None

    if not isinstance(data, dict):
        return None

    recommendation = data.get("recommendation")
    if not isinstance(recommendation, str):
        return None
    mapped = RECOMMENDATION_ALIASES.get(recommendation.strip().lower())
    if mapped is None:
        return None

    explanation = data.get("explanation")
    if not isinstance(explanation, str) or not explanation:
        explanation = data.get("reasoning")
    if not isinstance(explanation, str):
        explanation = "" if explanation is None else str(explanation)

    return AnalysisResult(
        recommendation=mapped,
        explanation=explanation,
        confidence=_map_confidence(data.get("confidence")),
    )


def classify_keywords(raw: str) -> Recommendation:
    """Classify free text by keyword. BUY wins over SELL; neither means Wait."""
    upper = (raw or "").upper()
    if "BUY" in upper or "BELI" in upper:
        return Recommendation.BUY
    if "SELL" in upper or "JUAL" in upper:
        return Recommendation.SELL
    return Recommendation.WAIT


def normalize(raw: str) -> AnalysisResult:
    """Structured parse first, keyword fallback second."""
    result = parse_structured(raw)
    if result is not None:
        return result

    recommendation = classify_keywords(raw)
    logger.debug(
        "ai_response_keyword_fallback",
        recommendation=recommendation.value,
        response_len=len(raw or ""),
    )
    return AnalysisResult(
        recommendation=recommendation,
        explanation=raw or "",
        confidence=Confidence.MEDIUM,
    )


def parse_chart_check(raw: str) -> bool | None:
    """Read ``isLikelyChart`` from a chart pre-check reply; None if absent."""
    try:
        data = json.loads(_strip_code_fence(raw or "").strip())
    except (json.JSONDecodeError, ValueError):
        return None

    if not isinstance(data, dict):
        return None
    value = data.get("isLikelyChart")
    return value if isinstance(value, bool) else None

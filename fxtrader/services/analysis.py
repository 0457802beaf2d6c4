"""
Chart analysis service.

Glues the stored AI configuration, prompt templates, gateway and
response normalizer together for the two user-facing flows:
analyzing a chart and explaining a recommendation.
"""

from typing import Any

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from fxtrader.core.config import settings
from fxtrader.core.exceptions import ConfigurationError, ExternalServiceError, ValidationError
from fxtrader.core.models import AIConfig, ChartAnalysis, ExplanationResult, ProviderIdentity
from fxtrader.services.ai.config_service import AIConfigService
from fxtrader.services.ai.detection import detect_provider
from fxtrader.services.ai.gateway import AIGateway
from fxtrader.services.ai.normalizer import normalize, parse_chart_check
from fxtrader.services.ai.prompts import (
    CHART_CHECK_PERSONA,
    DEFAULT_PERSONA,
    EXPLANATION_PERSONA,
    build_chart_check_prompt,
    build_data_prompt,
    build_explanation_prompt,
    build_image_prompt,
)

logger = structlog.get_logger()


class ChartAnalysisService:
    """Runs chart analyses against the configured AI provider."""

    def __init__(self, db: AsyncSession, gateway: AIGateway):
        self.config_service = AIConfigService(db)
        self.gateway = gateway

    async def analyze_chart(
        self,
        chart_image_uri: str | None = None,
        chart_data: Any = None,
        is_likely_chart: bool | None = None,
    ) -> ChartAnalysis:
        """Analyze a chart image or raw chart data.

        The image wins when both are given; the data is then dropped.
        With ``chart_precheck_enabled`` an image is first checked by the
        model; a caller-supplied ``is_likely_chart`` skips that check.
        The flag is reported, never enforced.

        Raises:
            ValidationError: Neither input supplied
            ConfigurationError: No API key configured
        """
        if not chart_image_uri and chart_data is None:
            raise ValidationError(
                "chartImageUri atau chartData diperlukan",
                details={"fields": ["chartImageUri", "chartData"]},
            )

        config = await self.config_service.get_config()
        if not config.api_key:
            raise ConfigurationError("API key belum dikonfigurasi")
        provider = detect_provider(config.api_key)

        if chart_image_uri:
            if is_likely_chart is None and settings.chart_precheck_enabled:
                is_likely_chart = await self._check_chart_image(config, provider, chart_image_uri)
            user_prompt = build_image_prompt()
        else:
            is_likely_chart = None
            user_prompt = build_data_prompt(chart_data)

        raw = await self.gateway.call_ai(
            config.api_key,
            config.model,
            config.persona,
            user_prompt,
            chart_image_uri or None,
            provider=provider,
        )
        result = normalize(raw)

        logger.info(
            "chart_analysis_complete",
            provider=provider.value,
            model=config.model,
            source="image" if chart_image_uri else "data",
            recommendation=result.recommendation.value,
            confidence=result.confidence.value,
            is_likely_chart=is_likely_chart,
        )
        return ChartAnalysis(
            result=result,
            provider=provider,
            model=config.model,
            is_likely_chart=is_likely_chart,
        )

    async def _check_chart_image(
        self,
        config: AIConfig,
        provider: ProviderIdentity,
        chart_image_uri: str,
    ) -> bool:
        """Ask the model whether the image is a trading chart.

        A failed or unreadable check counts as a chart so the analysis
        itself still runs.
        """
        try:
            raw = await self.gateway.call_ai(
                config.api_key,
                config.model,
                CHART_CHECK_PERSONA,
                build_chart_check_prompt(),
                chart_image_uri,
                provider=provider,
            )
        except ExternalServiceError as e:
            logger.warning(
                "chart_precheck_failed",
                provider=provider.value,
                error_type=type(e).__name__,
                error=e.message[:200],
            )
            return True

        verdict = parse_chart_check(raw)
        if verdict is None:
            logger.warning("chart_precheck_unreadable", provider=provider.value, response_len=len(raw))
            return True
        return verdict

    async def explain_recommendation(
        self,
        recommendation: str,
        chart_image_uri: str | None = None,
    ) -> ExplanationResult:
        """Ask the model why ``recommendation`` fits the chart.

        Raises:
            ValidationError: Empty recommendation
            ConfigurationError: No API key configured
        """
        recommendation = (recommendation or "").strip()
        if not recommendation:
            raise ValidationError(
                "recommendation diperlukan",
                details={"field": "recommendation"},
            )

        config = await self.config_service.get_config()
        if not config.api_key:
            raise ConfigurationError("API key belum dikonfigurasi")

        # A custom persona set by the admin is respected
        persona = EXPLANATION_PERSONA if config.persona == DEFAULT_PERSONA else config.persona
        provider = detect_provider(config.api_key)

        explanation = await self.gateway.call_ai(
            config.api_key,
            config.model,
            persona,
            build_explanation_prompt(recommendation),
            chart_image_uri or None,
            provider=provider,
        )

        logger.info(
            "recommendation_explained",
            provider=provider.value,
            model=config.model,
            recommendation=recommendation,
            response_len=len(explanation),
        )
        return ExplanationResult(explanation=explanation, provider=provider, model=config.model)

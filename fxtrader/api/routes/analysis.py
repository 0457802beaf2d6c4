"""
Chart Analysis API Routes

Routes:
- POST /chart          - Analyze a chart image (data URI) or raw chart data
- POST /chart/upload   - Analyze an uploaded chart image
- POST /explain        - Explain why a recommendation fits the chart
"""

import base64
from typing import Annotated, Any

import structlog
from fastapi import APIRouter, Depends, File, UploadFile
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession

from fxtrader.api.middleware import add_ai_to_wide_event
from fxtrader.core.config import settings
from fxtrader.core.exceptions import InvalidImageError
from fxtrader.core.models import APIResponse, ChartAnalysis
from fxtrader.db import get_db
from fxtrader.services.ai.gateway import AIGateway, get_ai_gateway
from fxtrader.services.analysis import ChartAnalysisService

logger = structlog.get_logger()

router = APIRouter()

ALLOWED_IMAGE_TYPES = {"image/png", "image/jpeg", "image/webp", "image/gif"}


# ============================================================================
# Request Models
# ============================================================================

class ChartAnalysisRequest(BaseModel):
    """Chart to analyze. At least one field is required."""
    model_config = ConfigDict(populate_by_name=True)

    chart_image_uri: str | None = Field(default=None, alias="chartImageUri")
    chart_data: Any = Field(default=None, alias="chartData")
    # Result of a client-side chart check; skips the server pre-check
    is_likely_chart: bool | None = Field(default=None, alias="isLikelyChart")


class ExplainRequest(BaseModel):
    """Recommendation to explain, optionally with the chart it came from."""
    model_config = ConfigDict(populate_by_name=True)

    recommendation: str
    chart_image_uri: str | None = Field(default=None, alias="chartImageUri")


def _analysis_response(analysis: ChartAnalysis, has_image: bool) -> APIResponse:
    add_ai_to_wide_event(
        provider=analysis.provider.value,
        model=analysis.model,
        has_image=has_image,
        recommendation=analysis.result.recommendation.value,
        confidence=analysis.result.confidence.value,
    )
    return APIResponse(
        success=True,
        data={
            "recommendation": analysis.result.recommendation.value,
            "explanation": analysis.result.explanation,
            "confidence": analysis.result.confidence.value,
            "provider": analysis.provider.value,
            "model": analysis.model,
            "is_likely_chart": analysis.is_likely_chart,
        },
    )


# ============================================================================
# Endpoints
# ============================================================================

@router.post("/chart")
async def analyze_chart(
    request: ChartAnalysisRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    gateway: Annotated[AIGateway, Depends(get_ai_gateway)],
) -> APIResponse:
    """Analyze a chart and return a Buy/Sell/Wait recommendation."""
    service = ChartAnalysisService(db, gateway)
    analysis = await service.analyze_chart(
        chart_image_uri=request.chart_image_uri,
        chart_data=request.chart_data,
        is_likely_chart=request.is_likely_chart,
    )
    return _analysis_response(analysis, has_image=bool(request.chart_image_uri))


@router.post("/chart/upload")
async def analyze_chart_upload(
    db: Annotated[AsyncSession, Depends(get_db)],
    gateway: Annotated[AIGateway, Depends(get_ai_gateway)],
    file: UploadFile = File(...),
) -> APIResponse:
    """Analyze an uploaded chart image (PNG, JPEG, WebP or GIF)."""
    content_type = (file.content_type or "").lower()
    if content_type not in ALLOWED_IMAGE_TYPES:
        raise InvalidImageError(
            f"Tipe file '{content_type or 'unknown'}' tidak didukung",
            details={"allowed": sorted(ALLOWED_IMAGE_TYPES)},
        )

    # Read one byte past the limit to detect oversize uploads
    content = await file.read(settings.max_upload_bytes + 1)
    if not content:
        raise InvalidImageError("File gambar kosong")
    if len(content) > settings.max_upload_bytes:
        raise InvalidImageError(
            "File gambar terlalu besar",
            details={"max_bytes": settings.max_upload_bytes},
        )

    logger.info(
        "chart_upload_received",
        filename=file.filename,
        content_type=content_type,
        size_bytes=len(content),
    )

    data_uri = f"data:{content_type};base64,{base64.b64encode(content).decode()}"
    service = ChartAnalysisService(db, gateway)
    analysis = await service.analyze_chart(chart_image_uri=data_uri)
    return _analysis_response(analysis, has_image=True)


@router.post("/explain")
async def explain_recommendation(
    request: ExplainRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    gateway: Annotated[AIGateway, Depends(get_ai_gateway)],
) -> APIResponse:
    """Explain why the given recommendation makes sense for the chart."""
    service = ChartAnalysisService(db, gateway)
    result = await service.explain_recommendation(
        request.recommendation,
        chart_image_uri=request.chart_image_uri,
    )

    add_ai_to_wide_event(
        provider=result.provider.value,
        model=result.model,
        has_image=bool(request.chart_image_uri),
        recommendation=request.recommendation,
    )
    return APIResponse(
        success=True,
        data={
            "explanation": result.explanation,
            "provider": result.provider.value,
            "model": result.model,
        },
    )

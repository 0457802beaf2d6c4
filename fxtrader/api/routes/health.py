"""
Health check endpoints.
"""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from fxtrader.db import check_database_health

router = APIRouter()


@router.get("/api/health")
async def health_check() -> dict:
    """Basic health check."""
    return {"status": "healthy"}


@router.get("/api/ready")
async def readiness_check() -> JSONResponse:
    """Readiness check - includes database connectivity."""
    database_ok = await check_database_health()
    return JSONResponse(
        status_code=status.HTTP_200_OK if database_ok else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "ready" if database_ok else "not_ready",
            "database": "connected" if database_ok else "unavailable",
        },
    )

"""
Fx AI Trader API: application factory and uvicorn entry point.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from fxtrader.api.middleware import WideEventMiddleware
from fxtrader.api.routes import ai, analysis, health
from fxtrader.core.config import settings
from fxtrader.core.exceptions import (
    ConfigurationError,
    ExternalServiceError,
    FxTraderException,
    ProviderDetectionError,
    ProviderTimeoutError,
    ValidationError,
)
from fxtrader.core.logging import configure_logging
from fxtrader.db import DatabaseError, close_db, init_db

configure_logging(
    json_logs=not settings.debug,
    log_level="DEBUG" if settings.debug else "INFO",
)

logger = structlog.get_logger()

# Exception class -> (HTTP status, error type, log level). Starlette picks
# the most specific class, so FxTraderException only catches the rest.
ERROR_MAPPING: dict[type[FxTraderException], tuple[int, str, str]] = {
    ValidationError: (400, "validation_error", "info"),
    ProviderDetectionError: (400, "provider_detection_error", "warning"),
    ConfigurationError: (503, "configuration_error", "warning"),
    DatabaseError: (503, "database_error", "error"),
    ProviderTimeoutError: (504, "timeout_error", "error"),
    ExternalServiceError: (502, "external_service_error", "error"),
    FxTraderException: (500, "application_error", "error"),
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    logger.info("api_starting", version=settings.app_version, environment=settings.environment)
    await init_db()

    if not settings.default_ai_key:
        logger.warning("default_ai_key_missing", hint="analysis fails until an admin saves an API key")

    yield

    await close_db()
    logger.info("api_stopped")


def error_body(message: str, error_type: str, details: Any = None) -> dict[str, Any]:
    """Envelope shared by every error response."""
    error: dict[str, Any] = {"message": message, "type": error_type}
    if details is not None:
        error["details"] = details
    return {"success": False, "error": error}


def _register_error_handlers(app: FastAPI) -> None:
    def handler_for(status_code: int, error_type: str, level: str):
        async def handle(request: Request, exc: FxTraderException) -> JSONResponse:
            log_fields: dict[str, Any] = {"path": request.url.path, "error": exc.message[:500]}
            provider = getattr(exc, "provider", None)
            if provider:
                log_fields["provider"] = provider
            getattr(logger, level)("request_failed", error_type=error_type, **log_fields)
            return JSONResponse(
                status_code=status_code,
                content=error_body(exc.message, error_type, exc.details),
            )

        return handle

    for exc_class, (status_code, error_type, level) in ERROR_MAPPING.items():
        app.add_exception_handler(exc_class, handler_for(status_code, error_type, level))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.info("request_invalid", path=request.url.path, errors=exc.errors())
        return JSONResponse(
            status_code=422,
            content=error_body("Validation failed", "validation_error", jsonable_errors(exc)),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error("request_crashed", path=request.url.path, error=str(exc), exc_info=True)
        # Internal details only leak in debug mode
        message = str(exc) if settings.debug else "An unexpected error occurred"
        return JSONResponse(status_code=500, content=error_body(message, "internal_server_error"))


def jsonable_errors(exc: RequestValidationError) -> list[dict[str, Any]]:
    """Pydantic errors without the non-serializable ``ctx``/``input`` parts."""
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
        for err in exc.errors()
    ]


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="AI-powered forex chart analysis",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(WideEventMiddleware)

    app.include_router(health.router, tags=["Health"])
    app.include_router(analysis.router, prefix="/api/v1/analysis", tags=["Analysis"])
    app.include_router(ai.router, prefix="/api/v1/ai", tags=["AI"])

    _register_error_handlers(app)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "fxtrader.api.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )

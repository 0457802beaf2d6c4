"""
Request middleware emitting one wide event per request.

The event is opened before the route runs, enriched by the route and
the AI gateway, and logged once when the response (or error) is known.
The request id is echoed back in the ``X-Request-ID`` header so a client
report can be matched to its log line.
"""

from collections.abc import Awaitable, Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from fxtrader.core.logging import (
    emit_wide_event,
    enrich_event,
    finalize_request_event,
    init_request_event,
)

REQUEST_ID_HEADER = "X-Request-ID"


def client_ip(request: Request) -> str:
    """Best guess at the caller's address behind a reverse proxy."""
    forwarded = request.headers.get("x-forwarded-for", "")
    candidates = [
        forwarded.split(",")[0].strip(),
        request.headers.get("x-real-ip", ""),
        request.client.host if request.client else "",
    ]
    return next((c for c in candidates if c), "unknown")


class WideEventMiddleware(BaseHTTPMiddleware):
    """Canonical log line for every request except health checks."""

    # Polled constantly by orchestrators
    SKIP_PATHS = frozenset({"/api/health", "/api/ready", "/favicon.ico"})

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        if request.url.path in self.SKIP_PATHS:
            return await call_next(request)

        event = init_request_event(
            request_id=request.headers.get(REQUEST_ID_HEADER),
            method=request.method,
            path=request.url.path,
            client_ip=client_ip(request),
            user_agent=request.headers.get("user-agent", ""),
        )
        if request.query_params:
            enrich_event(**{"http.query_params": dict(request.query_params)})

        try:
            response = await call_next(request)
        except Exception as e:
            emit_wide_event(finalize_request_event(getattr(e, "status_code", 500), e))
            raise

        response.headers[REQUEST_ID_HEADER] = event["request_id"]
        emit_wide_event(finalize_request_event(response.status_code))
        return response


def add_ai_to_wide_event(
    provider: str | None = None,
    model: str | None = None,
    has_image: bool | None = None,
    recommendation: str | None = None,
    confidence: str | None = None,
) -> None:
    """Record the AI outcome of the current request.

    Unset fields are left out so a later call can fill them in.
    """
    fields = {
        "provider": provider,
        "model": model,
        "has_image": has_image,
        "recommendation": recommendation,
        "confidence": confidence,
    }
    enrich_event(**{f"ai.{name}": value for name, value in fields.items() if value is not None})

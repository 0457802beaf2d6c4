"""
Structured logging with one wide event per request.

Handlers and the AI gateway add context to a request-scoped event while
the request runs; the middleware emits it once as ``request_completed``.
Every vendor call made during the request is appended to ``ai_calls`` so
a single log line shows which provider was asked, how long it took and
whether it failed.
"""

import logging
import random
import re
import sys
import time
import uuid
from contextvars import ContextVar
from typing import Any

import structlog
from structlog.types import EventDict, Processor

from fxtrader.core.config import settings

_request_event: ContextVar[dict[str, Any] | None] = ContextVar("request_event", default=None)
_request_start: ContextVar[float] = ContextVar("request_start", default=0.0)

# Requests on these paths are always kept by tail sampling
ALWAYS_KEEP_PATH_MARKERS = ("/analysis", "/ai/")
SLOW_REQUEST_MS = 2000
SUCCESS_SAMPLE_RATE = 0.10

# Vendor key shapes that must never reach a log line
_SECRET_PATTERN = re.compile(r"\b(sk-(?:or-|ant-)?|AIza|llama-)[A-Za-z0-9_\-]{12,}")


def get_request_event() -> dict[str, Any]:
    """Current request's wide event, or an empty dict outside a request."""
    return _request_event.get() or {}


def enrich_event(**kwargs: Any) -> None:
    """Merge fields into the current wide event.

    Dotted keys become nested objects::

        enrich_event(**{"ai.provider": "gemini"})
    """
    event = _request_event.get()
    if event is None:
        return

    for key, value in kwargs.items():
        target = event
        *parents, leaf = key.split(".")
        for part in parents:
            target = target.setdefault(part, {})
        target[leaf] = value


def record_ai_call(
    provider: str,
    model: str,
    duration_ms: float,
    outcome: str,
    error_type: str | None = None,
) -> None:
    """Append one outbound vendor call to the current wide event."""
    event = _request_event.get()
    if event is None:
        return

    call: dict[str, Any] = {
        "provider": provider,
        "model": model,
        "duration_ms": duration_ms,
        "outcome": outcome,
    }
    if error_type:
        call["error_type"] = error_type
    event.setdefault("ai_calls", []).append(call)


def init_request_event(
    request_id: str | None = None,
    method: str = "",
    path: str = "",
    client_ip: str = "",
    user_agent: str = "",
) -> dict[str, Any]:
    """Start a new wide event for the request."""
    event: dict[str, Any] = {
        "request_id": request_id or uuid.uuid4().hex[:8],
        "timestamp": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
        "http": {
            "method": method,
            "path": path,
            "client_ip": client_ip,
            "user_agent": user_agent[:200] or None,
        },
        "service": {
            "name": "fx-ai-trader-api",
            "version": settings.app_version,
            "environment": settings.environment,
        },
    }

    _request_event.set(event)
    _request_start.set(time.perf_counter())
    return event


def finalize_request_event(
    status_code: int,
    error: Exception | None = None,
) -> dict[str, Any]:
    """Attach status, duration and error to the wide event and return it."""
    event = get_request_event()

    event.setdefault("http", {})["status_code"] = status_code
    event["duration_ms"] = round((time.perf_counter() - _request_start.get()) * 1000, 2)
    event["outcome"] = "success" if status_code < 400 else "error"

    if error is not None:
        event["error"] = {
            "type": type(error).__name__,
            "message": str(error)[:500],
            "details": getattr(error, "details", None),
        }

    return event


def should_sample(event: dict[str, Any]) -> bool:
    """
    Tail sampling decision for wide events.

    Kept: errors, slow requests, requests with a failed vendor call,
    analysis and AI configuration requests. Everything else at 10%.
    """
    if event.get("http", {}).get("status_code", 200) >= 400:
        return True

    if event.get("duration_ms", 0) > SLOW_REQUEST_MS:
        return True

    if any(call.get("outcome") != "success" for call in event.get("ai_calls", [])):
        return True

    path = event.get("http", {}).get("path", "")
    if any(marker in path for marker in ALWAYS_KEEP_PATH_MARKERS):
        return True

    return random.random() < SUCCESS_SAMPLE_RATE


def add_request_id(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Processor tagging every log entry with the current request id."""
    event = _request_event.get()
    if event and "request_id" in event:
        event_dict.setdefault("request_id", event["request_id"])
    return event_dict


def redact_secrets(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Processor masking anything shaped like a vendor API key."""
    for key, value in event_dict.items():
        if isinstance(value, str):
            event_dict[key] = _SECRET_PATTERN.sub(r"\1[REDACTED]", value)
    return event_dict


def configure_logging(json_logs: bool = True, log_level: str = "INFO") -> None:
    """
    Configure structlog.

    Args:
        json_logs: JSON lines (production) or colored console (development).
        log_level: Minimum level, e.g. DEBUG or INFO.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        add_request_id,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        redact_secrets,
    ]

    if json_logs:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )

    # Third-party libraries (uvicorn, httpx, sqlalchemy) log via stdlib
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)


def emit_wide_event(event: dict[str, Any]) -> None:
    """Emit the canonical log line for a request, subject to sampling."""
    if not should_sample(event):
        return

    logger = structlog.get_logger("wide_event")
    status_code = event.get("http", {}).get("status_code", 200)

    if status_code >= 500:
        logger.error("request_completed", **event)
    elif status_code >= 400:
        logger.warning("request_completed", **event)
    else:
        logger.info("request_completed", **event)

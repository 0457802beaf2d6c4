"""
API Middleware package.

- Wide Events: canonical log line per request
"""

from fxtrader.api.middleware.wide_events import WideEventMiddleware, add_ai_to_wide_event

__all__ = [
    "WideEventMiddleware",
    "add_ai_to_wide_event",
]

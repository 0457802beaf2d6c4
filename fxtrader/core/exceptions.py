"""
Application exception hierarchy.

Every exception carries a human-readable ``message`` and a ``details``
dict. The API layer maps each class to a status code in
``fxtrader.api.main``.
"""

from typing import Any


class FxTraderException(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(FxTraderException):
    """Invalid caller input."""


class InvalidImageError(ValidationError):
    """Image input is not a base64 data URI."""


class ConfigurationError(FxTraderException):
    """The AI configuration is incomplete (e.g. no API key saved)."""


class ProviderDetectionError(FxTraderException):
    """API key matches no known provider. Raised before any upstream call."""

    def __init__(self, message: str = "Provider tidak dikenali. Periksa API Key."):
        super().__init__(message, details={"provider": "unknown"})


class ExternalServiceError(FxTraderException):
    """Base class for failures of an external AI vendor."""

    def __init__(self, provider: str, message: str, details: dict[str, Any] | None = None):
        self.provider = provider
        super().__init__(message, details={"provider": provider, **(details or {})})


class UpstreamError(ExternalServiceError):
    """Vendor answered with a non-2xx status."""

    def __init__(self, provider: str, http_status: int, message: str):
        self.http_status = http_status
        super().__init__(provider, message, details={"http_status": http_status})


class MalformedResponseError(ExternalServiceError):
    """Vendor answered 2xx but the expected text field is missing."""


class ProviderTimeoutError(ExternalServiceError):
    """A bounded call (connectivity test) did not finish in time."""

    def __init__(self, provider: str, timeout_seconds: float):
        self.timeout_seconds = timeout_seconds
        super().__init__(
            provider,
            f"Timeout setelah {timeout_seconds:g} detik",
            details={"timeout_seconds": timeout_seconds},
        )


class DatabaseError(FxTraderException):
    """Persistence failure."""

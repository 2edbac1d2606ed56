"""
Error taxonomy for provider and collector failures, plus HTTP mapping for routes.

Provider-boundary failures raise ProviderError subclasses. Cache failures are never raised;
they degrade to a cache miss inside the cache layer. CircuitOpenError is the collector's
fail-fast signal. Routes use error_to_http so new error types only need a new rule here.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from fastapi import HTTPException


class ProviderError(Exception):
    """Base for failures talking to an external booking platform."""

    def __init__(self, message: str, provider: str, code: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.provider = provider
        self.code = code
        self.status_code = status_code


class RateLimitError(ProviderError):
    def __init__(self, provider: str) -> None:
        super().__init__("Rate limit exceeded", provider, "RATE_LIMIT", 429)


class ScrapingError(ProviderError):
    def __init__(self, message: str, provider: str, status_code: int | None = None) -> None:
        super().__init__(message, provider, "SCRAPING_ERROR", status_code)


class CircuitOpenError(Exception):
    """Circuit breaker is open; the call was rejected without any network I/O."""


@dataclass(frozen=True)
class SwallowedError:
    """
    A failure that was caught and skipped on purpose (one venue, one slot, one provider).
    Collected in an errors side channel so callers and tests can see what was dropped.
    """
    scope: str  # venue | slot | provider | discovery
    key: str
    message: str

    def __str__(self) -> str:
        return f"{self.scope}:{self.key}: {self.message}"


# ---------------------------------------------------------------------------
# HTTP mapping: (predicate, status_code). First match wins.
# ---------------------------------------------------------------------------

STATUS_BAD_GATEWAY = 502
STATUS_SERVICE_UNAVAILABLE = 503
STATUS_INTERNAL_ERROR = 500

ERROR_RULES: list[tuple[Callable[[Exception], bool], int]] = [
    (lambda e: isinstance(e, RateLimitError), STATUS_SERVICE_UNAVAILABLE),
    (lambda e: isinstance(e, CircuitOpenError), STATUS_SERVICE_UNAVAILABLE),
    (lambda e: isinstance(e, ScrapingError), STATUS_BAD_GATEWAY),
    (lambda e: isinstance(e, ProviderError), STATUS_BAD_GATEWAY),
]


def error_to_http(exc: Exception) -> HTTPException:
    """Map a service exception to an HTTPException. Unknown errors become 500 with the message."""
    detail: dict[str, str] = {"error": str(exc)}
    if isinstance(exc, ProviderError):
        detail["code"] = exc.code
        detail["provider"] = exc.provider
    for predicate, status_code in ERROR_RULES:
        if predicate(exc):
            return HTTPException(status_code=status_code, detail=detail)
    return HTTPException(status_code=STATUS_INTERNAL_ERROR, detail=detail)

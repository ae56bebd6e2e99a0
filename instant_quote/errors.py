"""
Error types for the Instant Quote extractor.

Fetch errors are strategy-local and never reach API callers; the
orchestrator converts them into a degraded product record.
"""
from enum import Enum
from typing import Optional


class InstantQuoteError(Exception):
    """Base class for all errors raised by this package."""


class ConfigurationError(InstantQuoteError):
    """Required configuration is missing or invalid (raised at startup)."""


class FetchErrorKind(str, Enum):
    """Why a fetch strategy failed."""
    NETWORK = "network"
    HTTP_STATUS = "http_status"
    TIMEOUT = "timeout"
    PROXY_ERROR = "proxy_error"
    PROXY_RATE_LIMITED = "proxy_rate_limited"


class FetchError(InstantQuoteError):
    """A single fetch strategy could not produce HTML."""

    def __init__(
        self,
        kind: FetchErrorKind,
        message: str,
        status_code: Optional[int] = None,
        retryable: bool = False,
    ):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.status_code = status_code
        self.retryable = retryable

    def __str__(self) -> str:
        if self.status_code is not None:
            return f"{self.kind.value} ({self.status_code}): {self.message}"
        return f"{self.kind.value}: {self.message}"


class StructuredDataError(InstantQuoteError):
    """An embedded structured-data block could not be decoded."""

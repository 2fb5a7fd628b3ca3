"""Proxy pipeline exception hierarchy.

All pipeline-specific exceptions derive from :class:`ProxyTrackError` so callers
can catch them uniformly. Source adapters raise subclasses of
:class:`DataSourceError`; the service converts those into synthetic results and
lets everything else propagate.
"""

from __future__ import annotations

from enum import Enum


class SourceErrorReason(str, Enum):
    """Why a source adapter failed."""

    MALFORMED_RESPONSE = "malformed_response"
    UNAUTHORIZED = "unauthorized"
    UNAVAILABLE = "unavailable"
    NOT_FOUND = "not_found"


class ProxyTrackError(Exception):
    """Base class for proxy pipeline exceptions."""


class ConfigError(ProxyTrackError):
    """Raised when settings or catalog files are invalid."""


class DataValidationError(ProxyTrackError):
    """Raised when a caller violates the pipeline contract.

    Examples are an empty identifier or a news proxy routed into the numeric
    pipeline. These are programming errors, not transient faults.
    """


class DataSourceError(ProxyTrackError):
    """Raised when fetching or decoding data from an external source fails.

    :param message: Human readable description.
    :param source: Name of the source that failed (e.g. "equity").
    """

    reason: SourceErrorReason = SourceErrorReason.UNAVAILABLE

    def __init__(self, message: str, source: str | None = None) -> None:
        super().__init__(message)
        self.source = source


class MalformedResponseError(DataSourceError):
    """Raised when a payload does not have the expected shape."""

    reason = SourceErrorReason.MALFORMED_RESPONSE


class UnauthorizedError(DataSourceError):
    """Raised when a credential is missing or rejected."""

    reason = SourceErrorReason.UNAUTHORIZED


class UnavailableError(DataSourceError):
    """Raised on non-success HTTP status, rate limiting or network failure."""

    reason = SourceErrorReason.UNAVAILABLE


class NotFoundError(DataSourceError):
    """Raised when a ticker, series or market cannot be resolved."""

    reason = SourceErrorReason.NOT_FOUND


__all__ = [
    "SourceErrorReason",
    "ProxyTrackError",
    "ConfigError",
    "DataValidationError",
    "DataSourceError",
    "MalformedResponseError",
    "UnauthorizedError",
    "UnavailableError",
    "NotFoundError",
]

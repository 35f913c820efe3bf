"""
Error taxonomy for the stock screener.

The remote fetcher raises these; StockDataService catches every one of
them and substitutes fallback data, so they never reach callers of the
public data operations.
"""


class ScreenerError(Exception):
    """Base class for all screener errors."""

    kind = "unexpected_error"


class NetworkFailure(ScreenerError):
    """Transport-level failure (DNS, connection refused, TLS)."""

    kind = "network_failure"

    def __init__(self, message: str, original_error: Exception | None = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class TimeoutFailure(ScreenerError):
    """Request exceeded the configured timeout."""

    kind = "timeout"

    def __init__(self, message: str, original_error: Exception | None = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class UpstreamAPIError(ScreenerError):
    """HTTP response received with a non-2xx status (or an unreadable body)."""

    kind = "api_error"

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        upstream_message: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.upstream_message = upstream_message

    def __str__(self) -> str:
        if self.status_code is None:
            return self.message
        return f"[{self.status_code}] {self.message}"


class ValidationError(ScreenerError):
    """Malformed caller input (screening criteria)."""

    kind = "validation_error"

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.message = message
        self.field = field


def error_kind(error: BaseException) -> str:
    """Short diagnostic label for an exception."""
    return getattr(error, "kind", "unexpected_error")


def user_friendly_message(error: BaseException) -> str:
    """Map an exception to a message suitable for end users."""
    if isinstance(error, TimeoutFailure):
        return "Request timed out. Please check your connection and try again."

    if isinstance(error, NetworkFailure):
        return "Network error. Please check your internet connection."

    if isinstance(error, UpstreamAPIError):
        if error.status_code == 429:
            return "API rate limit exceeded. Please try again in a few minutes."
        if error.status_code == 401:
            return "API authentication failed. Please check your API key."
        if error.status_code is not None and error.status_code >= 500:
            return "API server error. The service may be temporarily unavailable."
        return f"API error: {error.message}"

    if isinstance(error, ValidationError):
        return f"Validation error: {error.message}"

    return "An unexpected error occurred. Please try again."

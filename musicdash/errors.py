"""
Error taxonomy shared by all musicdash services.
"""

from typing import Optional


class MusicDashError(Exception):
    """Base class for service errors."""


class Unauthorized(MusicDashError):
    """The user has not granted access to the music provider."""

    def __init__(self, message: str = "Music access not authorized"):
        super().__init__(message)


class RateLimited(MusicDashError):
    """The remote API answered 429. Retryable."""

    def __init__(self, message: str = "Rate limit exceeded", retry_after: Optional[float] = None):
        super().__init__(message)
        self.retry_after = retry_after


class NetworkError(MusicDashError):
    """Transient transport failure."""


class InvalidResponse(MusicDashError):
    """Payload could not be decoded."""


class NotFound(MusicDashError):
    """Record store miss."""


class ApiError(MusicDashError):
    """Non-2xx response other than 429."""

    def __init__(self, status: int, message: Optional[str] = None):
        self.status = status
        self.message = message or f"API error with status code {status}"
        super().__init__(self.message)


def parse_retry_after(value) -> Optional[float]:
    """Parse a Retry-After header value in seconds, or None."""
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None

"""
Retry utilities for handling rate-limited API calls.

Provides decorators and helpers for retrying calls with exponential backoff.
Only rate-limit errors are retried; everything else propagates on the first
failure.
"""

import asyncio
import functools
import logging
import time
from typing import Callable

from .errors import RateLimited

logger = logging.getLogger(__name__)


def is_rate_limit_error(exc: Exception) -> bool:
    """Check if an exception is a rate-limit response (HTTP 429)."""
    if isinstance(exc, RateLimited):
        return True

    # Provider exceptions (e.g. spotipy.SpotifyException) carry the status
    for attr in ("http_status", "status", "status_code"):
        if getattr(exc, attr, None) == 429:
            return True
    return False


def backoff_delay(attempt: int, base_delay: float = 1.0) -> float:
    """Delay before retry number `attempt` (1-based): 1s, 2s, 4s, ..."""
    return base_delay * (2 ** (attempt - 1))


def with_retry(max_attempts: int = 3, base_delay: float = 1.0):
    """
    Decorator for retrying synchronous functions on rate limits.

    Args:
        max_attempts: Maximum number of attempts (including first try)
        base_delay: Initial delay between retries in seconds
    """

    def decorator(func: Callable):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            for attempt in range(1, max_attempts + 1):
                try:
                    return func(*args, **kwargs)
                except Exception as e:
                    if not is_rate_limit_error(e) or attempt == max_attempts:
                        raise

                    delay = backoff_delay(attempt, base_delay)
                    logger.warning(
                        f"Rate limited, retry {attempt}/{max_attempts} for "
                        f"{func.__name__} after {delay:.1f}s"
                    )
                    time.sleep(delay)

        return wrapper

    return decorator


def async_with_retry(max_attempts: int = 3, base_delay: float = 1.0):
    """
    Decorator for retrying async functions on rate limits.

    Args:
        max_attempts: Maximum number of attempts (including first try)
        base_delay: Initial delay between retries in seconds
    """

    def decorator(func: Callable):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            return await retry_rate_limited(
                func, *args, max_attempts=max_attempts, base_delay=base_delay, **kwargs
            )

        return wrapper

    return decorator


async def retry_rate_limited(
    func: Callable,
    *args,
    max_attempts: int = 3,
    base_delay: float = 1.0,
    **kwargs,
):
    """Await `func(*args, **kwargs)`, retrying rate-limit errors with backoff."""
    for attempt in range(1, max_attempts + 1):
        try:
            return await func(*args, **kwargs)
        except Exception as e:
            if not is_rate_limit_error(e) or attempt == max_attempts:
                raise

            delay = backoff_delay(attempt, base_delay)
            func_name = getattr(func, "__name__", str(func))
            logger.warning(
                f"Rate limited, retry {attempt}/{max_attempts} for {func_name} "
                f"after {delay:.1f}s"
            )
            await asyncio.sleep(delay)


async def retry_async_call(
    func: Callable,
    *args,
    max_attempts: int = 3,
    base_delay: float = 1.0,
    **kwargs,
):
    """
    Retry a synchronous function called via asyncio.to_thread.

    This is useful for wrapping spotipy/requests calls that block.
    """

    async def _call():
        return await asyncio.to_thread(func, *args, **kwargs)

    _call.__name__ = getattr(func, "__name__", str(func))
    return await retry_rate_limited(_call, max_attempts=max_attempts, base_delay=base_delay)

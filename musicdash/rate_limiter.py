"""
Request pacing for the news API.
"""

import asyncio
import time
from typing import Optional


class RateLimiter:
    """
    Bounds in-flight requests and spaces out their start times.

        async with limiter:
            response = await asyncio.to_thread(session.get, url)

    `rate_per_second=0` disables the spacing and keeps only the concurrency
    bound.
    """

    def __init__(self, max_concurrent: int = 1, rate_per_second: float = 1.0):
        self.max_concurrent = max(1, int(max_concurrent))
        self.min_interval = 1.0 / rate_per_second if rate_per_second else 0.0
        self.requests_started = 0
        self._slots: Optional[asyncio.Semaphore] = None
        self._last_start: Optional[float] = None

    def _semaphore(self) -> asyncio.Semaphore:
        # Created lazily so the limiter can be built outside a running loop
        if self._slots is None:
            self._slots = asyncio.Semaphore(self.max_concurrent)
        return self._slots

    async def acquire(self):
        await self._semaphore().acquire()

        now = time.monotonic()
        start = now
        if self.min_interval and self._last_start is not None:
            start = max(now, self._last_start + self.min_interval)
        # Reserve the start time before sleeping so concurrent callers queue up
        self._last_start = start
        self.requests_started += 1

        if start > now:
            await asyncio.sleep(start - now)

    def release(self):
        self._semaphore().release()

    async def __aenter__(self):
        await self.acquire()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.release()
        return False

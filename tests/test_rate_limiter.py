import asyncio

from musicdash.rate_limiter import RateLimiter


def test_requests_are_spaced_by_min_interval(monkeypatch):
    sleeps = []

    async def _sleep(seconds):
        sleeps.append(seconds)

    monkeypatch.setattr(asyncio, "sleep", _sleep)

    async def scenario(limiter):
        for _ in range(3):
            async with limiter:
                pass

    limiter = RateLimiter(max_concurrent=1, rate_per_second=2.0)
    asyncio.run(scenario(limiter))

    assert limiter.requests_started == 3
    # Sleep is patched out, so the clock barely moves: starts land at +0.5 s and +1.0 s
    assert len(sleeps) == 2
    assert 0.4 < sleeps[0] <= 0.5
    assert 0.9 < sleeps[1] <= 1.0


def test_zero_rate_only_bounds_concurrency(monkeypatch):
    sleeps = []

    async def _sleep(seconds):
        sleeps.append(seconds)

    monkeypatch.setattr(asyncio, "sleep", _sleep)

    async def scenario(limiter):
        async with limiter:
            assert limiter._semaphore().locked()
        async with limiter:
            pass

    limiter = RateLimiter(max_concurrent=1, rate_per_second=0)
    asyncio.run(scenario(limiter))

    assert sleeps == []
    assert limiter.requests_started == 2

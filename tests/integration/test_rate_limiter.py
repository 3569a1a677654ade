"""Tests for rate limiter."""

import asyncio

import pytest

from steam_catalog.ingestion.utils.rate_limiter import (
    RateLimiter,
    RateLimiterConfig,
)


class FakeClock:
    """Manual clock whose sleep advances time instead of waiting."""

    def __init__(self) -> None:
        self.now = 100.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class TestRateLimiter:
    """Tests for RateLimiter."""

    @pytest.mark.asyncio
    async def test_first_acquire_is_immediate(self) -> None:
        clock = FakeClock()
        limiter = RateLimiter(RateLimiterConfig(min_interval_seconds=1.5), clock=clock, sleep=clock.sleep)

        await limiter.acquire()

        assert clock.sleeps == []

    @pytest.mark.asyncio
    async def test_spacing_between_acquisitions(self) -> None:
        """Test that successive acquisitions are spaced by the interval."""
        clock = FakeClock()
        limiter = RateLimiter(RateLimiterConfig(min_interval_seconds=1.5), clock=clock, sleep=clock.sleep)

        await limiter.acquire()
        clock.now += 0.5
        await limiter.acquire()
        await limiter.acquire()

        assert clock.sleeps == pytest.approx([1.0, 1.5])

    @pytest.mark.asyncio
    async def test_no_wait_after_idle(self) -> None:
        clock = FakeClock()
        limiter = RateLimiter(RateLimiterConfig(min_interval_seconds=1.5), clock=clock, sleep=clock.sleep)

        await limiter.acquire()
        clock.now += 10
        assert limiter.wait_time == 0.0
        await limiter.acquire()

        assert clock.sleeps == []

    @pytest.mark.asyncio
    async def test_concurrent_callers_are_serialized(self) -> None:
        clock = FakeClock()
        limiter = RateLimiter(RateLimiterConfig(min_interval_seconds=2.0), clock=clock, sleep=clock.sleep)

        await asyncio.gather(*(limiter.acquire() for _ in range(3)))

        assert clock.sleeps == pytest.approx([2.0, 2.0])

    @pytest.mark.asyncio
    async def test_context_manager(self) -> None:
        """Test rate limiter as context manager."""
        clock = FakeClock()
        limiter = RateLimiter(RateLimiterConfig(min_interval_seconds=1.0), clock=clock, sleep=clock.sleep)

        async with limiter:
            pass
        async with limiter:
            pass

        assert clock.sleeps == pytest.approx([1.0])

    @pytest.mark.asyncio
    async def test_zero_interval_never_waits(self) -> None:
        limiter = RateLimiter(RateLimiterConfig(min_interval_seconds=0))

        for _ in range(5):
            await limiter.acquire()

        assert limiter.wait_time == 0.0

"""
Rate limiter for API requests.

Enforces a fixed minimum delay between successive acquisitions so the
sync stays under the Store API limit (~200 requests per 5 minutes).
"""

import asyncio
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from steam_catalog.logger import get_logger


@dataclass
class RateLimiterConfig:
    """Configuration for rate limiter."""

    min_interval_seconds: float = 1.5


@dataclass
class RateLimiter:
    """
    Fixed-interval rate limiter.

    The first acquisition passes immediately; each later one waits until
    ``min_interval_seconds`` have elapsed since the previous one.

    Example:
        >>> limiter = RateLimiter(RateLimiterConfig(min_interval_seconds=1.5))
        >>> async with limiter:
        ...     await make_request()
    """

    config: RateLimiterConfig
    clock: Callable[[], float] = time.monotonic
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep
    _last_acquired: float | None = field(init=False, default=None)
    _lock: asyncio.Lock = field(init=False, default_factory=asyncio.Lock)
    _logger: Any = field(init=False)

    def __post_init__(self) -> None:
        """Initialize rate limiter state."""
        self._logger = get_logger(__name__, component="rate_limiter")

    @property
    def wait_time(self) -> float:
        """Seconds until the next acquisition may pass."""
        if self._last_acquired is None:
            return 0.0
        elapsed = self.clock() - self._last_acquired
        return max(0.0, self.config.min_interval_seconds - elapsed)

    async def acquire(self) -> None:
        """
        Wait out the remaining interval, then mark an acquisition.

        Concurrent callers are serialized, so they are spaced too.
        """
        async with self._lock:
            wait_time = self.wait_time
            if wait_time > 0:
                self._logger.debug(
                    "Pacing request",
                    wait_seconds=round(wait_time, 2),
                )
                await self.sleep(wait_time)
            self._last_acquired = self.clock()

    async def __aenter__(self) -> "RateLimiter":
        """Acquire on context entry."""
        await self.acquire()
        return self

    async def __aexit__(self, *args: Any) -> None:
        """No-op on context exit."""
        pass

"""
Concurrency cap plus per-key pacing for outbound calls.

Every provider call goes through a RateLimiter:

    async with limiter.acquire(f"channel:{channel_id}"):
        response = await provider.generate(request)

Two things are enforced:

1. At most ``max_concurrent`` holders at once (global semaphore).
2. Consecutive grants for the same key are at least ``min_interval`` apart.

Pacing reserves the next grant time while holding the lock and then sleeps
outside it, so callers for different keys never wait on each other's sleeps
and two callers for the same key get consecutive, non-overlapping slots.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

from chloe.config.logging import get_logger
from chloe.config.settings import RateLimitSettings
from chloe.errors import RateLimiterTimeout

logger = get_logger(__name__)


@dataclass(frozen=True)
class RateLimitPermit:
    """Proof that a slot was granted. Released when the ``acquire`` block exits."""

    key: str
    granted_at: float
    waited: float


class RateLimiter:
    """
    Args:
        max_concurrent: Global number of simultaneous holders.
        min_interval: Minimum seconds between grants for the same key.
        acquire_timeout: Seconds to wait for a free slot before raising
            RateLimiterTimeout. None waits indefinitely.
    """

    def __init__(
        self,
        max_concurrent: int,
        min_interval: float,
        acquire_timeout: float | None = None,
    ):
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be at least 1")
        if min_interval < 0:
            raise ValueError("min_interval cannot be negative")

        self.max_concurrent = max_concurrent
        self.min_interval = min_interval
        self.acquire_timeout = acquire_timeout

        self._semaphore = asyncio.Semaphore(max_concurrent)
        self._lock = asyncio.Lock()
        self._last_grant: dict[str, float] = {}
        self._active = 0

    @property
    def active(self) -> int:
        """Number of permits currently held."""
        return self._active

    async def _reserve(self, key: str) -> float:
        async with self._lock:
            now = time.monotonic()
            last = self._last_grant.get(key)
            grant_at = now if last is None else max(now, last + self.min_interval)
            self._last_grant[key] = grant_at
        return grant_at - now

    @asynccontextmanager
    async def acquire(self, key: str = "default") -> AsyncIterator[RateLimitPermit]:
        """
        Hold a slot for the duration of the ``async with`` block.

        Raises:
            RateLimiterTimeout: No slot became free within ``acquire_timeout``.
        """
        start = time.monotonic()
        try:
            await asyncio.wait_for(self._semaphore.acquire(), timeout=self.acquire_timeout)
        except asyncio.TimeoutError as e:
            logger.warning(f"Rate limiter slot wait timed out for {key}")
            raise RateLimiterTimeout(key, self.acquire_timeout or 0.0) from e

        self._active += 1
        try:
            delay = await self._reserve(key)
            if delay > 0:
                logger.debug(f"Pacing {key}: sleeping {delay * 1000:.0f}ms")
                await asyncio.sleep(delay)
            yield RateLimitPermit(
                key=key,
                granted_at=time.monotonic(),
                waited=time.monotonic() - start,
            )
        finally:
            self._active -= 1
            self._semaphore.release()


def create_llm_rate_limiter(settings: RateLimitSettings | None = None) -> RateLimiter:
    """Limiter for LLM provider calls (5 concurrent, 200ms per key by default)."""
    settings = settings or RateLimitSettings()
    return RateLimiter(
        max_concurrent=settings.llm_max_concurrent,
        min_interval=settings.llm_min_interval_ms / 1000,
        acquire_timeout=settings.acquire_timeout,
    )


def create_api_rate_limiter(settings: RateLimitSettings | None = None) -> RateLimiter:
    """Limiter for other HTTP APIs such as search and fetch (10 concurrent, 100ms)."""
    settings = settings or RateLimitSettings()
    return RateLimiter(
        max_concurrent=settings.api_max_concurrent,
        min_interval=settings.api_min_interval_ms / 1000,
        acquire_timeout=settings.acquire_timeout,
    )

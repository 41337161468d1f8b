"""
In-Memory Rate Limiter

Process-local counters for development and tests.
Not shared between worker processes.

Author: Khalil Bannouri
Version: 3.0.0
"""

import asyncio
import logging
import time
from typing import Callable

from app.services.rate_limit.base import BaseRateLimiter

logger = logging.getLogger(__name__)

# Seconds between sweeps of expired windows
CLEANUP_INTERVAL = 60


class InMemoryRateLimiter(BaseRateLimiter):
    """Fixed-window counters held in a dict."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        # key -> (window end, count)
        self._windows: dict[str, tuple[float, int]] = {}
        self._next_cleanup = clock() + CLEANUP_INTERVAL
        self._lock = asyncio.Lock()
        logger.info("InMemoryRateLimiter initialized")

    @property
    def provider_name(self) -> str:
        return "memory"

    @property
    def window_count(self) -> int:
        return len(self._windows)

    def _cleanup(self, now: float) -> None:
        expired = [key for key, (end, _) in self._windows.items() if end <= now]
        for key in expired:
            del self._windows[key]
        self._next_cleanup = now + CLEANUP_INTERVAL

        if expired:
            logger.debug(f"Dropped {len(expired)} expired rate-limit windows")

    async def hit(self, key: str, limit: int, window_seconds: int) -> bool:
        async with self._lock:
            now = self._clock()
            if now >= self._next_cleanup:
                self._cleanup(now)

            end, count = self._windows.get(key, (now + window_seconds, 0))
            if end <= now:
                end, count = now + window_seconds, 0

            if count >= limit:
                self._windows[key] = (end, count)
                logger.warning(f"Rate limit exceeded for {key}")
                return False

            self._windows[key] = (end, count + 1)
            return True

    async def reset(self, key: str) -> None:
        async with self._lock:
            self._windows.pop(key, None)

    async def health_check(self) -> bool:
        return True

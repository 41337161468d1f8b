"""
Rate Limiter Abstract Base Class

Fixed-window request counters keyed by tier and requester.
Both the in-memory (development) and Redis (production) limiters
implement this interface.

Author: Khalil Bannouri
Version: 3.0.0
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitTier:
    """
    A named limit policy.

    Attributes:
        name: Tier name, used as the key prefix ("api", "auth", "resend")
        attempts: Requests allowed per window
        window_seconds: Window length
    """
    name: str
    attempts: int
    window_seconds: int

    def key(self, identifier: str) -> str:
        return f"ratelimit:{self.name}:{identifier}"


class BaseRateLimiter(ABC):
    """Abstract base class for rate limiters."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the backend name."""
        pass

    @abstractmethod
    async def hit(self, key: str, limit: int, window_seconds: int) -> bool:
        """
        Record one request against ``key``.

        Returns:
            True if the request is within the limit, False if it must be rejected
        """
        pass

    @abstractmethod
    async def reset(self, key: str) -> None:
        """Forget all recorded requests for ``key``."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check backend connectivity."""
        pass

    async def close(self) -> None:
        """Release backend connections."""
        pass

    async def allow(self, tier: RateLimitTier, identifier: str) -> bool:
        if tier.attempts <= 0:
            return False
        return await self.hit(tier.key(identifier), tier.attempts, tier.window_seconds)

"""
Rate Limiter Factory

Returns the in-memory or Redis limiter based on ENV_MODE, and builds the
configured limit tiers.

Tiers:
    - api: every authenticated API request
    - auth: register / login / check-user
    - resend: verification email resends

Author: Khalil Bannouri
Version: 3.0.0
"""

import logging
from functools import lru_cache

from app.core.config import Settings, get_settings
from app.services.rate_limit.base import BaseRateLimiter, RateLimitTier
from app.services.rate_limit.memory import InMemoryRateLimiter
from app.services.rate_limit.redis_limiter import RedisRateLimiter

logger = logging.getLogger(__name__)


@lru_cache()
def get_rate_limiter() -> BaseRateLimiter:
    """Get the configured rate limiter."""
    settings = get_settings()

    if settings.is_development:
        logger.info("Rate Limiter: Using InMemoryRateLimiter (development mode)")
        return InMemoryRateLimiter()
    else:
        logger.info(f"Rate Limiter: Using RedisRateLimiter ({settings.env_mode.value} mode)")
        return RedisRateLimiter()


def reset_rate_limiter() -> None:
    """Clear the cached limiter instance."""
    get_rate_limiter.cache_clear()


def get_tiers(settings: Settings | None = None) -> dict[str, RateLimitTier]:
    settings = settings or get_settings()
    return {
        "api": RateLimitTier(
            "api",
            settings.rate_limit_api_attempts,
            settings.rate_limit_api_window_seconds,
        ),
        "auth": RateLimitTier(
            "auth",
            settings.rate_limit_auth_attempts,
            settings.rate_limit_auth_window_seconds,
        ),
        "resend": RateLimitTier(
            "resend",
            settings.rate_limit_resend_attempts,
            settings.rate_limit_resend_window_seconds,
        ),
    }


__all__ = [
    "get_rate_limiter",
    "reset_rate_limiter",
    "get_tiers",
    "BaseRateLimiter",
    "RateLimitTier",
    "InMemoryRateLimiter",
    "RedisRateLimiter",
]

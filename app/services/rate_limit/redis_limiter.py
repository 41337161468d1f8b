"""
Redis Rate Limiter

Production limiter shared by every API worker.

Each window is one Redis key, created with its TTL (SET NX EX) and then
incremented, both inside one MULTI/EXEC so a key never exists without an
expiry.

When Redis cannot be reached the limiter fails open: the request is let
through and the outage is logged. The /health endpoint reports the
limiter as unhealthy in that case.

Author: Khalil Bannouri
Version: 3.0.0
"""

import logging

import redis.asyncio as redis
from redis.exceptions import RedisError

from app.core.config import get_settings
from app.services.rate_limit.base import BaseRateLimiter

logger = logging.getLogger(__name__)


class RedisRateLimiter(BaseRateLimiter):
    """Fixed-window counters stored in Redis."""

    def __init__(self, client: "redis.Redis | None" = None):
        settings = get_settings()
        self.client = client or redis.Redis.from_url(
            settings.redis_url,
            socket_timeout=2,
        )
        logger.info("RedisRateLimiter initialized")

    @property
    def provider_name(self) -> str:
        return "redis"

    async def hit(self, key: str, limit: int, window_seconds: int) -> bool:
        try:
            async with self.client.pipeline(transaction=True) as pipe:
                pipe.set(key, 0, ex=window_seconds, nx=True)
                pipe.incr(key)
                _, count = await pipe.execute()
        except RedisError as e:
            logger.error(f"Rate limiter unavailable, letting {key} through: {e}")
            return True

        if count > limit:
            logger.warning(f"Rate limit exceeded for {key} ({count}/{limit})")
            return False
        return True

    async def reset(self, key: str) -> None:
        await self.client.delete(key)

    async def health_check(self) -> bool:
        try:
            return bool(await self.client.ping())
        except RedisError as e:
            logger.error(f"Redis health check failed: {e}")
            return False

    async def close(self) -> None:
        await self.client.aclose()

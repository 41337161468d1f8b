from app.core.config import Settings
from app.services.rate_limit import (
    InMemoryRateLimiter,
    RateLimitTier,
    RedisRateLimiter,
    get_tiers,
)
from conftest import FakeRedis


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


async def test_allows_up_to_limit_then_rejects():
    limiter = InMemoryRateLimiter()
    tier = RateLimitTier("auth", attempts=3, window_seconds=60)

    results = [await limiter.allow(tier, "1.2.3.4") for _ in range(4)]

    assert results == [True, True, True, False]


async def test_window_expiry_restores_allowance():
    clock = FakeClock()
    limiter = InMemoryRateLimiter(clock=clock)
    tier = RateLimitTier("auth", attempts=1, window_seconds=60)

    assert await limiter.allow(tier, "ip")
    assert not await limiter.allow(tier, "ip")

    clock.now += 59
    assert not await limiter.allow(tier, "ip")

    clock.now += 1
    assert await limiter.allow(tier, "ip")


async def test_identifiers_and_tiers_are_counted_separately():
    limiter = InMemoryRateLimiter()
    auth = RateLimitTier("auth", attempts=1, window_seconds=60)
    resend = RateLimitTier("resend", attempts=1, window_seconds=60)

    assert await limiter.allow(auth, "a")
    assert await limiter.allow(auth, "b")
    assert await limiter.allow(resend, "a")
    assert not await limiter.allow(auth, "a")


async def test_reset_clears_counter():
    limiter = InMemoryRateLimiter()
    tier = RateLimitTier("auth", attempts=1, window_seconds=60)

    await limiter.allow(tier, "ip")
    await limiter.reset(tier.key("ip"))

    assert await limiter.allow(tier, "ip")


async def test_zero_attempt_tier_rejects_everything():
    limiter = InMemoryRateLimiter()
    assert not await limiter.allow(RateLimitTier("api", attempts=0, window_seconds=60), "ip")


def test_tiers_follow_settings():
    settings = Settings(rate_limit_auth_attempts=5, rate_limit_auth_window_seconds=30)

    tiers = get_tiers(settings)

    assert tiers["auth"] == RateLimitTier("auth", 5, 30)
    assert set(tiers) == {"api", "auth", "resend"}
    assert tiers["auth"].key("1.2.3.4") == "ratelimit:auth:1.2.3.4"


async def test_redis_limiter_counts_and_sets_expiry_once():
    client = FakeRedis()
    limiter = RedisRateLimiter(client=client)
    tier = RateLimitTier("resend", attempts=2, window_seconds=900)

    results = [await limiter.allow(tier, "jane@x.com:ip") for _ in range(3)]

    assert results == [True, True, False]
    assert client.ttls == {"ratelimit:resend:jane@x.com:ip": 900}

    await limiter.reset(tier.key("jane@x.com:ip"))
    assert await limiter.allow(tier, "jane@x.com:ip")


async def test_redis_limiter_health_check_reports_outage():
    assert await RedisRateLimiter(client=FakeRedis()).health_check() is True
    assert await RedisRateLimiter(client=FakeRedis(down=True)).health_check() is False


async def test_redis_outage_lets_requests_through():
    limiter = RedisRateLimiter(client=FakeRedis(down=True))
    tier = RateLimitTier("auth", attempts=1, window_seconds=60)

    assert await limiter.allow(tier, "ip")
    assert await limiter.allow(tier, "ip")


async def test_expired_windows_are_dropped():
    clock = FakeClock()
    limiter = InMemoryRateLimiter(clock=clock)
    tier = RateLimitTier("api", attempts=5, window_seconds=1)

    for i in range(1000):
        await limiter.allow(tier, f"10.0.{i // 256}.{i % 256}")
    assert limiter.window_count == 1000

    clock.now += 10_000
    await limiter.allow(tier, "10.9.9.9")

    assert limiter.window_count == 1

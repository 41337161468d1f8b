import pytest
from httpx import ASGITransport, AsyncClient
from redis.exceptions import ConnectionError as RedisConnectionError

from app.database import Base, build_engine, build_session_maker, get_db
from app.main import app as fastapi_app
from app.services.notifications import MockNotificationService, get_notification_service
from app.services.rate_limit import InMemoryRateLimiter, get_rate_limiter

PASSWORD = "Secret123!"


class FailingNotificationService(MockNotificationService):
    """Every dispatch fails."""

    def __init__(self):
        super().__init__(failure_rate=1.0)


class ExplodingNotificationService(MockNotificationService):
    """Every dispatch raises."""

    async def send_email(self, to_email, subject, body_html, body_text=None):
        raise ConnectionError("mail transport unreachable")


def token_from_outbox(notifier: MockNotificationService) -> str:
    """Pull the token out of the last verification link sent."""
    body = notifier.outbox[-1].body_text
    return body.split("token=", 1)[1].split()[0]


class FakePipeline:
    def __init__(self, redis):
        self.redis = redis
        self.commands = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    def set(self, key, value, ex=None, nx=False):
        self.commands.append(("set", key, value, ex, nx))
        return self

    def incr(self, key):
        self.commands.append(("incr", key))
        return self

    async def execute(self):
        if self.redis.down:
            raise RedisConnectionError("connection refused")
        results = []
        for command in self.commands:
            if command[0] == "set":
                _, key, value, ex, nx = command
                if nx and key in self.redis.values:
                    results.append(None)
                    continue
                self.redis.values[key] = value
                self.redis.ttls[key] = ex
                results.append(True)
            else:
                key = command[1]
                self.redis.values[key] = self.redis.values.get(key, 0) + 1
                results.append(self.redis.values[key])
        return results


class FakeRedis:
    """Just enough of redis.asyncio.Redis for the limiter."""

    def __init__(self, down=False):
        self.down = down
        self.values = {}
        self.ttls = {}

    def pipeline(self, transaction=True):
        return FakePipeline(self)

    async def delete(self, key):
        self.values.pop(key, None)
        self.ttls.pop(key, None)

    async def ping(self):
        if self.down:
            raise RedisConnectionError("connection refused")
        return True


# --- Fixtures ---

@pytest.fixture
async def engine(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return build_session_maker(engine)


@pytest.fixture
async def session(session_maker):
    async with session_maker() as s:
        yield s


@pytest.fixture
def notifier():
    return MockNotificationService()


@pytest.fixture
def limiter():
    return InMemoryRateLimiter()


@pytest.fixture
async def client(session_maker, notifier, limiter):
    async def _get_db():
        async with session_maker() as s:
            yield s

    fastapi_app.dependency_overrides[get_db] = _get_db
    fastapi_app.dependency_overrides[get_notification_service] = lambda: notifier
    fastapi_app.dependency_overrides[get_rate_limiter] = lambda: limiter

    transport = ASGITransport(app=fastapi_app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def signup(client, notifier):
    """Register through the API; returns (response json, verification token)."""

    async def _signup(name="Jane", email="jane@x.com", password=PASSWORD):
        resp = await client.post(
            "/api/auth/register",
            json={"name": name, "email": email, "password": password},
        )
        assert resp.status_code == 201, resp.text
        return resp.json(), token_from_outbox(notifier)

    return _signup


@pytest.fixture
def login(client, signup):
    """Register, verify and log in; returns bearer headers."""

    async def _login(name="Jane", email="jane@x.com", password=PASSWORD):
        _, token = await signup(name=name, email=email, password=password)
        resp = await client.get("/api/auth/verify-email", params={"token": token})
        assert resp.status_code == 200, resp.text

        resp = await client.post("/api/auth/login", json={"email": email, "password": password})
        assert resp.status_code == 200, resp.text
        return {"Authorization": f"Bearer {resp.json()['token']}"}

    return _login

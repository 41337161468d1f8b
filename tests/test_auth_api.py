from sqlalchemy import func, select

from app.core.config import Settings, get_settings
from app.main import app as fastapi_app
from app.models import User
from app.routers import dev
from app.services.rate_limit import RedisRateLimiter, get_rate_limiter, get_tiers
from conftest import PASSWORD, FakeRedis, token_from_outbox


async def test_register_verify_login_flow(client, notifier):
    resp = await client.post(
        "/api/auth/register",
        json={"name": "Jane", "email": "jane@x.com", "password": PASSWORD},
    )

    assert resp.status_code == 201
    body = resp.json()
    assert body["success"] is True
    assert body["user"]["email"] == "jane@x.com"
    assert body["user"]["emailVerified"] is False
    assert body["user"]["accountId"] == body["account"]["id"]
    assert body["account"]["ownerId"] == body["user"]["id"]
    assert body["account"]["name"] == "Jane's Restaurant"
    assert body.get("warning") is None
    assert "token" not in body
    assert "passwordHash" not in body["user"]

    token = token_from_outbox(notifier)

    resp = await client.get("/api/auth/verify-email", params={"token": token})
    assert resp.status_code == 200
    assert resp.json()["user"]["emailVerified"] is True

    resp = await client.get("/api/auth/verify-email", params={"token": token})
    assert resp.status_code == 400
    assert resp.json()["code"] == "TokenNotFound"

    resp = await client.post("/api/auth/login", json={"email": "JANE@x.com", "password": PASSWORD})
    assert resp.status_code == 200
    body = resp.json()
    assert body["token"]
    assert body["user"]["emailVerified"] is True

    resp = await client.get(
        "/api/auth/me",
        headers={"Authorization": f"Bearer {body['token']}"},
    )
    assert resp.status_code == 200
    assert resp.json()["user"]["email"] == "jane@x.com"
    assert resp.json()["account"]["name"] == "Jane's Restaurant"


async def test_register_duplicate_email(client, signup, session_maker):
    await signup(email="a@x.com")

    resp = await client.post(
        "/api/auth/register",
        json={"name": "Other", "email": "A@X.com", "password": PASSWORD},
    )

    assert resp.status_code == 409
    body = resp.json()
    assert body["success"] is False
    assert body["code"] == "DuplicateEmail"
    assert body["error"]

    async with session_maker() as s:
        result = await s.execute(select(func.count()).select_from(User))
        assert result.scalar() == 1


async def test_register_weak_password(client):
    resp = await client.post(
        "/api/auth/register",
        json={"name": "Jane", "email": "jane@x.com", "password": "password"},
    )

    assert resp.status_code == 400
    body = resp.json()
    assert body["success"] is False
    assert body["code"] == "WeakPassword"
    assert "an uppercase letter" in body["detail"]


async def test_register_rejects_malformed_body(client):
    resp = await client.post(
        "/api/auth/register",
        json={"name": "", "email": "not-an-email", "password": PASSWORD},
    )

    assert resp.status_code == 400
    assert resp.json()["code"] == "ValidationError"


async def test_register_reports_email_failure_as_warning(client, notifier):
    notifier.failure_rate = 1.0

    resp = await client.post(
        "/api/auth/register",
        json={"name": "Jane", "email": "jane@x.com", "password": PASSWORD},
    )

    assert resp.status_code == 201
    assert resp.json()["warning"] == "EmailDispatchFailure"


async def test_login_before_verification(client, signup):
    await signup()

    resp = await client.post("/api/auth/login", json={"email": "jane@x.com", "password": PASSWORD})

    assert resp.status_code == 403
    assert resp.json()["code"] == "EmailNotVerified"


async def test_login_wrong_password(client, signup):
    await signup()

    resp = await client.post("/api/auth/login", json={"email": "jane@x.com", "password": "Wrong123!"})

    assert resp.status_code == 401
    assert resp.json()["code"] == "InvalidCredentials"


async def test_check_user_reports_verification_state(client, signup):
    _, token = await signup()

    resp = await client.post("/api/auth/check-user", json={"email": "jane@x.com", "password": PASSWORD})
    assert resp.status_code == 200
    assert resp.json() == {"exists": True, "emailVerified": False}

    await client.get("/api/auth/verify-email", params={"token": token})

    resp = await client.post("/api/auth/check-user", json={"email": "jane@x.com", "password": PASSWORD})
    assert resp.json() == {"exists": True, "emailVerified": True}

    resp = await client.post("/api/auth/check-user", json={"email": "jane@x.com", "password": "Wrong123!"})
    assert resp.status_code == 401


async def test_me_requires_valid_token(client):
    resp = await client.get("/api/auth/me")
    assert resp.status_code == 401
    assert resp.json()["code"] == "Unauthorized"

    resp = await client.get("/api/auth/me", headers={"Authorization": "Bearer garbage"})
    assert resp.status_code == 401


async def test_resend_verification_invalidates_old_link(client, signup, notifier):
    _, old = await signup()

    resp = await client.post("/api/auth/resend-verification", json={"email": "jane@x.com"})
    assert resp.status_code == 200
    new = token_from_outbox(notifier)
    assert new != old

    resp = await client.get("/api/auth/verify-email", params={"token": old})
    assert resp.json()["code"] == "TokenNotFound"

    resp = await client.get("/api/auth/verify-email", params={"token": new})
    assert resp.status_code == 200

    resp = await client.post("/api/auth/resend-verification", json={"email": "jane@x.com"})
    assert resp.status_code == 409
    assert resp.json()["code"] == "AlreadyVerified"


async def test_resend_verification_unknown_email(client):
    resp = await client.post("/api/auth/resend-verification", json={"email": "nobody@x.com"})

    assert resp.status_code == 404
    assert resp.json()["code"] == "UserNotFound"


async def test_resend_verification_is_rate_limited(client, signup, notifier):
    await signup()
    attempts = get_tiers()["resend"].attempts

    for _ in range(attempts):
        resp = await client.post("/api/auth/resend-verification", json={"email": "jane@x.com"})
        assert resp.status_code == 200

    resp = await client.post("/api/auth/resend-verification", json={"email": "jane@x.com"})
    assert resp.status_code == 429
    assert resp.json()["code"] == "RateLimited"
    assert len(notifier.outbox) == attempts + 1


async def test_auth_tier_limits_login_attempts(client):
    attempts = get_tiers()["auth"].attempts

    for _ in range(attempts):
        resp = await client.post("/api/auth/login", json={"email": "jane@x.com", "password": PASSWORD})
        assert resp.status_code == 401

    resp = await client.post("/api/auth/login", json={"email": "jane@x.com", "password": PASSWORD})
    assert resp.status_code == 429


async def test_dev_token_endpoint(client, signup):
    _, token = await signup()
    assert get_settings().is_development

    resp = await client.get("/api/dev/verification-token", params={"email": "jane@x.com"})

    assert resp.status_code == 200
    assert resp.json()["token"] == token


async def test_overlong_verification_token_is_not_found(client):
    resp = await client.get("/api/auth/verify-email", params={"token": "a" * 129})

    assert resp.status_code == 400
    assert resp.json()["code"] == "TokenNotFound"


async def test_dev_token_endpoint_closed_outside_development(client, monkeypatch):
    monkeypatch.setattr(dev, "get_settings", lambda: Settings(env_mode="production"))

    resp = await client.get("/api/dev/verification-token", params={"email": "jane@x.com"})

    assert resp.status_code == 403
    body = resp.json()
    assert body["success"] is False
    assert body["code"] == "Forbidden"


async def test_register_succeeds_while_redis_is_down(client):
    fastapi_app.dependency_overrides[get_rate_limiter] = lambda: RedisRateLimiter(
        client=FakeRedis(down=True)
    )

    resp = await client.post(
        "/api/auth/register",
        json={"name": "Jane", "email": "jane@x.com", "password": PASSWORD},
    )

    assert resp.status_code == 201

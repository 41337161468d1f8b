from sqlalchemy.exc import OperationalError

from app.database import get_db
from app.main import app


async def test_root(client):
    resp = await client.get("/")

    assert resp.status_code == 200
    assert resp.json()["health"] == "/health"


async def test_health_reports_database_and_limiter(client, login):
    headers = await login()
    await client.post(
        "/api/orders",
        json={
            "customerName": "John",
            "orderType": "pickup",
            "items": [{"name": "Soup", "price": 5, "quantity": 1}],
        },
        headers=headers,
    )

    resp = await client.get("/health")

    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "healthy"
    assert body["database"] == "connected"
    assert body["orderCount"] == 1
    assert body["rateLimiter"] == "healthy"
    assert body["email"] == "healthy"


class BrokenSession:
    async def execute(self, *args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("database is down"))


async def test_health_unavailable_when_database_down(client):
    async def broken_db():
        yield BrokenSession()

    app.dependency_overrides[get_db] = broken_db

    resp = await client.get("/health")

    assert resp.status_code == 503
    assert resp.json()["database"] == "disconnected"

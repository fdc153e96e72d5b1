from schoolms.core.cache import CacheManager, get_cache
from schoolms.main import app


class DownRedis:
    async def ping(self):
        raise ConnectionError("redis is down")


async def test_health_check(client):
    response = await client.get("/api/v1/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["database_status"] == "connected"
    assert data["cache_status"] == "connected"
    assert data["version"] == "1.0.0"


async def test_unknown_route_uses_error_envelope(client):
    response = await client.get("/api/v1/does-not-exist")

    assert response.status_code == 404
    body = response.json()
    assert body["success"] is False
    assert body["error"]["status_code"] == 404


async def test_health_reports_cache_outage(client):
    down = CacheManager()
    down.redis = DownRedis()
    app.dependency_overrides[get_cache] = lambda: down

    response = await client.get("/api/v1/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "degraded"
    assert data["database_status"] == "connected"
    assert data["cache_status"] == "disconnected"

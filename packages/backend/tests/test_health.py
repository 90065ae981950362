"""Health endpoint tests."""

import pytest


@pytest.mark.asyncio
async def test_health_returns_ok(client):
    """Health endpoint should return server status and version."""
    resp = await client.get("/api/v1/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["server"] == "ok"
    assert data["database"] == "ok"
    assert "version" in data


@pytest.mark.asyncio
async def test_health_without_redis_is_still_healthy(client):
    """Redis is optional; without it the service reports it as disabled."""
    data = (await client.get("/api/v1/health")).json()
    assert data["redis"] == "disabled"
    assert data["status"] == "healthy"

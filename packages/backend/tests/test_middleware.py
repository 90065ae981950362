"""Tests for middleware — security headers, request IDs, rate limit buckets.

Rate limiting is skipped in tests (no Redis available), so the bucket
choice is tested directly and the limiter through a fake Redis.
"""

from unittest import mock

import pytest

from demoshare.middleware.rate_limit import bucket_for


@pytest.mark.asyncio
async def test_security_headers_on_health(client):
    """Health endpoint returns security headers."""
    r = await client.get("/api/v1/health")
    assert r.status_code == 200
    assert r.headers["X-Content-Type-Options"] == "nosniff"
    assert r.headers["X-Frame-Options"] == "DENY"
    assert r.headers["Referrer-Policy"] == "strict-origin-when-cross-origin"
    assert r.headers["Cross-Origin-Opener-Policy"] == "same-origin"


@pytest.mark.asyncio
async def test_request_id_generated(client):
    """Each request gets a unique X-Request-ID header."""
    r1 = await client.get("/api/v1/health")
    r2 = await client.get("/api/v1/health")
    assert "X-Request-ID" in r1.headers
    assert "X-Request-ID" in r2.headers
    assert r1.headers["X-Request-ID"] != r2.headers["X-Request-ID"]


@pytest.mark.asyncio
async def test_request_id_propagated(client):
    """Incoming X-Request-ID is propagated through the response."""
    custom_id = "test-trace-12345"
    r = await client.get("/api/v1/health", headers={"X-Request-ID": custom_id})
    assert r.headers["X-Request-ID"] == custom_id


@pytest.mark.asyncio
async def test_no_hsts_on_http(client):
    """HSTS header is NOT set on HTTP connections (only HTTPS)."""
    r = await client.get("/api/v1/health")
    assert "Strict-Transport-Security" not in r.headers


@pytest.mark.asyncio
async def test_headers_present_on_error_responses(client):
    r = await client.get("/api/v1/comments")
    assert r.status_code == 400
    assert r.headers["X-Content-Type-Options"] == "nosniff"
    assert "X-Request-ID" in r.headers


def test_rate_limit_buckets():
    assert bucket_for("/api/v1/tips/crypto") == "payments"
    assert bucket_for("/api/v1/tips/checkout") == "payments"
    assert bucket_for("/api/v1/comments") == "api"
    assert bucket_for("/api/v1/tips") == "api"
    assert bucket_for("/api/v1/webhooks/stripe") is None
    assert bucket_for("/api/v1/health") is None


@pytest.mark.asyncio
async def test_rate_limit_rejects_over_limit(client):
    """Once the per-minute counter passes the limit, requests get 429."""
    fake_redis = mock.AsyncMock()
    fake_redis.incr.return_value = 10_000

    with mock.patch("demoshare.middleware.rate_limit.get_redis", return_value=fake_redis):
        r = await client.get("/api/v1/comments?project_id=x")

    assert r.status_code == 429
    assert r.json()["kind"] == "rate_limited"
    assert r.headers["Retry-After"] == "60"


@pytest.mark.asyncio
async def test_rate_limit_headers_under_limit(client, project):
    fake_redis = mock.AsyncMock()
    fake_redis.incr.return_value = 1

    with mock.patch("demoshare.middleware.rate_limit.get_redis", return_value=fake_redis):
        r = await client.get(f"/api/v1/comments?project_id={project.id}")

    assert r.status_code == 200
    assert r.headers["X-RateLimit-Limit"] == "100"
    assert r.headers["X-RateLimit-Remaining"] == "99"
    fake_redis.expire.assert_awaited_once()

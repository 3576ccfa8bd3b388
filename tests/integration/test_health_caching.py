"""Tests for health check caching functionality."""

from unittest.mock import patch

import httpx
import pytest

from tests.helpers import FakeBackend, tenant_host

pytestmark = [pytest.mark.integration, pytest.mark.asyncio]


class MockTime:
    def __init__(self):
        self.current_time = 0.0

    def __call__(self):
        return self.current_time


async def test_health_check_caching(client, backend: FakeBackend):
    """A second check within the TTL is served from cache without pinging the backend."""
    response1 = await client.get("/api/health")
    data1 = response1.json()

    assert response1.status_code == 200
    assert data1["cached"] is False
    assert "cache_age_seconds" not in data1
    assert backend.calls["ping"] == 1

    response2 = await client.get("/api/health")
    data2 = response2.json()

    assert data2["cached"] is True
    assert data2["cache_age_seconds"] < 10
    assert backend.calls["ping"] == 1


async def test_health_check_cache_expiry(client, backend: FakeBackend):
    mock_time = MockTime()

    with patch("src.portal.core.health.time.time", mock_time):
        mock_time.current_time = 0.0
        assert (await client.get("/api/health")).json()["cached"] is False

        mock_time.current_time = 1.0
        data = (await client.get("/api/health")).json()
        assert data["cached"] is True
        assert data["cache_age_seconds"] == 1.0

        mock_time.current_time = 15.0
        assert (await client.get("/api/health")).json()["cached"] is False

    assert backend.calls["ping"] == 2


async def test_unhealthy_result_is_cached_too(client, backend: FakeBackend):
    backend.ping_error = httpx.ConnectError("refused")

    response1 = await client.get("/api/health")
    backend.ping_error = None
    response2 = await client.get("/api/health")

    assert response1.status_code == response2.status_code == 503
    assert response2.json()["cached"] is True
    assert response2.json()["backend"].startswith("unhealthy")


async def test_health_check_includes_status_fields(client):
    data = (await client.get("/api/health")).json()

    assert data["status"] == "healthy"
    assert data["backend"] == "healthy"
    assert data["redis"] == "not_configured"
    assert isinstance(data["timestamp"], int | float)


async def test_redis_reported_when_configured(client, mock_redis):
    data = (await client.get("/api/health")).json()
    assert data["redis"] == "healthy"
    assert data["status"] == "healthy"


async def test_health_on_tenant_host_is_not_rewritten(client):
    response = await client.get(f"{tenant_host('acme')}/api/health")
    assert response.status_code == 200
    assert response.json()["backend"] == "healthy"

"""Integration fixtures: the full ASGI app over the fake backend.

Requests are addressed by absolute URL so the Host header selects the
surface: ``https://example.com/...`` is the root domain and
``https://<slug>.example.com/...`` a tenant subdomain.
"""

from collections.abc import AsyncGenerator

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from src.portal.core import redis as redis_core
from src.portal.core.health import reset_health_cache
from src.portal.main import create_app
from tests.helpers import ROOT, FakeBackend


@pytest.fixture(autouse=True)
async def _reset_shared_state() -> AsyncGenerator[None]:
    """Health results and Redis connections must not leak between tests."""
    reset_health_cache()
    redis_core.reset_redis_state()
    yield
    reset_health_cache()
    await redis_core.close_redis()


@pytest.fixture
def app(backend: FakeBackend) -> FastAPI:
    """App with the fake backend installed where the lifespan would put the client."""
    application = create_app()
    application.state.backend = backend
    return application


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url=ROOT) as http:
        yield http

"""Root test fixtures shared across all test types.

Tests run against ``example.com`` over https with no Redis configured, so
one-shot guards use their in-process store unless a test asks for
``mock_redis``.
"""

import os

# Settings are read from the environment before any app imports
os.environ.setdefault("APP_ENV", "testing")
os.environ.setdefault("ROOT_DOMAIN", "example.com")
os.environ.setdefault("PROTOCOL", "https")
os.environ.setdefault("API_BASE_URL", "http://backend.test")
os.environ["REDIS_URL"] = ""

# ruff: noqa: E402 - Imports must be after env var setup
from collections.abc import AsyncGenerator, Awaitable, Callable

import pytest
from fakeredis import aioredis as fakeredis_aio
from redis.asyncio import Redis

from src.portal.core import redis as redis_core
from src.portal.core.config import Settings, get_settings
from src.portal.core.one_shot import reset_local_claims
from src.portal.core.session_store import SessionStore
from src.portal.schemas import Tenant
from src.portal.services.session_context import SessionContext
from tests.helpers import VALID_TOKEN, FakeBackend

# Clear settings cache to ensure test environment variables are picked up
get_settings.cache_clear()


@pytest.fixture(autouse=True)
def reset_one_shot_claims() -> None:
    """Every test starts with no claimed one-time tokens."""
    reset_local_claims()
    yield
    reset_local_claims()


@pytest.fixture
def settings() -> Settings:
    return get_settings()


# --- Redis Test Fixtures (shared) ---


@pytest.fixture
async def fake_redis() -> AsyncGenerator[Redis]:
    """Provides a fakeredis client for testing.

    Returns an in-memory Redis implementation that behaves like
    a real Redis server but doesn't require external dependencies.
    """
    client = fakeredis_aio.FakeRedis(decode_responses=True)
    yield client
    await client.aclose()


@pytest.fixture
async def mock_redis(fake_redis: Redis, monkeypatch: pytest.MonkeyPatch) -> AsyncGenerator[Redis]:
    """Patches get_redis() to return the fakeredis client.

    Patches every module that imported get_redis so the fake is used
    everywhere.
    """
    redis_core.reset_redis_state()

    async def _get_fake_redis() -> Redis:
        return fake_redis

    monkeypatch.setattr("src.portal.core.redis.get_redis", _get_fake_redis)
    monkeypatch.setattr("src.portal.core.one_shot.get_redis", _get_fake_redis)
    monkeypatch.setattr("src.portal.core.health.get_redis", _get_fake_redis)
    yield fake_redis
    redis_core.reset_redis_state()


@pytest.fixture
async def mock_redis_unavailable(monkeypatch: pytest.MonkeyPatch) -> AsyncGenerator[None]:
    """Patches get_redis() to return None (simulates Redis unavailable)."""
    redis_core.reset_redis_state()

    async def _get_none() -> None:
        return None

    monkeypatch.setattr("src.portal.core.redis.get_redis", _get_none)
    monkeypatch.setattr("src.portal.core.one_shot.get_redis", _get_none)
    monkeypatch.setattr("src.portal.core.health.get_redis", _get_none)
    yield
    redis_core.reset_redis_state()


# --- Session Fixtures ---


@pytest.fixture
def backend() -> FakeBackend:
    """Backend stand-in with a principal and no workspaces."""
    return FakeBackend()


@pytest.fixture
def make_store(settings: Settings) -> Callable[..., SessionStore]:
    """Build a cookie store as a request to ``host`` would carry it."""

    def _make(
        token: str | None = VALID_TOKEN,
        active_tenant_id: str | None = None,
        host: str = "example.com",
    ) -> SessionStore:
        cookies: dict[str, str] = {}
        if token:
            cookies[settings.session_cookie_name] = token
        if active_tenant_id:
            cookies[settings.active_tenant_cookie_name] = active_tenant_id
        return SessionStore(cookies, settings, host)

    return _make


@pytest.fixture
def make_session(
    backend: FakeBackend,
    settings: Settings,
    make_store: Callable[..., SessionStore],
) -> Callable[..., SessionContext]:
    """Build an uninitialized session context over the fake backend."""

    def _make(store: SessionStore | None = None, **store_kwargs) -> SessionContext:
        return SessionContext(store or make_store(**store_kwargs), backend, settings)  # type: ignore[arg-type]

    return _make


@pytest.fixture
def logged_in(
    backend: FakeBackend,
    make_session: Callable[..., SessionContext],
) -> Callable[..., Awaitable[SessionContext]]:
    """Initialized session whose principal belongs to ``tenants``.

    The first tenant is made active.
    """

    async def _login(*tenants: Tenant) -> SessionContext:
        backend.tenants = list(tenants)
        active = tenants[0].id if tenants else None
        session = make_session(active_tenant_id=active)
        await session.initialize()
        return session

    return _login

"""Tests for one-shot token claims, with and without Redis."""

import asyncio
import hashlib

import pytest
from redis.asyncio import Redis

from src.portal.core import one_shot
from src.portal.core.one_shot import OneShotGuard

pytestmark = pytest.mark.unit


# --- In-process fallback ---


class TestLocalClaims:
    async def test_first_claim_wins(self, mock_redis_unavailable):
        guard = OneShotGuard("auth_code", ttl_seconds=60)

        assert await guard.claim("code-1") is True
        assert await guard.claim("code-1") is False
        assert await guard.claim("code-2") is True

    async def test_scopes_are_independent(self, mock_redis_unavailable):
        assert await OneShotGuard("auth_code").claim("same") is True
        assert await OneShotGuard("invite_token").claim("same") is True

    async def test_concurrent_claims(self, mock_redis_unavailable):
        """Of several simultaneous submissions exactly one gets through."""
        guard = OneShotGuard("auth_code")
        results = await asyncio.gather(*(guard.claim("code") for _ in range(5)))
        assert sorted(results) == [False, False, False, False, True]

    async def test_release_allows_retry(self, mock_redis_unavailable):
        guard = OneShotGuard("auth_code")
        await guard.claim("code")
        await guard.release("code")
        assert await guard.claim("code") is True

    async def test_expired_claim_can_be_reused(self, mock_redis_unavailable):
        guard = OneShotGuard("auth_code", ttl_seconds=10)
        assert await guard.claim("code") is True

        for key in one_shot._local_claims:
            one_shot._local_claims[key] = 0.0
        assert await guard.claim("code") is True


# --- Redis ---


class TestRedisClaims:
    async def test_claim_sets_key_with_ttl(self, mock_redis: Redis):
        guard = OneShotGuard("auth_code", ttl_seconds=120)

        assert await guard.claim("secret-code") is True

        digest = hashlib.sha256(b"secret-code").hexdigest()
        key = f"one_shot:auth_code:{digest}"
        assert await mock_redis.get(key) == "1"
        assert 0 < await mock_redis.ttl(key) <= 120

    async def test_raw_token_never_stored(self, mock_redis: Redis):
        await OneShotGuard("invite_token").claim("plain-token")
        keys = await mock_redis.keys("*")
        assert keys
        assert not any("plain-token" in k for k in keys)

    async def test_duplicate_rejected(self, mock_redis: Redis):
        guard = OneShotGuard("auth_code")
        assert await guard.claim("code") is True
        assert await guard.claim("code") is False

    async def test_shared_between_guards(self, mock_redis: Redis):
        """Two workers' guards agree through Redis."""
        assert await OneShotGuard("auth_code").claim("code") is True
        assert await OneShotGuard("auth_code").claim("code") is False

    async def test_release_deletes_key(self, mock_redis: Redis):
        guard = OneShotGuard("auth_code")
        await guard.claim("code")
        await guard.release("code")
        assert await mock_redis.keys("one_shot:*") == []

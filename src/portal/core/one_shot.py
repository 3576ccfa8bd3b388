"""Idempotency guard for flows that consume a one-time token.

An OAuth authorization code or an invitation token may only be submitted
once. A retried request (double click, browser re-submission, a second tab)
must not submit it again, so the claim is recorded *before* the backend call
starts rather than after it resolves.

Claims are stored in Redis with ``SET NX EX`` when Redis is available, so all
workers agree. Without Redis an in-process map with the same TTL is used.
"""

import hashlib
import time

from src.portal.core.config import get_settings
from src.portal.core.logging import get_logger
from src.portal.core.redis import get_redis

logger = get_logger(__name__)

PREFIX_ONE_SHOT = "one_shot"

# Fallback store: key -> monotonic expiry
_local_claims: dict[str, float] = {}


def _key(scope: str, token: str) -> str:
    # Never keep raw one-time secrets in shared storage
    digest = hashlib.sha256(token.encode()).hexdigest()
    return f"{PREFIX_ONE_SHOT}:{scope}:{digest}"


def _claim_locally(key: str, ttl: int) -> bool:
    now = time.monotonic()
    expired = [k for k, expires_at in _local_claims.items() if expires_at <= now]
    for k in expired:
        del _local_claims[k]
    if key in _local_claims:
        return False
    _local_claims[key] = now + ttl
    return True


class OneShotGuard:
    """Claims one-time tokens within a named scope (e.g. ``auth_code``)."""

    def __init__(self, scope: str, ttl_seconds: int | None = None) -> None:
        self.scope = scope
        self.ttl_seconds = ttl_seconds or get_settings().one_shot_ttl_seconds

    async def claim(self, token: str) -> bool:
        """Record the token as in use.

        Returns:
            True for the first caller; False if the token was already claimed
            and has not expired.
        """
        key = _key(self.scope, token)
        redis = await get_redis()
        if redis is not None:
            claimed = await redis.set(key, "1", nx=True, ex=self.ttl_seconds)
            first = bool(claimed)
        else:
            first = _claim_locally(key, self.ttl_seconds)

        if not first:
            logger.info("Duplicate one-shot submission suppressed", scope=self.scope)
        return first

    async def release(self, token: str) -> None:
        """Drop a claim so the token can be retried.

        Only used when the call failed before the backend could have consumed
        the token (transport errors).
        """
        key = _key(self.scope, token)
        redis = await get_redis()
        if redis is not None:
            await redis.delete(key)
        _local_claims.pop(key, None)


def reset_local_claims() -> None:
    """Clear the in-process fallback store (tests)."""
    _local_claims.clear()

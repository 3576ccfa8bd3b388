"""Health check and metrics endpoints."""

import secrets
import time
from typing import Any

import httpx
from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse
from fastapi.security import APIKeyHeader
from prometheus_fastapi_instrumentator import Instrumentator

from src.portal.core.config import get_settings
from src.portal.core.redis import get_redis

# Health check caching
_health_cache: dict[str, Any] | None = None
_health_cache_time: float = 0
HEALTH_CACHE_TTL = 10  # seconds


def reset_health_cache() -> None:
    """Reset health cache (for testing)."""
    global _health_cache, _health_cache_time
    _health_cache = None
    _health_cache_time = 0


def setup_health_endpoint(app: FastAPI) -> None:
    """Configure the health check endpoint."""

    @app.get("/api/health")
    async def health(request: Request) -> JSONResponse:
        """Health check covering the backend API and (optional) Redis."""
        global _health_cache, _health_cache_time

        now = time.time()

        if _health_cache and (now - _health_cache_time) < HEALTH_CACHE_TTL:
            cached_response = _health_cache.copy()
            cached_response["cached"] = True
            cached_response["cache_age_seconds"] = round(now - _health_cache_time, 1)
            status_code = 200 if cached_response["status"] == "healthy" else 503
            return JSONResponse(content=cached_response, status_code=status_code)

        health_status: dict[str, Any] = {
            "status": "healthy",
            "backend": "unknown",
            "redis": "not_configured",
            "cached": False,
            "timestamp": now,
        }

        # Any HTTP answer means the backend is reachable; only transport errors count
        backend = request.app.state.backend
        try:
            await backend.ping()
            health_status["backend"] = "healthy"
        except httpx.HTTPError as e:
            health_status["backend"] = f"unhealthy: {e!s}"
            health_status["status"] = "unhealthy"

        # Check Redis (optional - don't fail if unavailable)
        redis = await get_redis()
        if redis:
            try:
                result = redis.ping()
                if hasattr(result, "__await__"):
                    await result
                health_status["redis"] = "healthy"
            except Exception as e:
                health_status["redis"] = f"unhealthy: {e!s}"
                # Redis being down is "degraded", not fully unhealthy
                if health_status["status"] == "healthy":
                    health_status["status"] = "degraded"

        _health_cache = health_status
        _health_cache_time = now

        status_code = 200 if health_status["status"] == "healthy" else 503
        return JSONResponse(content=health_status, status_code=status_code)


def setup_metrics(app: FastAPI) -> None:
    """Configure Prometheus metrics with optional API key protection."""
    settings = get_settings()
    instrumentator = Instrumentator(excluded_handlers=["/api/metrics", "/api/health"]).instrument(
        app
    )

    if settings.metrics_api_key:
        api_key_header = APIKeyHeader(name="X-Metrics-Key", auto_error=False)

        async def verify_metrics_key(
            api_key: str | None = Depends(api_key_header),
        ) -> None:
            if (
                api_key is None
                or settings.metrics_api_key is None
                or not secrets.compare_digest(api_key, settings.metrics_api_key)
            ):
                raise HTTPException(
                    status_code=status.HTTP_401_UNAUTHORIZED,
                    detail="Invalid or missing metrics API key",
                )

        instrumentator.expose(
            app, endpoint="/api/metrics", dependencies=[Depends(verify_metrics_key)]
        )
    else:
        instrumentator.expose(app, endpoint="/api/metrics")

"""Application middlewares."""

from asgi_correlation_id import CorrelationIdMiddleware
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.portal.core.config import Settings

from .logging_context import logging_context_middleware
from .security_headers import SecurityHeadersMiddleware
from .session import session_cookie_middleware
from .tenant_routing import TenantRoutingMiddleware, is_excluded_path

__all__ = [
    "setup_middlewares",
    "SecurityHeadersMiddleware",
    "TenantRoutingMiddleware",
    "is_excluded_path",
    "logging_context_middleware",
    "session_cookie_middleware",
]


def setup_middlewares(app: FastAPI, settings: Settings) -> None:
    """Configure all application middlewares.

    Each middleware added wraps the ones added before it, so the list below
    runs bottom-up on a request: correlation id first, session cookies last.
    """
    # Session cookies - innermost, commits cookie changes on handled errors too
    @app.middleware("http")
    async def _session_cookies(request, call_next):  # type: ignore[no-untyped-def]
        return await session_cookie_middleware(request, call_next)

    # Logging context - binds request_id and host tenant to structlog context
    @app.middleware("http")
    async def _logging_context(request, call_next):  # type: ignore[no-untyped-def]
        return await logging_context_middleware(request, call_next)

    # Tenant routing - host -> /<tenant><path> rewrite, before any routing
    app.add_middleware(TenantRoutingMiddleware, settings=settings)

    # Security headers (Helmet-style)
    csp = None
    if not settings.enable_openapi and settings.csp_production:
        csp = settings.csp_production
    hsts = "max-age=31536000; includeSubDomains" if settings.protocol == "https" else None
    app.add_middleware(
        SecurityHeadersMiddleware,
        content_security_policy=csp,
        strict_transport_security=hsts,
    )

    # CORS - tenant subdomains calling each other with credentials
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_origin_regex=settings.cors_origin_regex,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
        allow_headers=["Content-Type", "X-Request-ID"],
    )

    # Correlation ID - outermost, generates/propagates X-Request-ID
    app.add_middleware(CorrelationIdMiddleware)

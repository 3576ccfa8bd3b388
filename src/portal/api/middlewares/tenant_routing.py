"""Edge dispatch: route tenant-subdomain requests to the tenant surface.

A request to ``acme.example.com/settings`` is handed to the application as
``/acme/settings``; a request to ``example.com/settings`` is left alone and
reaches the root surface. API routes, static assets and root-level files
(``/favicon.ico``, ``/robots.txt``) are never rewritten.

This is a plain ASGI middleware so the rewrite happens before routing and
touches nothing but ``path`` and ``raw_path``. The query string is kept.
"""

import re

from starlette.types import ASGIApp, Receive, Scope, Send

from src.portal.core.config import Settings
from src.portal.core.domains import resolve_tenant, tenant_path
from src.portal.core.logging import get_logger

logger = get_logger(__name__)

_EXCLUDED_PREFIXES = ("/api/", "/static/", "/_static/", "/_next/")
_ROOT_FILE = re.compile(r"^/[\w-]+\.\w+$")


def is_excluded_path(path: str) -> bool:
    """Paths served identically on every host."""
    if path in ("/api", "/static", "/_static"):
        return True
    if path.startswith(_EXCLUDED_PREFIXES):
        return True
    return bool(_ROOT_FILE.match(path))


def _host_header(scope: Scope) -> str | None:
    for name, value in scope.get("headers", []):
        if name == b"host":
            return value.decode("latin-1")
    return None


class TenantRoutingMiddleware:
    def __init__(self, app: ASGIApp, settings: Settings) -> None:
        self.app = app
        self.root_domain = settings.root_domain

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        tenant = resolve_tenant(_host_header(scope), self.root_domain)
        scope.setdefault("state", {})["tenant_slug"] = tenant

        path = scope["path"]
        if tenant is not None and not is_excluded_path(path):
            rewritten = tenant_path(tenant, path)
            scope = dict(scope)
            scope["path"] = rewritten
            scope["raw_path"] = rewritten.encode()
            logger.debug("Tenant request rewritten", tenant=tenant, path=path, rewritten=rewritten)

        await self.app(scope, receive, send)

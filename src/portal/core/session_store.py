"""Durable session storage in cookies shared across tenant subdomains.

Each tenant is served from its own subdomain, and moving between tenants is
a full-page navigation to another host. The credential and the last active
tenant id therefore live in cookies whose Domain attribute is the shared
parent domain (see :func:`cookie_domain`), so every subdomain reads the same
session.

Mutations are buffered and written onto the outgoing response by
:meth:`SessionStore.commit`, which the session middleware calls for every
response, including redirects and error responses.
"""

from collections.abc import Mapping
from typing import Literal

from starlette.requests import Request
from starlette.responses import Response

from src.portal.core.config import Settings
from src.portal.core.domains import cookie_domain
from src.portal.core.logging import get_logger

logger = get_logger(__name__)


class SessionStore:
    """Bearer credential and active-tenant pointer for one request."""

    def __init__(
        self,
        cookies: Mapping[str, str],
        settings: Settings,
        host: str | None = None,
    ) -> None:
        self._settings = settings
        self._domain = cookie_domain(host, settings.root_domain)
        self._credential: str | None = cookies.get(settings.session_cookie_name) or None
        self._active_tenant_id: str | None = (
            cookies.get(settings.active_tenant_cookie_name) or None
        )
        # cookie name -> new value, None meaning "delete"
        self._pending: dict[str, str | None] = {}

    @classmethod
    def from_request(cls, request: Request, settings: Settings) -> "SessionStore":
        return cls(request.cookies, settings, request.headers.get("host"))

    @property
    def domain(self) -> str | None:
        return self._domain

    @property
    def credential(self) -> str | None:
        return self._credential

    @property
    def is_authenticated(self) -> bool:
        return bool(self._credential)

    @property
    def active_tenant_id(self) -> str | None:
        return self._active_tenant_id

    @property
    def has_pending_changes(self) -> bool:
        return bool(self._pending)

    def set_credential(self, token: str | None) -> None:
        """Store a new bearer credential; None discards the whole session."""
        if not token:
            self.clear()
            return
        self._credential = token
        self._pending[self._settings.session_cookie_name] = token

    def remember_active_tenant(self, tenant_id: str) -> None:
        self._active_tenant_id = tenant_id
        self._pending[self._settings.active_tenant_cookie_name] = tenant_id

    def forget_active_tenant(self) -> None:
        if self._active_tenant_id is None and (
            self._settings.active_tenant_cookie_name not in self._pending
        ):
            return
        self._active_tenant_id = None
        self._pending[self._settings.active_tenant_cookie_name] = None

    def clear(self) -> None:
        """Discard the credential and tenant pointer."""
        self._credential = None
        self._active_tenant_id = None
        self._pending[self._settings.session_cookie_name] = None
        self._pending[self._settings.active_tenant_cookie_name] = None

    def commit(self, response: Response) -> None:
        """Write buffered cookie mutations onto ``response``."""
        if not self._pending:
            return

        samesite: Literal["lax", "strict", "none"] = self._settings.cookie_samesite  # type: ignore[assignment]
        for name, value in self._pending.items():
            if value is None:
                response.delete_cookie(
                    name,
                    path="/",
                    domain=self._domain,
                    secure=self._settings.cookie_secure,
                    httponly=True,
                    samesite=samesite,
                )
                if self._domain is not None:
                    # Host-only leftovers from before the cookie was domain-scoped
                    response.delete_cookie(name, path="/")
            else:
                response.set_cookie(
                    name,
                    value,
                    max_age=self._settings.session_cookie_max_age,
                    path="/",
                    domain=self._domain,
                    secure=self._settings.cookie_secure,
                    httponly=True,
                    samesite=samesite,
                )
        logger.debug("Session cookies written", cookies=sorted(self._pending), domain=self._domain)
        self._pending.clear()

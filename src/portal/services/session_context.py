"""Tenant/session context: who is logged in, which tenants they can act in,
and which tenant (and therefore which role) is currently active.

A context is built for every request from the cookie-backed
:class:`SessionStore` and the shared :class:`BackendClient`. Its lifecycle:

    UNINITIALIZED --initialize()--> LOADING --> AUTHENTICATED_WITH_TENANT
                                            --> AUTHENTICATED_NO_TENANT
                                            --> UNAUTHENTICATED

Explicit actions (login callback, tenant switch, refresh, logout) keep moving
it between the three settled states. Backend failures during initialization
degrade to UNAUTHENTICATED with principal and tenants cleared; the context
never exposes stale privileged data.

Once :meth:`dispose` has been called (request finished) no awaited result is
applied any more.
"""

import asyncio
from urllib.parse import urlsplit

from src.portal.clients.backend import BackendClient
from src.portal.core.config import Settings
from src.portal.core.domains import root_url, strip_port
from src.portal.core.exceptions import (
    AuthenticationError,
    BackendError,
    DuplicateSubmissionError,
    PortalError,
    TenantResolutionError,
    ValidationFailure,
)
from src.portal.core.logging import bind_session_context, get_logger
from src.portal.core.one_shot import OneShotGuard
from src.portal.core.session_store import SessionStore
from src.portal.models.enums import SessionStatus, WorkspaceRole
from src.portal.schemas import Principal, RedirectTarget, Tenant

logger = get_logger(__name__)

NEW_WORKSPACE_PATH = "/welcome/new-workspace"
SELECT_WORKSPACE_PATH = "/select-workspace"
LOGIN_PATH = "/login"
AUTH_CALLBACK_PATH = "/auth/callback"


class SessionContext:
    """Per-request view of the authenticated session."""

    def __init__(
        self,
        store: SessionStore,
        backend: BackendClient,
        settings: Settings,
        auth_code_guard: OneShotGuard | None = None,
    ) -> None:
        self.store = store
        self.backend = backend
        self.settings = settings
        self.auth_code_guard = auth_code_guard or OneShotGuard("auth_code")

        self.status = SessionStatus.UNINITIALIZED
        self.error: str | None = None
        self._principal: Principal | None = None
        self._tenants: list[Tenant] = []
        self._active_tenant: Tenant | None = None
        self._disposed = False

    # --- Read-only state ---

    @property
    def principal(self) -> Principal | None:
        return self._principal

    @property
    def tenants(self) -> list[Tenant]:
        return list(self._tenants)

    @property
    def active_tenant(self) -> Tenant | None:
        return self._active_tenant

    @property
    def current_role(self) -> WorkspaceRole | None:
        return self._active_tenant.role if self._active_tenant else None

    @property
    def credential(self) -> str | None:
        return self.store.credential

    @property
    def is_loading(self) -> bool:
        return self.status in (SessionStatus.UNINITIALIZED, SessionStatus.LOADING)

    @property
    def is_authenticated(self) -> bool:
        return self.status in (
            SessionStatus.AUTHENTICATED_WITH_TENANT,
            SessionStatus.AUTHENTICATED_NO_TENANT,
        )

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    def find_tenant(self, *, tenant_id: str | None = None, slug: str | None = None) -> Tenant | None:
        for tenant in self._tenants:
            if tenant_id is not None and tenant.id == tenant_id:
                return tenant
            if slug is not None and tenant.slug == slug:
                return tenant
        return None

    # --- Internal transitions ---

    def _settle(self) -> None:
        if self._principal is None:
            self.status = SessionStatus.UNAUTHENTICATED
        elif self._active_tenant is not None:
            self.status = SessionStatus.AUTHENTICATED_WITH_TENANT
        else:
            self.status = SessionStatus.AUTHENTICATED_NO_TENANT

    def _to_unauthenticated(self, error: str | None = None, *, clear_store: bool = False) -> None:
        self._principal = None
        self._tenants = []
        self._active_tenant = None
        self.error = error
        if clear_store:
            self.store.clear()
        self.status = SessionStatus.UNAUTHENTICATED

    def _require_credential(self) -> str:
        token = self.store.credential
        if not token:
            raise AuthenticationError("Not authenticated")
        return token

    # --- Lifecycle ---

    async def initialize(self) -> SessionStatus:
        """Load principal and memberships for the stored credential."""
        if self._disposed:
            return self.status

        self.status = SessionStatus.LOADING
        token = self.store.credential
        if not token:
            self._to_unauthenticated()
            return self.status

        # Both fetches must finish before LOADING is left, even if one fails
        principal_result, tenants_result = await asyncio.gather(
            self.backend.get_principal(token),
            self.backend.list_tenants(token),
            return_exceptions=True,
        )
        if self._disposed:
            logger.debug("Session initialization finished after dispose; ignored")
            return self.status

        for result in (principal_result, tenants_result):
            if isinstance(result, AuthenticationError):
                logger.info("Stored credential rejected", reason=result.detail)
                self._to_unauthenticated(result.detail, clear_store=True)
                return self.status
        for result in (principal_result, tenants_result):
            if isinstance(result, PortalError):
                logger.warning("Session initialization failed", error=result.detail)
                self._to_unauthenticated(result.detail)
                return self.status
            if isinstance(result, BaseException):
                raise result

        assert isinstance(principal_result, Principal)
        self._principal = principal_result
        self._tenants = list(tenants_result)  # type: ignore[arg-type]
        self.error = None

        remembered = self.store.active_tenant_id
        restored = self.find_tenant(tenant_id=remembered) if remembered else None
        if restored is not None:
            self._active_tenant = restored
        else:
            self._active_tenant = None
            if remembered:
                logger.info("Remembered tenant no longer accessible", tenant_id=remembered)
                self.store.forget_active_tenant()

        self._settle()
        bind_session_context(
            principal_result.id,
            self._active_tenant.slug if self._active_tenant else None,
            principal_result.email,
        )
        logger.debug("Session initialized", status=self.status.value, tenants=len(self._tenants))
        return self.status

    def dispose(self) -> None:
        """Stop applying results; called when the request is finished."""
        self._disposed = True

    # --- Authentication ---

    def login_url(self, redirect_uri: str | None = None) -> str:
        """Identity-provider URL to send the browser to. No state change."""
        return self.backend.login_url(redirect_uri or root_url(AUTH_CALLBACK_PATH, self.settings))

    async def logout(self) -> None:
        """Discard the credential and every piece of session state."""
        token = self.store.credential
        if token:
            try:
                await self.backend.logout(token)
            except PortalError as e:
                # The local session is discarded regardless
                logger.info("Backend logout failed", error=e.detail)
        self.store.clear()
        if not self._disposed:
            self._to_unauthenticated()
        logger.info("Logged out")

    def _safe_destination(self, destination: str | None) -> str | None:
        """Accept root-relative paths and URLs on the root domain or its subdomains."""
        if not destination:
            return None
        if destination.startswith("/") and not destination.startswith("//"):
            return root_url(destination, self.settings)

        parts = urlsplit(destination)
        if parts.scheme not in ("http", "https") or not parts.hostname:
            return None
        host = parts.hostname.lower()
        root = strip_port(self.settings.root_domain)
        if host == root or host.endswith(f".{root}"):
            return destination
        logger.warning("Ignored off-site post-login destination", host=host)
        return None

    async def handle_auth_callback(
        self, code: str, redirect_to: str | None = None
    ) -> RedirectTarget:
        """Exchange a one-time authorization code for a session.

        The code is claimed before the exchange starts, so a second
        submission of the same code is rejected while (or after) the first
        is processed.

        Returns:
            Where to send the browser: tenant creation when the principal has
            no tenants, otherwise ``redirect_to`` (if on-site), the backend's
            suggestion, or tenant selection.

        Raises:
            ValidationFailure: ``code`` is empty.
            DuplicateSubmissionError: the code was already submitted.
            PortalError: the exchange failed; the context is UNAUTHENTICATED.
        """
        if not code:
            raise ValidationFailure("Missing authorization code", field="code")
        if not await self.auth_code_guard.claim(code):
            raise DuplicateSubmissionError("Authorization code already submitted")

        self.status = SessionStatus.LOADING
        try:
            login = await self.backend.exchange_code(code)
        except PortalError as e:
            if isinstance(e, BackendError) and e.upstream_status is None:
                # Never reached the backend; the code is still unused
                await self.auth_code_guard.release(code)
            logger.warning("Authorization code exchange failed", error=e.detail)
            if not self._disposed:
                self._to_unauthenticated(e.detail)
            raise

        self.store.set_credential(login.access_token)
        if self._disposed:
            return RedirectTarget(redirect_url=root_url(SELECT_WORKSPACE_PATH, self.settings))

        self._principal = login.user
        self._tenants = list(login.workspaces)
        self.error = None
        if self._tenants:
            self._active_tenant = self._tenants[0]
            self.store.remember_active_tenant(self._tenants[0].id)
        else:
            self._active_tenant = None
            self.store.forget_active_tenant()
        self._settle()
        bind_session_context(
            login.user.id,
            self._active_tenant.slug if self._active_tenant else None,
            login.user.email,
        )
        logger.info("Logged in", tenants=len(self._tenants))

        if not self._tenants:
            return RedirectTarget(redirect_url=root_url(NEW_WORKSPACE_PATH, self.settings))
        destination = (
            self._safe_destination(redirect_to)
            or self._safe_destination(login.redirect_url)
            or root_url(SELECT_WORKSPACE_PATH, self.settings)
        )
        return RedirectTarget(redirect_url=destination)

    # --- Tenants ---

    def set_active_tenant(self, tenant: Tenant) -> Tenant:
        """Make ``tenant`` active and remember it across subdomains.

        The membership list's copy is used so the role is the freshest known.

        Raises:
            TenantResolutionError: the principal is not a member of ``tenant``.
        """
        member_tenant = self.find_tenant(tenant_id=tenant.id)
        if member_tenant is None:
            raise TenantResolutionError("Workspace not accessible", slug=tenant.slug)
        if self._disposed:
            return member_tenant
        self._active_tenant = member_tenant
        self.store.remember_active_tenant(member_tenant.id)
        self._settle()
        if self._principal is not None:
            bind_session_context(self._principal.id, member_tenant.slug)
        return member_tenant

    def clear_active_tenant(self) -> None:
        if self._disposed:
            return
        self._active_tenant = None
        self.store.forget_active_tenant()
        self._settle()

    async def refresh_tenants(self) -> list[Tenant]:
        """Re-fetch memberships and drop the active tenant if it was revoked.

        Raises:
            PortalError: the fetch failed; the context degrades to
                UNAUTHENTICATED (the credential itself is only discarded on
                an authentication failure).
        """
        token = self._require_credential()
        try:
            tenants = await self.backend.list_tenants(token)
        except AuthenticationError as e:
            if not self._disposed:
                self._to_unauthenticated(e.detail, clear_store=True)
            raise
        except PortalError as e:
            logger.warning("Tenant refresh failed", error=e.detail)
            if not self._disposed:
                self._to_unauthenticated(e.detail)
            raise

        if self._disposed:
            return tenants

        self._tenants = list(tenants)
        if self._active_tenant is not None:
            fresh = self.find_tenant(tenant_id=self._active_tenant.id)
            if fresh is None:
                logger.info("Active tenant membership revoked", tenant_id=self._active_tenant.id)
                self._active_tenant = None
                self.store.forget_active_tenant()
            else:
                self._active_tenant = fresh
        self._settle()
        return list(tenants)

    def resolve_tenant_for_slug(self, slug: str) -> Tenant:
        """Activate the tenant addressed by the request's subdomain.

        Raises:
            AuthenticationError: nobody is logged in.
            TenantResolutionError: the principal has no membership in ``slug``.
        """
        if not self.is_authenticated:
            raise AuthenticationError("Not authenticated")
        tenant = self.find_tenant(slug=slug)
        if tenant is None:
            raise TenantResolutionError("Workspace not found or not accessible", slug=slug)
        if self._active_tenant is None or self._active_tenant.id != tenant.id:
            return self.set_active_tenant(tenant)
        return tenant

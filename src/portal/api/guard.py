"""Permission guard for tenant pages and actions.

A guard is a declarative access rule evaluated against the session's active
role. Checks are tried in a fixed order and the first one configured wins:

1. ``minimum_role``      rank comparison
2. ``permission``        single permission
3. ``permissions``       any (default) or all (``require_all``) of a set
4. nothing configured    access granted

On denial with ``redirect_to`` the browser is sent to that path, qualified
onto the active tenant's subdomain (or the root domain when there is no
active tenant, or when ``redirect_scope="root"``). Without ``redirect_to``
the denial carries the optional ``fallback`` placeholder instead.

This is a UX gate. The backend enforces the same rules on every call.
"""

from dataclasses import dataclass, field
from typing import Any, Literal

from fastapi import Depends

from src.portal.api.dependencies import ActiveTenant, CurrentSession, SettingsDep
from src.portal.core.config import Settings
from src.portal.core.domains import root_url, tenant_url
from src.portal.core.exceptions import AuthorizationError, RedirectRequired
from src.portal.core.permissions import (
    has_all_permissions,
    has_any_permission,
    has_minimum_role,
    has_permission,
)
from src.portal.models.enums import ProjectPermission, WorkspacePermission, WorkspaceRole
from src.portal.schemas import Project
from src.portal.services.session_context import SessionContext


@dataclass(frozen=True)
class GuardDecision:
    allowed: bool
    redirect_url: str | None = None
    fallback: Any = None


@dataclass(frozen=True)
class PermissionGuard:
    permission: WorkspacePermission | None = None
    permissions: tuple[WorkspacePermission, ...] = field(default_factory=tuple)
    require_all: bool = False
    minimum_role: WorkspaceRole | None = None
    redirect_to: str | None = None
    fallback: Any = None
    show_fallback: bool = True
    redirect_scope: Literal["tenant", "root"] = "tenant"

    def has_access(self, role: WorkspaceRole | str | None) -> bool:
        if self.minimum_role is not None:
            return has_minimum_role(role, self.minimum_role)
        if self.permission is not None:
            return has_permission(role, self.permission)
        if self.permissions:
            if self.require_all:
                return has_all_permissions(role, self.permissions)
            return has_any_permission(role, self.permissions)
        return True

    def target_url(self, session: SessionContext, settings: Settings) -> str | None:
        """Absolute URL for the denial redirect, or None when not configured."""
        if not self.redirect_to:
            return None
        tenant = session.active_tenant
        if self.redirect_scope == "tenant" and tenant is not None:
            return tenant_url(tenant.slug, self.redirect_to, settings)
        return root_url(self.redirect_to, settings)

    def evaluate(self, session: SessionContext, settings: Settings) -> GuardDecision:
        if self.has_access(session.current_role):
            return GuardDecision(allowed=True)
        redirect_url = self.target_url(session, settings)
        if redirect_url is not None:
            return GuardDecision(allowed=False, redirect_url=redirect_url)
        return GuardDecision(
            allowed=False,
            fallback=self.fallback if self.show_fallback else None,
        )


def require_access(
    permission: WorkspacePermission | None = None,
    *,
    permissions: tuple[WorkspacePermission, ...] = (),
    require_all: bool = False,
    minimum_role: WorkspaceRole | None = None,
    redirect_to: str | None = None,
    fallback: Any = None,
    redirect_scope: Literal["tenant", "root"] = "tenant",
) -> Any:
    """Build a dependency that enforces a :class:`PermissionGuard` on a route.

    Usage:
        @router.get("/{domain}/settings", dependencies=[require_access(
            WorkspacePermission.ACCESS_SETTINGS, redirect_to="/dashboard")])
    """
    guard = PermissionGuard(
        permission=permission,
        permissions=tuple(permissions),
        require_all=require_all,
        minimum_role=minimum_role,
        redirect_to=redirect_to,
        fallback=fallback,
        redirect_scope=redirect_scope,
    )

    async def enforce(
        tenant: ActiveTenant,
        session: CurrentSession,
        settings: SettingsDep,
    ) -> GuardDecision:
        decision = guard.evaluate(session, settings)
        if decision.allowed:
            return decision
        if decision.redirect_url is not None:
            raise RedirectRequired(decision.redirect_url)
        raise AuthorizationError(
            "You don't have access to this page",
            tenant=tenant.slug,
            fallback=decision.fallback,
        )

    return Depends(enforce)


def check_project_access(project: Project, permission: ProjectPermission) -> None:
    """Per-project gate, evaluated from the caller's role on ``project`` alone."""
    if not has_permission(project.role, permission):
        raise AuthorizationError(
            "You don't have access to this project",
            project_id=project.id,
            permission=permission.value,
        )

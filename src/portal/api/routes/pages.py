"""View-model builders shared by root and tenant routes."""

from src.portal.core.config import Settings
from src.portal.core.domains import root_url, tenant_url
from src.portal.core.permissions import capabilities
from src.portal.schemas import SessionView, Tenant, TenantLink, WorkspacePage
from src.portal.services.session_context import (
    NEW_WORKSPACE_PATH,
    SELECT_WORKSPACE_PATH,
    SessionContext,
)

DASHBOARD_PATH = "/dashboard"


def tenant_links(session: SessionContext, settings: Settings) -> list[TenantLink]:
    return [
        TenantLink(tenant=tenant, url=tenant_url(tenant.slug, DASHBOARD_PATH, settings))
        for tenant in session.tenants
    ]


def landing_url(session: SessionContext, settings: Settings) -> str | None:
    """Where a logged-in principal arriving on the root domain should go.

    No tenants: create one. A remembered tenant: its dashboard. Otherwise
    pick one.
    """
    if not session.is_authenticated:
        return None
    if not session.tenants:
        return root_url(NEW_WORKSPACE_PATH, settings)
    if session.active_tenant is not None:
        return tenant_url(session.active_tenant.slug, DASHBOARD_PATH, settings)
    return root_url(SELECT_WORKSPACE_PATH, settings)


def session_view(session: SessionContext, settings: Settings) -> SessionView:
    return SessionView(
        status=session.status,
        principal=session.principal,
        tenants=tenant_links(session, settings),
        active_tenant=session.active_tenant,
        role=session.current_role,
        next_url=landing_url(session, settings),
    )


def workspace_page(session: SessionContext, tenant: Tenant, settings: Settings) -> WorkspacePage:
    assert session.principal is not None
    return WorkspacePage(
        principal=session.principal,
        tenant=tenant,
        role=tenant.role,
        capabilities=capabilities(tenant.role),
        tenants=tenant_links(session, settings),
    )

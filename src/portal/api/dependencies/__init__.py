"""FastAPI dependency injection definitions.

Re-exports all dependencies so routes import from one place.
"""

# Session
from src.portal.api.dependencies.session import (
    AuthenticatedSession,
    Backend,
    CurrentSession,
    SettingsDep,
    Store,
    get_authenticated_session,
    get_backend,
    get_session_context,
    get_session_store,
)

# Services
from src.portal.api.dependencies.services import (
    ProjectContextDep,
    WorkspaceServiceDep,
    get_project_context,
    get_workspace_service,
)

# Tenant
from src.portal.api.dependencies.tenant import (
    ActiveTenant,
    HostTenantSlug,
    get_active_tenant,
    get_host_tenant_slug,
)

__all__ = [
    # Session
    "AuthenticatedSession",
    "Backend",
    "CurrentSession",
    "SettingsDep",
    "Store",
    "get_authenticated_session",
    "get_backend",
    "get_session_context",
    "get_session_store",
    # Services
    "ProjectContextDep",
    "WorkspaceServiceDep",
    "get_project_context",
    "get_workspace_service",
    # Tenant
    "ActiveTenant",
    "HostTenantSlug",
    "get_active_tenant",
    "get_host_tenant_slug",
]

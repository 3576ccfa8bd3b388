"""Tenant resolution dependencies for routes on a tenant subdomain."""

from typing import Annotated

from fastapi import Depends, Request

from src.portal.api.dependencies.session import AuthenticatedSession
from src.portal.core.exceptions import NotFoundError
from src.portal.schemas import Tenant


def get_host_tenant_slug(request: Request) -> str | None:
    """Tenant label resolved from the Host header by the routing middleware."""
    return getattr(request.state, "tenant_slug", None)


HostTenantSlug = Annotated[str | None, Depends(get_host_tenant_slug)]


async def get_active_tenant(
    domain: str,
    host_slug: HostTenantSlug,
    session: AuthenticatedSession,
) -> Tenant:
    """Resolve ``/{domain}/...`` to a tenant the principal belongs to.

    The path prefix must come from the host rewrite; a tenant path requested
    directly on the root domain is not a tenant page.
    """
    if host_slug is None or host_slug != domain:
        raise NotFoundError("Page not found")
    return session.resolve_tenant_for_slug(domain)


ActiveTenant = Annotated[Tenant, Depends(get_active_tenant)]

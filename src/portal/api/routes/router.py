from fastapi import APIRouter

from src.portal.api.routes import projects, root, tenant

portal_router = APIRouter()
# Literal root paths must be matched before the tenant catch-all "/{domain}"
portal_router.include_router(root.router)
portal_router.include_router(projects.router)
portal_router.include_router(tenant.router)

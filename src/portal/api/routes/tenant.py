"""Tenant surface: dashboard, settings and member administration.

Routes here are reached through the host rewrite, so ``{domain}`` is always
the tenant label of the request's subdomain.
"""

from fastapi import APIRouter, Request, status
from fastapi.responses import RedirectResponse

from src.portal.api.dependencies import (
    ActiveTenant,
    AuthenticatedSession,
    SettingsDep,
    WorkspaceServiceDep,
)
from src.portal.api.guard import require_access
from src.portal.api.routes.pages import DASHBOARD_PATH, workspace_page
from src.portal.core.domains import strip_tenant_prefix
from src.portal.core.permissions import has_permission
from src.portal.models.enums import WorkspacePermission
from src.portal.schemas import (
    InviteCreateRequest,
    MemberRoleUpdate,
    OwnershipTransferRequest,
    RedirectTarget,
    SettingsPage,
    UpdateWorkspaceResult,
    WorkspaceMember,
    WorkspacePage,
    WorkspaceUpdate,
)

router = APIRouter(prefix="/{domain}", tags=["workspace"])

settings_access = require_access(WorkspacePermission.ACCESS_SETTINGS, redirect_to=DASHBOARD_PATH)


@router.get("", response_class=RedirectResponse, summary="Workspace home")
async def workspace_home(tenant: ActiveTenant) -> RedirectResponse:
    return RedirectResponse(DASHBOARD_PATH, status_code=status.HTTP_303_SEE_OTHER)


@router.get("/dashboard", response_model=WorkspacePage, summary="Dashboard")
async def dashboard(
    tenant: ActiveTenant, session: AuthenticatedSession, settings: SettingsDep
) -> WorkspacePage:
    return workspace_page(session, tenant, settings)


@router.get(
    "/settings",
    response_model=SettingsPage,
    dependencies=[settings_access],
    summary="Workspace settings",
)
async def settings_page(
    tenant: ActiveTenant,
    session: AuthenticatedSession,
    workspaces: WorkspaceServiceDep,
    settings: SettingsDep,
) -> SettingsPage:
    page = workspace_page(session, tenant, settings)
    members = None
    if has_permission(tenant.role, WorkspacePermission.VIEW_MEMBERS):
        members = await workspaces.list_members(tenant)
    return SettingsPage(**page.model_dump(), members=members)


@router.put(
    "/settings",
    response_model=UpdateWorkspaceResult,
    dependencies=[settings_access],
    summary="Update workspace",
)
async def update_workspace(
    domain: str,
    request: Request,
    body: WorkspaceUpdate,
    tenant: ActiveTenant,
    workspaces: WorkspaceServiceDep,
) -> UpdateWorkspaceResult:
    """Rename the workspace; a new slug sends the browser to the new subdomain."""
    current_path = strip_tenant_prefix(domain, request.url.path)
    updated, redirect_url = await workspaces.update_workspace(
        body.name, body.slug, current_path=current_path, tenant=tenant
    )
    return UpdateWorkspaceResult(workspace=updated, redirect_url=redirect_url)


@router.delete(
    "/settings",
    response_model=RedirectTarget,
    dependencies=[settings_access],
    summary="Delete workspace",
)
async def delete_workspace(tenant: ActiveTenant, workspaces: WorkspaceServiceDep) -> RedirectTarget:
    return await workspaces.delete_workspace(tenant)


# --- Members ---


@router.get("/settings/members", response_model=list[WorkspaceMember], summary="List members")
async def list_members(
    tenant: ActiveTenant, workspaces: WorkspaceServiceDep
) -> list[WorkspaceMember]:
    return await workspaces.list_members(tenant)


@router.post(
    "/settings/members",
    status_code=status.HTTP_202_ACCEPTED,
    dependencies=[settings_access],
    summary="Invite member",
)
async def invite_member(
    body: InviteCreateRequest, tenant: ActiveTenant, workspaces: WorkspaceServiceDep
) -> dict[str, str]:
    await workspaces.invite_member(body.email, body.role, tenant=tenant)
    return {"detail": f"Invitation sent to {body.email}"}


@router.put(
    "/settings/members/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Change member role",
)
async def update_member_role(
    user_id: str,
    body: MemberRoleUpdate,
    tenant: ActiveTenant,
    workspaces: WorkspaceServiceDep,
) -> None:
    await workspaces.update_member_role(user_id, body.role, tenant=tenant)


@router.delete(
    "/settings/members/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove member",
)
async def remove_member(
    user_id: str, tenant: ActiveTenant, workspaces: WorkspaceServiceDep
) -> None:
    await workspaces.remove_member(user_id, tenant=tenant)


@router.post(
    "/settings/transfer-ownership",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Transfer ownership",
)
async def transfer_ownership(
    body: OwnershipTransferRequest,
    tenant: ActiveTenant,
    workspaces: WorkspaceServiceDep,
) -> None:
    await workspaces.transfer_ownership(
        body.new_owner_id, body.confirmation_email, tenant=tenant
    )

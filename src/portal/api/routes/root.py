"""Root-domain surface: landing, login, auth callback, invitations and
workspace selection/creation."""

from typing import Annotated

from fastapi import APIRouter, Query, status
from fastapi.responses import RedirectResponse
from pydantic import BaseModel

from src.portal.api.dependencies import (
    AuthenticatedSession,
    CurrentSession,
    SettingsDep,
    WorkspaceServiceDep,
)
from src.portal.api.routes.pages import landing_url, session_view, tenant_links
from src.portal.core.domains import root_url, tenant_url
from src.portal.core.exceptions import DuplicateSubmissionError, ValidationFailure
from src.portal.core.logging import get_logger
from src.portal.schemas import (
    CreateWorkspaceResult,
    RedirectTarget,
    SessionView,
    TenantLink,
    WorkspaceCreate,
)
from src.portal.services.session_context import (
    LOGIN_PATH,
    NEW_WORKSPACE_PATH,
    SELECT_WORKSPACE_PATH,
)

logger = get_logger(__name__)

router = APIRouter(tags=["root"])


def _see_other(url: str) -> RedirectResponse:
    return RedirectResponse(url, status_code=status.HTTP_303_SEE_OTHER)


@router.get("/", response_model=SessionView, summary="Landing page")
async def landing(session: CurrentSession, settings: SettingsDep) -> SessionView:
    """Session summary; ``next_url`` tells a logged-in visitor where to continue."""
    return session_view(session, settings)


@router.get("/login", summary="Start login", response_class=RedirectResponse)
async def login(session: CurrentSession, settings: SettingsDep) -> RedirectResponse:
    """Send the browser to the identity provider, or onwards if already logged in."""
    destination = landing_url(session, settings)
    if destination is not None:
        return _see_other(destination)
    return _see_other(session.login_url())


@router.get("/auth/callback", summary="Identity provider callback", response_class=RedirectResponse)
async def auth_callback(
    session: CurrentSession,
    settings: SettingsDep,
    code: Annotated[str | None, Query()] = None,
    error: Annotated[str | None, Query()] = None,
    next_url: Annotated[str | None, Query(alias="next")] = None,
) -> RedirectResponse:
    """Exchange the authorization code and continue to the right place."""
    if error or not code:
        logger.info("Login not completed", error=error or "missing code")
        return _see_other(root_url(f"{LOGIN_PATH}?error=auth_failed", settings))
    try:
        result = await session.handle_auth_callback(code, next_url)
    except DuplicateSubmissionError:
        # The first submission is (or was) completing the login
        return _see_other(root_url(SELECT_WORKSPACE_PATH, settings))
    return _see_other(result.redirect_url)


@router.get("/auth/invite", summary="Accept invitation", response_class=RedirectResponse)
async def accept_invite(
    workspaces: WorkspaceServiceDep,
    settings: SettingsDep,
    token: Annotated[str | None, Query()] = None,
) -> RedirectResponse:
    if not token:
        raise ValidationFailure("Invalid invitation link", field="token")
    try:
        result = await workspaces.accept_invite(token)
    except DuplicateSubmissionError:
        return _see_other(root_url(SELECT_WORKSPACE_PATH, settings))
    return _see_other(result.redirect_url)


@router.get("/select-workspace", response_model=list[TenantLink], summary="Choose a workspace")
async def select_workspace_page(
    session: AuthenticatedSession, settings: SettingsDep
) -> list[TenantLink] | RedirectResponse:
    if not session.tenants:
        return _see_other(root_url(NEW_WORKSPACE_PATH, settings))
    return tenant_links(session, settings)


class SelectWorkspaceRequest(BaseModel):
    tenant_id: str


@router.post("/select-workspace", response_model=RedirectTarget, summary="Switch workspace")
async def select_workspace(
    body: SelectWorkspaceRequest,
    session: AuthenticatedSession,
    settings: SettingsDep,
) -> RedirectTarget:
    """Make a workspace active; the browser continues on its subdomain."""
    tenant = session.find_tenant(tenant_id=body.tenant_id)
    if tenant is None:
        raise ValidationFailure("Workspace not found", field="tenant_id")
    tenant = session.set_active_tenant(tenant)
    return RedirectTarget(redirect_url=tenant_url(tenant.slug, "/dashboard", settings))


@router.get("/welcome/new-workspace", response_model=SessionView, summary="New workspace page")
async def new_workspace_page(session: AuthenticatedSession, settings: SettingsDep) -> SessionView:
    return session_view(session, settings)


@router.post(
    "/welcome/new-workspace",
    response_model=CreateWorkspaceResult,
    status_code=status.HTTP_201_CREATED,
    summary="Create workspace",
)
async def create_workspace(
    body: WorkspaceCreate, workspaces: WorkspaceServiceDep
) -> CreateWorkspaceResult:
    return await workspaces.create_workspace(body.name)


@router.post("/logout", response_model=RedirectTarget, summary="Log out")
async def logout(session: CurrentSession, settings: SettingsDep) -> RedirectTarget:
    await session.logout()
    return RedirectTarget(redirect_url=root_url(LOGIN_PATH, settings))

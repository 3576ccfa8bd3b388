"""Page view models returned by the portal's routes."""

from pydantic import BaseModel, Field

from src.portal.models.enums import SessionStatus, WorkspaceRole
from src.portal.schemas.project import Project
from src.portal.schemas.workspace import Principal, Tenant, WorkspaceMember


class TenantLink(BaseModel):
    """A tenant in a switcher, with the URL of its dashboard."""

    tenant: Tenant
    url: str


class SessionView(BaseModel):
    status: SessionStatus
    principal: Principal | None = None
    tenants: list[TenantLink] = Field(default_factory=list)
    active_tenant: Tenant | None = None
    role: WorkspaceRole | None = None
    next_url: str | None = None


class WorkspacePage(BaseModel):
    """Common shape of every tenant page: who, where and what they may do."""

    principal: Principal
    tenant: Tenant
    role: WorkspaceRole | None
    capabilities: dict[str, bool]
    tenants: list[TenantLink] = Field(default_factory=list)


class SettingsPage(WorkspacePage):
    members: list[WorkspaceMember] | None = None


class UpdateWorkspaceResult(BaseModel):
    workspace: Tenant
    redirect_url: str | None = None


class ProjectNode(BaseModel):
    project: Project
    capabilities: dict[str, bool]
    children: list["ProjectNode"] = Field(default_factory=list)


class ProjectListPage(BaseModel):
    tree: list[ProjectNode]
    total: int
    error: str | None = None


class ProjectPage(BaseModel):
    project: Project
    capabilities: dict[str, bool]
    breadcrumbs: list[Project]
    children: list[Project]

"""Project tree and project membership routes on the tenant surface."""

from fastapi import APIRouter, status

from src.portal.api.dependencies import ActiveTenant, ProjectContextDep
from src.portal.api.guard import check_project_access
from src.portal.core.exceptions import BackendError, NotFoundError
from src.portal.core.permissions import project_capabilities
from src.portal.models.enums import ProjectPermission
from src.portal.schemas import (
    Project,
    ProjectCreate,
    ProjectListPage,
    ProjectMember,
    ProjectMemberAdd,
    ProjectMemberRoleUpdate,
    ProjectNode,
    ProjectOwnershipTransfer,
    ProjectPage,
    ProjectUpdate,
    Tenant,
)
from src.portal.services.project_context import ProjectContext

router = APIRouter(prefix="/{domain}/projects", tags=["projects"])


async def _load(projects: ProjectContext, tenant: Tenant) -> None:
    """Load the tenant's projects; a failed load is a backend error, not a 404."""
    await projects.refresh_projects(tenant.id)
    if projects.error:
        raise BackendError(projects.error)


def _node(projects: ProjectContext, project: Project, seen: set[str]) -> ProjectNode:
    seen.add(project.id)
    return ProjectNode(
        project=project,
        capabilities=project_capabilities(project.role),
        children=[
            _node(projects, child, seen)
            for child in projects.children_of(project.id)
            if child.id not in seen
        ],
    )


@router.get("", response_model=ProjectListPage, summary="List projects")
async def list_projects(tenant: ActiveTenant, projects: ProjectContextDep) -> ProjectListPage:
    """The workspace's projects as a forest. A failed load is reported, not raised."""
    await projects.refresh_projects(tenant.id)
    seen: set[str] = set()
    tree = [_node(projects, root, seen) for root in projects.root_projects()]
    return ProjectListPage(tree=tree, total=len(projects.projects), error=projects.error)


@router.post(
    "",
    response_model=Project,
    status_code=status.HTTP_201_CREATED,
    summary="Create project",
)
async def create_project(
    body: ProjectCreate, tenant: ActiveTenant, projects: ProjectContextDep
) -> Project:
    if body.parent_id is not None:
        await _load(projects, tenant)
    return await projects.create_project(body, tenant.id)


@router.get("/{project_id}", response_model=ProjectPage, summary="Project details")
async def get_project(
    project_id: str, tenant: ActiveTenant, projects: ProjectContextDep
) -> ProjectPage:
    await _load(projects, tenant)
    project = projects.get_project(project_id)
    if project is None:
        raise NotFoundError("Project not found")
    check_project_access(project, ProjectPermission.VIEW_PROJECT)
    projects.set_current_project(project)
    return ProjectPage(
        project=project,
        capabilities=project_capabilities(project.role),
        breadcrumbs=projects.ancestors_of(project_id),
        children=projects.children_of(project_id),
    )


@router.put("/{project_id}", response_model=Project, summary="Update project")
async def update_project(
    project_id: str,
    body: ProjectUpdate,
    tenant: ActiveTenant,
    projects: ProjectContextDep,
) -> Project:
    await _load(projects, tenant)
    return await projects.update_project(project_id, body)


@router.delete(
    "/{project_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete project"
)
async def delete_project(
    project_id: str, tenant: ActiveTenant, projects: ProjectContextDep
) -> None:
    """Delete a project together with its sub-projects."""
    await _load(projects, tenant)
    await projects.delete_project(project_id)


# --- Project members ---


@router.get(
    "/{project_id}/members", response_model=list[ProjectMember], summary="List project members"
)
async def list_project_members(
    project_id: str, tenant: ActiveTenant, projects: ProjectContextDep
) -> list[ProjectMember]:
    await _load(projects, tenant)
    return await projects.list_members(project_id)


@router.post(
    "/{project_id}/members",
    response_model=ProjectMember | None,
    status_code=status.HTTP_201_CREATED,
    summary="Add project member",
)
async def add_project_member(
    project_id: str,
    body: ProjectMemberAdd,
    tenant: ActiveTenant,
    projects: ProjectContextDep,
) -> ProjectMember | None:
    await _load(projects, tenant)
    return await projects.add_member(project_id, body)


@router.put(
    "/{project_id}/members/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Change project member role",
)
async def update_project_member_role(
    project_id: str,
    user_id: str,
    body: ProjectMemberRoleUpdate,
    tenant: ActiveTenant,
    projects: ProjectContextDep,
) -> None:
    await _load(projects, tenant)
    await projects.update_member_role(project_id, user_id, body.role)


@router.delete(
    "/{project_id}/members/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove project member",
)
async def remove_project_member(
    project_id: str, user_id: str, tenant: ActiveTenant, projects: ProjectContextDep
) -> None:
    await _load(projects, tenant)
    await projects.remove_member(project_id, user_id)


@router.post(
    "/{project_id}/transfer-ownership",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Transfer project ownership",
)
async def transfer_project_ownership(
    project_id: str,
    body: ProjectOwnershipTransfer,
    tenant: ActiveTenant,
    projects: ProjectContextDep,
) -> None:
    await _load(projects, tenant)
    await projects.transfer_ownership(project_id, body.new_owner_id)

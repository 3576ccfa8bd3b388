"""Project tree and focused project for the active tenant.

Permissions are checked against the caller's role on the *target* project
only. A role on a parent project grants nothing on its children.

Mutations are applied to local state only after the backend accepted them,
so a failed call leaves ``projects``, ``current_project`` and cached member
lists exactly as they were.
"""

from src.portal.clients.backend import BackendClient
from src.portal.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    NotFoundError,
    PortalError,
    ValidationFailure,
)
from src.portal.core.logging import get_logger
from src.portal.core.permissions import has_minimum_role, has_permission
from src.portal.models.enums import ProjectPermission, ProjectRole
from src.portal.schemas import (
    Project,
    ProjectCreate,
    ProjectMember,
    ProjectMemberAdd,
    ProjectUpdate,
)
from src.portal.services import membership
from src.portal.services.session_context import SessionContext

logger = get_logger(__name__)


class ProjectContext:
    """CRUD orchestration for the active tenant's project forest."""

    def __init__(self, session: SessionContext, backend: BackendClient) -> None:
        self.session = session
        self.backend = backend
        self.projects: list[Project] = []
        self.current_project: Project | None = None
        self.is_loading = False
        self.error: str | None = None
        self._members: dict[str, list[ProjectMember]] = {}

    def _token(self) -> str:
        token = self.session.credential
        if not token:
            raise AuthenticationError("Not authenticated")
        return token

    def _tenant_id(self, tenant_id: str | None) -> str:
        if tenant_id:
            return tenant_id
        if self.session.active_tenant is None:
            raise ValidationFailure("No active workspace")
        return self.session.active_tenant.id

    # --- Tree queries ---

    def get_project(self, project_id: str) -> Project | None:
        for project in self.projects:
            if project.id == project_id:
                return project
        return None

    def root_projects(self) -> list[Project]:
        """Projects without a parent, plus orphans whose parent is not visible."""
        known = {project.id for project in self.projects}
        return [p for p in self.projects if p.parent_id is None or p.parent_id not in known]

    def children_of(self, parent_id: str) -> list[Project]:
        return [project for project in self.projects if project.parent_id == parent_id]

    def descendant_ids(self, project_id: str) -> set[str]:
        """Ids of every locally known project below ``project_id``."""
        found: set[str] = set()
        pending = [project_id]
        while pending:
            parent = pending.pop()
            for child in self.children_of(parent):
                if child.id not in found:
                    found.add(child.id)
                    pending.append(child.id)
        return found

    def ancestors_of(self, project_id: str) -> list[Project]:
        """Path from the root down to (excluding) ``project_id``, for breadcrumbs."""
        path: list[Project] = []
        seen = {project_id}
        project = self.get_project(project_id)
        while project is not None and project.parent_id and project.parent_id not in seen:
            seen.add(project.parent_id)
            project = self.get_project(project.parent_id)
            if project is not None:
                path.append(project)
        path.reverse()
        return path

    def _require_project(self, project_id: str) -> Project:
        project = self.get_project(project_id)
        if project is None:
            raise NotFoundError("Project not found")
        return project

    def _require_permission(self, project: Project, permission: ProjectPermission) -> None:
        if not has_permission(project.role, permission):
            raise AuthorizationError(
                "You don't have permission to do that on this project",
                project_id=project.id,
                permission=permission.value,
            )

    # --- Projects ---

    async def refresh_projects(self, tenant_id: str | None = None) -> list[Project]:
        """Reload the tenant's projects.

        A failure records ``error`` and empties the list rather than keeping
        data that may no longer be accessible.
        """
        tenant_id = self._tenant_id(tenant_id)
        token = self._token()
        self.is_loading = True
        try:
            projects = await self.backend.list_projects(token, tenant_id)
        except AuthenticationError:
            self.projects = []
            self.current_project = None
            raise
        except PortalError as e:
            logger.warning("Project refresh failed", tenant_id=tenant_id, error=e.detail)
            self.error = e.detail
            self.projects = []
            self.current_project = None
            return []
        finally:
            self.is_loading = False

        if self.session.is_disposed:
            return projects
        self.projects = list(projects)
        self.error = None
        if self.current_project is not None:
            self.current_project = self.get_project(self.current_project.id)
        return list(projects)

    async def create_project(self, data: ProjectCreate, tenant_id: str | None = None) -> Project:
        """Create a project, optionally below ``data.parent_id``, and append it."""
        tenant_id = self._tenant_id(tenant_id)
        if data.parent_id is not None:
            parent = self._require_project(data.parent_id)
            self._require_permission(parent, ProjectPermission.CREATE_SUBPROJECT)

        created = await self.backend.create_project(self._token(), tenant_id, data)
        if created.parent_id is None and data.parent_id is not None:
            created = created.model_copy(update={"parent_id": data.parent_id})
        if created.role is None:
            # The creator owns what they create
            created = created.model_copy(update={"role": ProjectRole.OWNER})

        if not self.session.is_disposed:
            self.projects = [*self.projects, created]
        logger.info("Project created", project_id=created.id, parent_id=created.parent_id)
        return created

    async def update_project(self, project_id: str, data: ProjectUpdate) -> Project:
        project = self._require_project(project_id)
        self._require_permission(project, ProjectPermission.UPDATE_PROJECT)
        changes = data.model_dump(exclude_none=True)
        if not changes:
            raise ValidationFailure("Nothing to update")

        updated = await self.backend.update_project(self._token(), project_id, data)
        merged = project.model_copy(
            update={
                "name": updated.name,
                "color": updated.color or project.color,
                "parent_id": updated.parent_id if updated.parent_id is not None else project.parent_id,
                "archived": updated.archived,
                "role": updated.role or project.role,
            }
        )

        if not self.session.is_disposed:
            self.projects = [merged if p.id == project_id else p for p in self.projects]
            if self.current_project is not None and self.current_project.id == project_id:
                self.current_project = merged
        return merged

    async def delete_project(self, project_id: str) -> None:
        """Delete a project; its subtree disappears with it."""
        project = self._require_project(project_id)
        self._require_permission(project, ProjectPermission.DELETE_PROJECT)

        await self.backend.delete_project(self._token(), project_id)

        if self.session.is_disposed:
            return
        removed = {project_id} | self.descendant_ids(project_id)
        self.projects = [p for p in self.projects if p.id not in removed]
        for removed_id in removed:
            self._members.pop(removed_id, None)
        if self.current_project is not None and self.current_project.id in removed:
            self.current_project = None
        logger.info("Project deleted", project_id=project_id, subtree=len(removed) - 1)

    def set_current_project(self, project: Project | None) -> None:
        if project is None:
            self.current_project = None
            return
        self.current_project = self.get_project(project.id) or project

    # --- Project members ---

    async def list_members(self, project_id: str) -> list[ProjectMember]:
        project = self._require_project(project_id)
        self._require_permission(project, ProjectPermission.VIEW_MEMBERS)
        members = await self.backend.list_project_members(self._token(), project_id)
        self._members[project_id] = list(members)
        return list(members)

    async def add_member(self, project_id: str, data: ProjectMemberAdd) -> ProjectMember | None:
        project = self._require_project(project_id)
        self._require_permission(project, ProjectPermission.ADD_MEMBER)
        cached = self._members.get(project_id)
        if cached is not None and membership.find_member(cached, data.user_id) is not None:
            raise ValidationFailure("User is already a member of this project", field="user_id")

        added = await self.backend.add_project_member(
            self._token(), project_id, data.user_id, data.role
        )
        if cached is not None:
            if added is not None:
                self._members[project_id] = [*cached, added]
            else:
                # Shape unknown until the next listing
                self._members.pop(project_id, None)
        return added

    async def remove_member(self, project_id: str, user_id: str) -> None:
        project = self._require_project(project_id)
        self._require_permission(project, ProjectPermission.REMOVE_MEMBER)
        cached = self._members.get(project_id)
        remaining = membership.remove_member(cached, user_id) if cached is not None else None

        await self.backend.remove_project_member(self._token(), project_id, user_id)
        if remaining is not None:
            self._members[project_id] = remaining

    async def update_member_role(self, project_id: str, user_id: str, role: str) -> None:
        project = self._require_project(project_id)
        self._require_permission(project, ProjectPermission.UPDATE_MEMBER_ROLE)
        cached = self._members.get(project_id)
        if cached is not None:
            updated = membership.apply_role_update(cached, user_id, role)
        else:
            if str(role).upper() == ProjectRole.OWNER.value:
                raise ValidationFailure(
                    "Use ownership transfer to assign the owner role", field="role"
                )
            updated = None

        await self.backend.update_project_member_role(self._token(), project_id, user_id, role)
        if updated is not None:
            self._members[project_id] = updated

    async def transfer_ownership(self, project_id: str, new_owner_id: str) -> None:
        """Hand the project to another member; the caller becomes ADMIN."""
        project = self._require_project(project_id)
        if not has_minimum_role(project.role, ProjectRole.OWNER):
            raise AuthorizationError(
                "Only the project owner can transfer ownership", project_id=project_id
            )
        cached = self._members.get(project_id)
        transferred = (
            membership.transfer_ownership(cached, new_owner_id) if cached is not None else None
        )

        await self.backend.transfer_project_ownership(self._token(), project_id, new_owner_id)

        if transferred is not None:
            self._members[project_id] = transferred
        demoted = project.model_copy(update={"role": ProjectRole.ADMIN})
        self.projects = [demoted if p.id == project_id else p for p in self.projects]
        if self.current_project is not None and self.current_project.id == project_id:
            self.current_project = demoted

"""Role-based access control for workspaces and projects.

Two independent role namespaces are modelled as closed enums and their
grants as immutable lookup tables keyed by role. Every function here is
total: a missing or unknown role grants nothing and never raises.

Workspace roles: OWNER(3) > ADMIN(2) > MEMBER(1)
Project roles:   OWNER(4) > ADMIN(3) > EDITOR(2) > VIEWER(1)

Project permissions are evaluated from the caller's role on that exact
project; roles on a parent project are not inherited by its children.
"""

from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import TypeVar

from src.portal.models.enums import (
    ProjectPermission,
    ProjectRole,
    WorkspacePermission,
    WorkspaceRole,
)

RoleT = TypeVar("RoleT", WorkspaceRole, ProjectRole)
Permission = WorkspacePermission | ProjectPermission
Role = WorkspaceRole | ProjectRole

WORKSPACE_ROLE_PERMISSIONS: Mapping[WorkspaceRole, frozenset[WorkspacePermission]] = (
    MappingProxyType(
        {
            WorkspaceRole.OWNER: frozenset(WorkspacePermission),
            WorkspaceRole.ADMIN: frozenset(
                {
                    WorkspacePermission.UPDATE_WORKSPACE,
                    WorkspacePermission.INVITE_MEMBER,
                    WorkspacePermission.ACCESS_SETTINGS,
                    WorkspacePermission.VIEW_WORKSPACE,
                    WorkspacePermission.VIEW_MEMBERS,
                }
            ),
            WorkspaceRole.MEMBER: frozenset(
                {
                    WorkspacePermission.VIEW_WORKSPACE,
                    WorkspacePermission.VIEW_MEMBERS,
                }
            ),
        }
    )
)

PROJECT_ROLE_PERMISSIONS: Mapping[ProjectRole, frozenset[ProjectPermission]] = MappingProxyType(
    {
        ProjectRole.OWNER: frozenset(ProjectPermission),
        ProjectRole.ADMIN: frozenset(
            {
                ProjectPermission.UPDATE_PROJECT,
                ProjectPermission.CREATE_SUBPROJECT,
                ProjectPermission.ADD_MEMBER,
                ProjectPermission.REMOVE_MEMBER,
                ProjectPermission.UPDATE_MEMBER_ROLE,
                ProjectPermission.VIEW_PROJECT,
                ProjectPermission.VIEW_MEMBERS,
            }
        ),
        ProjectRole.EDITOR: frozenset(
            {
                ProjectPermission.CREATE_SUBPROJECT,
                ProjectPermission.VIEW_PROJECT,
                ProjectPermission.VIEW_MEMBERS,
            }
        ),
        ProjectRole.VIEWER: frozenset(
            {
                ProjectPermission.VIEW_PROJECT,
                ProjectPermission.VIEW_MEMBERS,
            }
        ),
    }
)

WORKSPACE_ROLE_HIERARCHY: Mapping[WorkspaceRole, int] = MappingProxyType(
    {
        WorkspaceRole.OWNER: 3,
        WorkspaceRole.ADMIN: 2,
        WorkspaceRole.MEMBER: 1,
    }
)

PROJECT_ROLE_HIERARCHY: Mapping[ProjectRole, int] = MappingProxyType(
    {
        ProjectRole.OWNER: 4,
        ProjectRole.ADMIN: 3,
        ProjectRole.EDITOR: 2,
        ProjectRole.VIEWER: 1,
    }
)


def coerce_workspace_role(role: WorkspaceRole | str | None) -> WorkspaceRole | None:
    """Coerce a backend role string into a WorkspaceRole (None if unknown)."""
    if role is None or isinstance(role, WorkspaceRole):
        return role
    try:
        return WorkspaceRole(str(role).upper())
    except ValueError:
        return None


def coerce_project_role(role: ProjectRole | str | None) -> ProjectRole | None:
    """Coerce a backend role string into a ProjectRole (None if unknown)."""
    if role is None or isinstance(role, ProjectRole):
        return role
    try:
        return ProjectRole(str(role).upper())
    except ValueError:
        return None


def _granted(role: Role | str | None, permission: Permission) -> frozenset[Permission]:
    # The permission's namespace decides which table a plain string role is read from
    if isinstance(permission, ProjectPermission):
        project_role = coerce_project_role(role if not isinstance(role, WorkspaceRole) else None)
        if project_role is None:
            return frozenset()
        return PROJECT_ROLE_PERMISSIONS[project_role]
    workspace_role = coerce_workspace_role(role if not isinstance(role, ProjectRole) else None)
    if workspace_role is None:
        return frozenset()
    return WORKSPACE_ROLE_PERMISSIONS[workspace_role]


def has_permission(role: Role | str | None, permission: Permission) -> bool:
    """Check if a role has a specific permission.

    Args:
        role: The caller's role (workspace or project namespace), or None.
        permission: The permission token to check.

    Returns:
        True if the role's granted set contains the permission.
    """
    if not role:
        return False
    return permission in _granted(role, permission)


def has_any_permission(role: Role | str | None, permissions: Iterable[Permission]) -> bool:
    """Check if a role has at least one of the given permissions."""
    if not role:
        return False
    return any(has_permission(role, permission) for permission in permissions)


def has_all_permissions(role: Role | str | None, permissions: Iterable[Permission]) -> bool:
    """Check if a role has every one of the given permissions."""
    if not role:
        return False
    return all(has_permission(role, permission) for permission in permissions)


def get_role_permissions(role: Role | None) -> frozenset[Permission]:
    """Get all permissions granted to a role (empty for None)."""
    if isinstance(role, WorkspaceRole):
        return WORKSPACE_ROLE_PERMISSIONS[role]
    if isinstance(role, ProjectRole):
        return PROJECT_ROLE_PERMISSIONS[role]
    return frozenset()


def has_minimum_role(
    role: RoleT | str | None,
    required_role: RoleT,
    hierarchy: Mapping[RoleT, int] | None = None,
) -> bool:
    """Check if ``role`` ranks at least as high as ``required_role``.

    Args:
        role: The caller's role, or None.
        required_role: The minimum role required.
        hierarchy: Rank table; inferred from ``required_role``'s type when omitted.

    Returns:
        rank(role) >= rank(required_role); False if role is None or unknown.
    """
    if not role:
        return False
    if hierarchy is None:
        hierarchy = (
            PROJECT_ROLE_HIERARCHY  # type: ignore[assignment]
            if isinstance(required_role, ProjectRole)
            else WORKSPACE_ROLE_HIERARCHY
        )
    if isinstance(required_role, ProjectRole):
        role = coerce_project_role(role)  # type: ignore[assignment]
    else:
        role = coerce_workspace_role(role)  # type: ignore[assignment]
    if role is None or role not in hierarchy or required_role not in hierarchy:
        return False
    return hierarchy[role] >= hierarchy[required_role]  # type: ignore[index]


def required_invite_permissions(role: WorkspaceRole) -> tuple[WorkspacePermission, ...]:
    """Permissions a caller needs to invite someone with ``role``."""
    if role == WorkspaceRole.MEMBER:
        return (WorkspacePermission.INVITE_MEMBER,)
    return (WorkspacePermission.INVITE_MEMBER, WorkspacePermission.INVITE_ADMIN)


# Named checks used by views and services


def can_delete_workspace(role: WorkspaceRole | None) -> bool:
    return has_permission(role, WorkspacePermission.DELETE_WORKSPACE)


def can_update_workspace(role: WorkspaceRole | None) -> bool:
    return has_permission(role, WorkspacePermission.UPDATE_WORKSPACE)


def can_access_settings(role: WorkspaceRole | None) -> bool:
    return has_permission(role, WorkspacePermission.ACCESS_SETTINGS)


def can_invite_members(role: WorkspaceRole | None) -> bool:
    return has_permission(role, WorkspacePermission.INVITE_MEMBER)


def can_invite_admins(role: WorkspaceRole | None) -> bool:
    return has_permission(role, WorkspacePermission.INVITE_ADMIN)


def can_remove_members(role: WorkspaceRole | None) -> bool:
    return has_permission(role, WorkspacePermission.REMOVE_MEMBER)


def can_update_member_roles(role: WorkspaceRole | None) -> bool:
    return has_permission(role, WorkspacePermission.UPDATE_MEMBER_ROLE)


def capabilities(role: WorkspaceRole | None) -> dict[str, bool]:
    """Flag map consumed by page view models to show/hide controls."""
    return {permission.value: has_permission(role, permission) for permission in WorkspacePermission}


def project_capabilities(role: ProjectRole | None) -> dict[str, bool]:
    """Per-project flag map, evaluated from that project's own role."""
    return {permission.value: has_permission(role, permission) for permission in ProjectPermission}

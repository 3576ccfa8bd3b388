"""Shared enums for roles, permissions and session state."""

from enum import Enum


class WorkspaceRole(str, Enum):
    """User role within a workspace (tenant)."""

    OWNER = "OWNER"
    ADMIN = "ADMIN"
    MEMBER = "MEMBER"


class ProjectRole(str, Enum):
    """User role on a single project node."""

    OWNER = "OWNER"
    ADMIN = "ADMIN"
    EDITOR = "EDITOR"
    VIEWER = "VIEWER"


class WorkspacePermission(str, Enum):
    """Capabilities checked against a workspace role."""

    # Workspace management
    UPDATE_WORKSPACE = "UPDATE_WORKSPACE"
    DELETE_WORKSPACE = "DELETE_WORKSPACE"

    # Member management
    INVITE_MEMBER = "INVITE_MEMBER"
    INVITE_ADMIN = "INVITE_ADMIN"
    REMOVE_MEMBER = "REMOVE_MEMBER"
    UPDATE_MEMBER_ROLE = "UPDATE_MEMBER_ROLE"

    # Settings access
    ACCESS_SETTINGS = "ACCESS_SETTINGS"

    # View operations
    VIEW_WORKSPACE = "VIEW_WORKSPACE"
    VIEW_MEMBERS = "VIEW_MEMBERS"


class ProjectPermission(str, Enum):
    """Capabilities checked against a project role."""

    UPDATE_PROJECT = "UPDATE_PROJECT"
    DELETE_PROJECT = "DELETE_PROJECT"
    CREATE_SUBPROJECT = "CREATE_SUBPROJECT"
    ADD_MEMBER = "ADD_MEMBER"
    REMOVE_MEMBER = "REMOVE_MEMBER"
    UPDATE_MEMBER_ROLE = "UPDATE_MEMBER_ROLE"
    VIEW_PROJECT = "VIEW_PROJECT"
    VIEW_MEMBERS = "VIEW_MEMBERS"


class SessionStatus(str, Enum):
    """Lifecycle state of the tenant/session context."""

    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    AUTHENTICATED_WITH_TENANT = "authenticated_with_tenant"
    AUTHENTICATED_NO_TENANT = "authenticated_no_tenant"
    UNAUTHENTICATED = "unauthenticated"

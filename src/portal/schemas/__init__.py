from src.portal.schemas.auth import CodeExchangeRequest, LoginResponse
from src.portal.schemas.common import BackendModel, RedirectTarget
from src.portal.schemas.project import (
    Project,
    ProjectCreate,
    ProjectMember,
    ProjectMemberAdd,
    ProjectMemberRoleUpdate,
    ProjectOwnershipTransfer,
    ProjectUpdate,
)
from src.portal.schemas.views import (
    ProjectListPage,
    ProjectNode,
    ProjectPage,
    SessionView,
    SettingsPage,
    TenantLink,
    UpdateWorkspaceResult,
    WorkspacePage,
)
from src.portal.schemas.workspace import (
    CreateWorkspaceResult,
    InviteCreateRequest,
    MemberRoleUpdate,
    OwnershipTransferRequest,
    Principal,
    Tenant,
    WorkspaceCreate,
    WorkspaceMember,
    WorkspaceUpdate,
)

__all__ = [
    # Auth
    "CodeExchangeRequest",
    "LoginResponse",
    # Common
    "BackendModel",
    "RedirectTarget",
    # Project
    "Project",
    "ProjectCreate",
    "ProjectMember",
    "ProjectMemberAdd",
    "ProjectMemberRoleUpdate",
    "ProjectOwnershipTransfer",
    "ProjectUpdate",
    # Views
    "ProjectListPage",
    "ProjectNode",
    "ProjectPage",
    "SessionView",
    "SettingsPage",
    "TenantLink",
    "UpdateWorkspaceResult",
    "WorkspacePage",
    # Workspace
    "CreateWorkspaceResult",
    "InviteCreateRequest",
    "MemberRoleUpdate",
    "OwnershipTransferRequest",
    "Principal",
    "Tenant",
    "WorkspaceCreate",
    "WorkspaceMember",
    "WorkspaceUpdate",
]

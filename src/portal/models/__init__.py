"""Model exports.

Import from here: `from src.portal.models import WorkspaceRole, ProjectRole`
"""

from src.portal.models.enums import (
    ProjectPermission,
    ProjectRole,
    SessionStatus,
    WorkspacePermission,
    WorkspaceRole,
)

__all__ = [
    "ProjectPermission",
    "ProjectRole",
    "SessionStatus",
    "WorkspacePermission",
    "WorkspaceRole",
]

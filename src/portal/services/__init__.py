from src.portal.services.session_context import SessionContext
from src.portal.services.project_context import ProjectContext
from src.portal.services.workspace_service import WorkspaceService

__all__ = ["ProjectContext", "SessionContext", "WorkspaceService"]

"""Service factory dependencies."""

from typing import Annotated

from fastapi import Depends

from src.portal.api.dependencies.session import AuthenticatedSession, Backend, SettingsDep
from src.portal.services.project_context import ProjectContext
from src.portal.services.workspace_service import WorkspaceService


def get_workspace_service(
    session: AuthenticatedSession,
    backend: Backend,
    settings: SettingsDep,
) -> WorkspaceService:
    """Get workspace service acting for the logged-in principal."""
    return WorkspaceService(session, backend, settings)


def get_project_context(session: AuthenticatedSession, backend: Backend) -> ProjectContext:
    """Get an (empty) project context; routes load what they need."""
    return ProjectContext(session, backend)


WorkspaceServiceDep = Annotated[WorkspaceService, Depends(get_workspace_service)]
ProjectContextDep = Annotated[ProjectContext, Depends(get_project_context)]

"""Session dependencies: settings, backend client, cookie store and context."""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, Request

from src.portal.clients.backend import BackendClient
from src.portal.core.config import Settings, get_settings
from src.portal.core.domains import root_url
from src.portal.core.exceptions import RedirectRequired
from src.portal.core.session_store import SessionStore
from src.portal.services.session_context import LOGIN_PATH, SessionContext

SettingsDep = Annotated[Settings, Depends(get_settings)]


def get_backend(request: Request) -> BackendClient:
    """The application-wide backend client created in the lifespan."""
    return request.app.state.backend


Backend = Annotated[BackendClient, Depends(get_backend)]


def get_session_store(request: Request, settings: SettingsDep) -> SessionStore:
    """The request's cookie store, installed by the session middleware."""
    store = getattr(request.state, "session_store", None)
    if store is None:
        store = SessionStore.from_request(request, settings)
        request.state.session_store = store
    return store


Store = Annotated[SessionStore, Depends(get_session_store)]


async def get_session_context(
    store: Store,
    backend: Backend,
    settings: SettingsDep,
) -> AsyncGenerator[SessionContext]:
    """Initialized session context; disposed when the request finishes."""
    context = SessionContext(store, backend, settings)
    await context.initialize()
    try:
        yield context
    finally:
        context.dispose()


CurrentSession = Annotated[SessionContext, Depends(get_session_context)]


async def get_authenticated_session(
    session: CurrentSession,
    settings: SettingsDep,
) -> SessionContext:
    """Session of a logged-in principal; anyone else is sent to the root login page."""
    if not session.is_authenticated:
        raise RedirectRequired(root_url(LOGIN_PATH, settings))
    return session


AuthenticatedSession = Annotated[SessionContext, Depends(get_authenticated_session)]

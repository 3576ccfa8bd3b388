"""Per-request cookie session store."""

from fastapi import Request, Response
from starlette.middleware.base import RequestResponseEndpoint

from src.portal.core.config import get_settings
from src.portal.core.session_store import SessionStore


async def session_cookie_middleware(
    request: Request, call_next: RequestResponseEndpoint
) -> Response:
    """Install the session store and write its cookie changes on every response.

    Redirects and handled errors pass through here too, so a login, tenant
    switch or forced logout always reaches the browser. An unhandled error
    propagates past the commit and the browser keeps its previous cookies.
    """
    store = SessionStore.from_request(request, get_settings())
    request.state.session_store = store
    response = await call_next(request)
    store.commit(response)
    return response

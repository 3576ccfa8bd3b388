"""Portal error taxonomy and exception handlers with request_id in responses."""

from typing import Any

from asgi_correlation_id import correlation_id
from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse, RedirectResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.portal.core.config import get_settings
from src.portal.core.domains import root_url
from src.portal.core.logging import get_logger

logger = get_logger(__name__)


class PortalError(Exception):
    """Base class for failures surfaced by the portal core."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, detail: str, **extra: Any) -> None:
        super().__init__(detail)
        self.detail = detail
        self.extra = extra


class AuthenticationError(PortalError):
    """Missing, expired or rejected credential."""

    status_code = status.HTTP_401_UNAUTHORIZED


class AuthorizationError(PortalError):
    """The caller's role lacks the permission for an action."""

    status_code = status.HTTP_403_FORBIDDEN


class TenantResolutionError(PortalError):
    """The requested subdomain is unknown or not accessible to the caller."""

    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, detail: str, slug: str | None = None) -> None:
        super().__init__(detail, slug=slug)
        self.slug = slug


class NotFoundError(PortalError):
    """A tenant-scoped resource (project, member) is unknown to the caller."""

    status_code = status.HTTP_404_NOT_FOUND


class DuplicateSubmissionError(PortalError):
    """A one-time token was already submitted and is still being processed."""

    status_code = status.HTTP_409_CONFLICT


class ValidationFailure(PortalError):
    """Input rejected before any network call was made."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY

    def __init__(self, detail: str, field: str | None = None) -> None:
        super().__init__(detail, field=field)
        self.field = field


class BackendError(PortalError):
    """Transient or unexpected failure from the backend API; safe to retry."""

    status_code = status.HTTP_502_BAD_GATEWAY

    def __init__(self, detail: str, upstream_status: int | None = None) -> None:
        super().__init__(detail, upstream_status=upstream_status)
        self.upstream_status = upstream_status


class RedirectRequired(Exception):
    """Raised to abort request handling with a redirect.

    The target may be a path on the current host or an absolute URL on
    another subdomain of the root domain.
    """

    def __init__(self, url: str) -> None:
        super().__init__(url)
        self.url = url


def _error_body(exc: PortalError) -> dict[str, Any]:
    body: dict[str, Any] = {
        "detail": exc.detail,
        "request_id": correlation_id.get(),
    }
    body.update({k: v for k, v in exc.extra.items() if v is not None})
    return body


def setup_exception_handlers(app: FastAPI) -> None:
    """Configure exception handlers that include request_id in responses."""

    @app.exception_handler(RedirectRequired)
    async def redirect_handler(request: Request, exc: RedirectRequired) -> Response:
        return RedirectResponse(exc.url, status_code=status.HTTP_303_SEE_OTHER)

    @app.exception_handler(AuthenticationError)
    async def authentication_handler(request: Request, exc: AuthenticationError) -> Response:
        # Never leave a partially authenticated session behind
        store = getattr(request.state, "session_store", None)
        if store is not None:
            store.clear()
        logger.info("Authentication required", path=request.url.path, reason=exc.detail)
        body = _error_body(exc)
        body["login_url"] = root_url("/login", get_settings())
        return JSONResponse(status_code=exc.status_code, content=body)

    @app.exception_handler(TenantResolutionError)
    async def tenant_resolution_handler(
        request: Request, exc: TenantResolutionError
    ) -> Response:
        logger.warning("Tenant not accessible", slug=exc.slug, path=request.url.path)
        return RedirectResponse(
            root_url("/select-workspace", get_settings()),
            status_code=status.HTTP_303_SEE_OTHER,
        )

    @app.exception_handler(BackendError)
    async def backend_error_handler(request: Request, exc: BackendError) -> Response:
        logger.warning(
            "Backend request failed",
            path=request.url.path,
            upstream_status=exc.upstream_status,
            error=exc.detail,
        )
        body = _error_body(exc)
        body["retryable"] = True
        return JSONResponse(status_code=exc.status_code, content=body)

    @app.exception_handler(PortalError)
    async def portal_error_handler(request: Request, exc: PortalError) -> Response:
        return JSONResponse(status_code=exc.status_code, content=_error_body(exc))

    @app.exception_handler(StarletteHTTPException)
    async def starlette_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "detail": exc.detail,
                "request_id": correlation_id.get(),
            },
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "detail": exc.detail,
                "request_id": correlation_id.get(),
            },
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        request_id = correlation_id.get()
        logger.exception(
            "Unhandled exception",
            exc_info=exc,
            request_id=request_id,
            path=request.url.path,
        )
        return JSONResponse(
            status_code=500,
            content={
                "detail": "Internal server error",
                "request_id": request_id,
            },
        )

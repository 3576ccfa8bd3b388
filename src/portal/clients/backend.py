"""HTTP client for the backend REST API.

One ``httpx.AsyncClient`` is created per application (see ``main.lifespan``)
and shared by every request. The bearer credential is passed per call
because it belongs to the browser session, not to the process.

Every failure is translated into the portal's error taxonomy:

- 401                      -> AuthenticationError (caller clears the session)
- 403                      -> AuthorizationError
- 404                      -> NotFoundError
- 400, 409, 422            -> ValidationFailure
- other non-2xx, transport -> BackendError (retryable)
"""

import time
from typing import Any
from urllib.parse import urlencode

import httpx
from pydantic import TypeAdapter, ValidationError

from src.portal.core.config import Settings
from src.portal.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    BackendError,
    NotFoundError,
    ValidationFailure,
)
from src.portal.core.logging import get_logger
from src.portal.schemas import (
    CreateWorkspaceResult,
    LoginResponse,
    Principal,
    Project,
    ProjectCreate,
    ProjectMember,
    ProjectUpdate,
    Tenant,
    WorkspaceMember,
)

logger = get_logger(__name__)

_tenant_list = TypeAdapter(list[Tenant])
_member_list = TypeAdapter(list[WorkspaceMember])
_project_list = TypeAdapter(list[Project])
_project_member_list = TypeAdapter(list[ProjectMember])


def _error_message(response: httpx.Response) -> str:
    """Best-effort human-readable message from an error response."""
    try:
        payload = response.json()
    except ValueError:
        return response.text.strip() or response.reason_phrase
    if isinstance(payload, dict):
        for key in ("message", "detail", "error"):
            value = payload.get(key)
            if isinstance(value, str) and value:
                return value
    return response.reason_phrase or f"HTTP {response.status_code}"


class BackendClient:
    """Typed access to the backend API endpoints used by the portal."""

    def __init__(self, http: httpx.AsyncClient, settings: Settings) -> None:
        self._http = http
        self._settings = settings

    @classmethod
    def create(
        cls,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "BackendClient":
        http = httpx.AsyncClient(
            base_url=settings.api_base_url,
            timeout=settings.api_timeout_seconds,
            headers={"Accept": "application/json"},
            transport=transport,
        )
        return cls(http, settings)

    async def aclose(self) -> None:
        await self._http.aclose()

    def login_url(self, redirect_uri: str) -> str:
        """Identity-provider authorization endpoint the browser is sent to."""
        base = self._settings.api_base_url.rstrip("/")
        query = urlencode({"redirect_uri": redirect_uri})
        return f"{base}/oauth2/authorization/{self._settings.identity_provider}?{query}"

    async def ping(self) -> None:
        """Raise ``httpx.HTTPError`` if the backend cannot be reached at all."""
        await self._http.get("/api/health")

    async def _request(
        self,
        method: str,
        path: str,
        *,
        token: str | None,
        json: Any = None,
        params: dict[str, str] | None = None,
        authenticated: bool = True,
    ) -> Any:
        if authenticated and not token:
            raise AuthenticationError("Not authenticated")

        headers = {"Authorization": f"Bearer {token}"} if token else None
        started = time.perf_counter()
        try:
            response = await self._http.request(
                method, path, json=json, params=params, headers=headers
            )
        except httpx.TimeoutException as e:
            logger.warning("Backend request timed out", method=method, path=path)
            raise BackendError("The server took too long to respond") from e
        except httpx.TransportError as e:
            logger.warning("Backend unreachable", method=method, path=path, error=str(e))
            raise BackendError("Could not reach the server") from e

        duration_ms = round((time.perf_counter() - started) * 1000, 1)
        logger.debug(
            "Backend request",
            method=method,
            path=path,
            status=response.status_code,
            duration_ms=duration_ms,
        )

        if response.is_success:
            if response.status_code == httpx.codes.NO_CONTENT or not response.content:
                return None
            try:
                return response.json()
            except ValueError as e:
                raise BackendError(
                    "Unexpected response from server", upstream_status=response.status_code
                ) from e

        message = _error_message(response)
        status_code = response.status_code
        if status_code == httpx.codes.UNAUTHORIZED:
            raise AuthenticationError(message)
        if status_code == httpx.codes.FORBIDDEN:
            raise AuthorizationError(message)
        if status_code == httpx.codes.NOT_FOUND:
            raise NotFoundError(message)
        if status_code in (
            httpx.codes.BAD_REQUEST,
            httpx.codes.CONFLICT,
            httpx.codes.UNPROCESSABLE_ENTITY,
        ):
            raise ValidationFailure(message)
        raise BackendError(message, upstream_status=status_code)

    @staticmethod
    def _parse(adapter_or_model: Any, payload: Any) -> Any:
        try:
            if isinstance(adapter_or_model, TypeAdapter):
                return adapter_or_model.validate_python(payload or [])
            return adapter_or_model.model_validate(payload)
        except ValidationError as e:
            logger.warning("Backend payload rejected", errors=e.error_count())
            raise BackendError("Unexpected response from server") from e

    # --- Auth ---

    async def exchange_code(self, code: str) -> LoginResponse:
        payload = await self._request(
            "POST",
            "/api/auth/oauth/callback",
            token=None,
            json={"code": code},
            authenticated=False,
        )
        return self._parse(LoginResponse, payload)

    async def get_principal(self, token: str) -> Principal:
        payload = await self._request("GET", "/api/auth/me", token=token)
        return self._parse(Principal, payload)

    async def logout(self, token: str) -> None:
        await self._request("POST", "/api/auth/logout", token=token)

    # --- Workspaces ---

    async def list_tenants(self, token: str) -> list[Tenant]:
        payload = await self._request("GET", "/api/workspaces", token=token)
        return self._parse(_tenant_list, payload)

    async def create_workspace(self, token: str, name: str) -> CreateWorkspaceResult:
        payload = await self._request("POST", "/api/workspaces", token=token, json={"name": name})
        # Older backends answer with the bare workspace record
        if isinstance(payload, dict) and "workspace" not in payload:
            payload = {"workspace": payload}
        return self._parse(CreateWorkspaceResult, payload)

    async def update_workspace(self, token: str, tenant_id: str, name: str, slug: str) -> Tenant:
        payload = await self._request(
            "PUT",
            f"/api/workspaces/{tenant_id}",
            token=token,
            json={"name": name, "slug": slug},
        )
        return self._parse(Tenant, payload)

    async def delete_workspace(self, token: str, tenant_id: str) -> None:
        await self._request("DELETE", f"/api/workspaces/{tenant_id}", token=token)

    async def invite_member(self, token: str, tenant_id: str, email: str, role: str) -> None:
        await self._request(
            "POST",
            f"/api/workspaces/{tenant_id}/invite",
            token=token,
            json={"email": email, "role": role},
        )

    async def accept_invite(self, token: str, invite_token: str) -> None:
        await self._request(
            "POST",
            "/api/workspaces/accept-invite",
            token=token,
            params={"token": invite_token},
        )

    async def list_members(self, token: str, tenant_id: str) -> list[WorkspaceMember]:
        payload = await self._request("GET", f"/api/workspaces/{tenant_id}/members", token=token)
        return self._parse(_member_list, payload)

    async def remove_member(self, token: str, tenant_id: str, user_id: str) -> None:
        await self._request(
            "DELETE", f"/api/workspaces/{tenant_id}/members/{user_id}", token=token
        )

    async def update_member_role(
        self, token: str, tenant_id: str, user_id: str, role: str
    ) -> None:
        await self._request(
            "PUT",
            f"/api/workspaces/{tenant_id}/members/{user_id}",
            token=token,
            json={"role": role},
        )

    async def transfer_ownership(self, token: str, tenant_id: str, new_owner_id: str) -> None:
        await self._request(
            "POST",
            f"/api/workspaces/{tenant_id}/transfer-ownership",
            token=token,
            json={"newOwnerId": new_owner_id},
        )

    # --- Projects ---

    async def list_projects(self, token: str, tenant_id: str) -> list[Project]:
        payload = await self._request("GET", f"/api/workspaces/{tenant_id}/projects", token=token)
        return self._parse(_project_list, payload)

    async def create_project(self, token: str, tenant_id: str, data: ProjectCreate) -> Project:
        payload = await self._request(
            "POST",
            f"/api/workspaces/{tenant_id}/projects",
            token=token,
            json=data.to_backend(),
        )
        return self._parse(Project, payload)

    async def update_project(self, token: str, project_id: str, data: ProjectUpdate) -> Project:
        payload = await self._request(
            "PUT", f"/api/projects/{project_id}", token=token, json=data.to_backend()
        )
        return self._parse(Project, payload)

    async def delete_project(self, token: str, project_id: str) -> None:
        await self._request("DELETE", f"/api/projects/{project_id}", token=token)

    async def list_project_members(self, token: str, project_id: str) -> list[ProjectMember]:
        payload = await self._request("GET", f"/api/projects/{project_id}/members", token=token)
        return self._parse(_project_member_list, payload)

    async def add_project_member(
        self, token: str, project_id: str, user_id: str, role: str
    ) -> ProjectMember | None:
        payload = await self._request(
            "POST",
            f"/api/projects/{project_id}/members",
            token=token,
            json={"userId": user_id, "role": role},
        )
        return self._parse(ProjectMember, payload) if payload else None

    async def update_project_member_role(
        self, token: str, project_id: str, user_id: str, role: str
    ) -> None:
        await self._request(
            "PUT",
            f"/api/projects/{project_id}/members/{user_id}",
            token=token,
            json={"role": role},
        )

    async def remove_project_member(self, token: str, project_id: str, user_id: str) -> None:
        await self._request(
            "DELETE", f"/api/projects/{project_id}/members/{user_id}", token=token
        )

    async def transfer_project_ownership(
        self, token: str, project_id: str, new_owner_id: str
    ) -> None:
        await self._request(
            "POST",
            f"/api/projects/{project_id}/transfer-ownership",
            token=token,
            json={"newOwnerId": new_owner_id},
        )

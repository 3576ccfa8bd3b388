"""Test helpers: an in-memory stand-in for the backend API client, and HTTP helpers."""

from collections import Counter

import httpx

from src.portal.core.config import get_settings
from src.portal.core.exceptions import AuthenticationError, NotFoundError, PortalError
from src.portal.models.enums import ProjectRole, WorkspaceRole
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
from tests.factories import PrincipalFactory, ProjectMemberFactory

VALID_TOKEN = "valid-token"


class FakeBackend:
    """Implements the BackendClient surface over plain lists.

    Every call is counted in ``calls``. ``fail(name, error)`` makes the named
    method raise ``error`` (once, unless ``sticky``) before touching state.
    """

    def __init__(
        self,
        principal: Principal | None = None,
        tenants: list[Tenant] | None = None,
    ) -> None:
        self.principal = principal or PrincipalFactory.build()
        self.tenants: list[Tenant] = list(tenants or [])
        self.members: dict[str, list[WorkspaceMember]] = {}
        self.projects: dict[str, list[Project]] = {}
        self.project_members: dict[str, list[ProjectMember]] = {}
        self.invitations: dict[str, Tenant] = {}
        self.valid_tokens = {VALID_TOKEN}
        self.issued_token = VALID_TOKEN
        self.login_redirect_url: str | None = None
        self.ping_error: Exception | None = None
        self.calls: Counter[str] = Counter()
        self.invited: list[tuple[str, str, str]] = []
        self._failures: dict[str, tuple[PortalError, bool]] = {}
        self._next_id = 0

    # --- Test controls ---

    def fail(self, name: str, error: PortalError, sticky: bool = False) -> None:
        self._failures[name] = (error, sticky)

    def _enter(self, name: str, token: str | None = None, authenticated: bool = True) -> None:
        self.calls[name] += 1
        failure = self._failures.get(name)
        if failure is not None:
            error, sticky = failure
            if not sticky:
                del self._failures[name]
            raise error
        if authenticated and token not in self.valid_tokens:
            raise AuthenticationError("Invalid or expired token")

    def _new_id(self, prefix: str) -> str:
        self._next_id += 1
        return f"{prefix}-{self._next_id}"

    def _tenant(self, tenant_id: str) -> Tenant:
        for tenant in self.tenants:
            if tenant.id == tenant_id:
                return tenant
        raise NotFoundError("Workspace not found")

    def _project(self, project_id: str) -> tuple[str, Project]:
        for tenant_id, projects in self.projects.items():
            for project in projects:
                if project.id == project_id:
                    return tenant_id, project
        raise NotFoundError("Project not found")

    # --- Client surface ---

    async def aclose(self) -> None:
        return None

    def login_url(self, redirect_uri: str) -> str:
        return f"http://backend.test/oauth2/authorization/google?redirect_uri={redirect_uri}"

    async def ping(self) -> None:
        self.calls["ping"] += 1
        if self.ping_error is not None:
            raise self.ping_error

    async def exchange_code(self, code: str) -> LoginResponse:
        self._enter("exchange_code", authenticated=False)
        self.valid_tokens.add(self.issued_token)
        return LoginResponse(
            access_token=self.issued_token,
            user=self.principal,
            workspaces=list(self.tenants),
            redirect_url=self.login_redirect_url,
        )

    async def get_principal(self, token: str) -> Principal:
        self._enter("get_principal", token)
        return self.principal

    async def logout(self, token: str) -> None:
        self._enter("logout", token)
        self.valid_tokens.discard(token)

    async def list_tenants(self, token: str) -> list[Tenant]:
        self._enter("list_tenants", token)
        return list(self.tenants)

    async def create_workspace(self, token: str, name: str) -> CreateWorkspaceResult:
        self._enter("create_workspace", token)
        tenant = Tenant(
            id=self._new_id("ws"),
            name=name,
            slug=name.lower().replace(" ", "-"),
            role=WorkspaceRole.OWNER,
        )
        self.tenants.append(tenant)
        return CreateWorkspaceResult(workspace=tenant)

    async def update_workspace(self, token: str, tenant_id: str, name: str, slug: str) -> Tenant:
        self._enter("update_workspace", token)
        current = self._tenant(tenant_id)
        updated = current.model_copy(update={"name": name, "slug": slug})
        self.tenants = [updated if t.id == tenant_id else t for t in self.tenants]
        return updated

    async def delete_workspace(self, token: str, tenant_id: str) -> None:
        self._enter("delete_workspace", token)
        self._tenant(tenant_id)
        self.tenants = [t for t in self.tenants if t.id != tenant_id]

    async def invite_member(self, token: str, tenant_id: str, email: str, role: str) -> None:
        self._enter("invite_member", token)
        self.invited.append((tenant_id, email, role))

    async def accept_invite(self, token: str, invite_token: str) -> None:
        self._enter("accept_invite", token)
        tenant = self.invitations.pop(invite_token, None)
        if tenant is None:
            raise NotFoundError("Invitation not found")
        self.tenants.append(tenant)

    async def list_members(self, token: str, tenant_id: str) -> list[WorkspaceMember]:
        self._enter("list_members", token)
        return list(self.members.get(tenant_id, []))

    async def remove_member(self, token: str, tenant_id: str, user_id: str) -> None:
        self._enter("remove_member", token)
        self.members[tenant_id] = [m for m in self.members.get(tenant_id, []) if m.id != user_id]

    async def update_member_role(
        self, token: str, tenant_id: str, user_id: str, role: str
    ) -> None:
        self._enter("update_member_role", token)

    async def transfer_ownership(self, token: str, tenant_id: str, new_owner_id: str) -> None:
        self._enter("transfer_ownership", token)

    async def list_projects(self, token: str, tenant_id: str) -> list[Project]:
        self._enter("list_projects", token)
        return list(self.projects.get(tenant_id, []))

    async def create_project(self, token: str, tenant_id: str, data: ProjectCreate) -> Project:
        self._enter("create_project", token)
        # Minimal create response; the context fills in role and parent
        project = Project(id=self._new_id("p"), name=data.name, color=data.color)
        stored = project.model_copy(
            update={"parent_id": data.parent_id, "role": ProjectRole.OWNER}
        )
        self.projects.setdefault(tenant_id, []).append(stored)
        return project

    async def update_project(self, token: str, project_id: str, data: ProjectUpdate) -> Project:
        self._enter("update_project", token)
        tenant_id, project = self._project(project_id)
        updated = project.model_copy(update=data.model_dump(exclude_none=True))
        self.projects[tenant_id] = [
            updated if p.id == project_id else p for p in self.projects[tenant_id]
        ]
        return updated

    async def delete_project(self, token: str, project_id: str) -> None:
        self._enter("delete_project", token)
        tenant_id, _ = self._project(project_id)
        self.projects[tenant_id] = [p for p in self.projects[tenant_id] if p.id != project_id]

    async def list_project_members(self, token: str, project_id: str) -> list[ProjectMember]:
        self._enter("list_project_members", token)
        return list(self.project_members.get(project_id, []))

    async def add_project_member(
        self, token: str, project_id: str, user_id: str, role: str
    ) -> ProjectMember | None:
        self._enter("add_project_member", token)
        member = ProjectMemberFactory.build(user_id=user_id, role=ProjectRole(role))
        self.project_members.setdefault(project_id, []).append(member)
        return member

    async def update_project_member_role(
        self, token: str, project_id: str, user_id: str, role: str
    ) -> None:
        self._enter("update_project_member_role", token)

    async def remove_project_member(self, token: str, project_id: str, user_id: str) -> None:
        self._enter("remove_project_member", token)

    async def transfer_project_ownership(
        self, token: str, project_id: str, new_owner_id: str
    ) -> None:
        self._enter("transfer_project_ownership", token)


# --- HTTP helpers ---

ROOT = "https://example.com"


def tenant_host(slug: str) -> str:
    return f"https://{slug}.example.com"


def session_cookies(token: str | None = VALID_TOKEN, tenant_id: str | None = None) -> dict[str, str]:
    """Cookie header a browser would send after logging in."""
    settings = get_settings()
    pairs = []
    if token:
        pairs.append(f"{settings.session_cookie_name}={token}")
    if tenant_id:
        pairs.append(f"{settings.active_tenant_cookie_name}={tenant_id}")
    return {"cookie": "; ".join(pairs)}


def set_cookies(response: httpx.Response) -> list[str]:
    return response.headers.get_list("set-cookie")

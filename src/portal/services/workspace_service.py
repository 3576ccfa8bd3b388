"""Workspace lifecycle, invitations and membership administration."""

from src.portal.clients.backend import BackendClient
from src.portal.core.config import Settings
from src.portal.core.domains import root_url, tenant_url, tenant_url_for_slug_change
from src.portal.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    BackendError,
    DuplicateSubmissionError,
    PortalError,
    ValidationFailure,
)
from src.portal.core.logging import get_logger
from src.portal.core.one_shot import OneShotGuard
from src.portal.core.permissions import (
    has_all_permissions,
    has_minimum_role,
    has_permission,
    required_invite_permissions,
)
from src.portal.core.validators import normalize_email, validate_workspace_slug
from src.portal.models.enums import WorkspacePermission, WorkspaceRole
from src.portal.schemas import (
    CreateWorkspaceResult,
    RedirectTarget,
    Tenant,
    WorkspaceMember,
)
from src.portal.services import membership
from src.portal.services.session_context import (
    NEW_WORKSPACE_PATH,
    SELECT_WORKSPACE_PATH,
    SessionContext,
)

logger = get_logger(__name__)

DASHBOARD_PATH = "/dashboard"


class WorkspaceService:
    """Workspace operations performed on behalf of the session's principal.

    Every operation checks the caller's role locally first. The backend
    enforces the same rules; the local check only avoids a pointless call
    and gives a clearer error.
    """

    def __init__(
        self,
        session: SessionContext,
        backend: BackendClient,
        settings: Settings,
        invite_guard: OneShotGuard | None = None,
    ):
        self.session = session
        self.backend = backend
        self.settings = settings
        self.invite_guard = invite_guard or OneShotGuard("invite_token")
        self._members: dict[str, list[WorkspaceMember]] = {}

    def _token(self) -> str:
        token = self.session.credential
        if not token:
            raise AuthenticationError("Not authenticated")
        return token

    def _tenant(self, tenant: Tenant | None) -> Tenant:
        tenant = tenant or self.session.active_tenant
        if tenant is None:
            raise ValidationFailure("No active workspace")
        return tenant

    @staticmethod
    def _require(tenant: Tenant, permission: WorkspacePermission) -> None:
        if not has_permission(tenant.role, permission):
            raise AuthorizationError(
                "You don't have permission to do that in this workspace",
                permission=permission.value,
            )

    async def create_workspace(self, name: str) -> CreateWorkspaceResult:
        """Create a workspace, refresh memberships and make it active.

        The three steps run strictly in order: each needs the previous one's
        result.
        """
        name = name.strip() if name else ""
        if not name:
            raise ValidationFailure("Please enter a workspace name", field="name")

        result = await self.backend.create_workspace(self._token(), name)
        await self.session.refresh_tenants()
        created = self.session.find_tenant(tenant_id=result.workspace.id)
        if created is None:
            # Not listed yet; the creator is its owner
            created = result.workspace.model_copy(update={"role": WorkspaceRole.OWNER})
        else:
            self.session.set_active_tenant(created)

        logger.info("Workspace created", tenant_id=created.id, slug=created.slug)
        return CreateWorkspaceResult(
            workspace=created,
            redirect_url=tenant_url(created.slug, DASHBOARD_PATH, self.settings),
        )

    async def update_workspace(
        self,
        name: str,
        slug: str,
        current_path: str = DASHBOARD_PATH,
        tenant: Tenant | None = None,
    ) -> tuple[Tenant, str | None]:
        """Rename the workspace and/or change its slug.

        Returns:
            The updated tenant, and the URL to navigate to when the slug
            changed (the same page on the new subdomain), else None.
        """
        tenant = self._tenant(tenant)
        self._require(tenant, WorkspacePermission.UPDATE_WORKSPACE)
        name = (name or "").strip()
        if not name:
            raise ValidationFailure("Workspace name is required", field="name")
        try:
            slug = validate_workspace_slug(slug or "")
        except ValueError as e:
            raise ValidationFailure(str(e), field="slug") from e

        updated = await self.backend.update_workspace(self._token(), tenant.id, name, slug)
        if updated.role is None:
            updated = updated.model_copy(update={"role": tenant.role})
        await self.session.refresh_tenants()

        if updated.slug != tenant.slug:
            logger.info("Workspace slug changed", tenant_id=tenant.id, old=tenant.slug, new=updated.slug)
            return updated, tenant_url_for_slug_change(updated.slug, current_path, self.settings)
        return updated, None

    async def delete_workspace(self, tenant: Tenant | None = None) -> RedirectTarget:
        """Delete the workspace (owner only) and pick where to go next."""
        tenant = self._tenant(tenant)
        self._require(tenant, WorkspacePermission.DELETE_WORKSPACE)

        await self.backend.delete_workspace(self._token(), tenant.id)
        self._members.pop(tenant.id, None)
        logger.info("Workspace deleted", tenant_id=tenant.id)

        remaining = await self.session.refresh_tenants()
        path = NEW_WORKSPACE_PATH if not remaining else SELECT_WORKSPACE_PATH
        return RedirectTarget(redirect_url=root_url(path, self.settings))

    # --- Invitations ---

    async def invite_member(
        self, email: str, role: str = WorkspaceRole.MEMBER.value, tenant: Tenant | None = None
    ) -> None:
        """Invite ``email`` with ``role``; inviting an ADMIN needs invite-admin too."""
        tenant = self._tenant(tenant)
        email = normalize_email(email or "")
        if not email:
            raise ValidationFailure("Email is required", field="email")
        local, _, domain = email.partition("@")
        if not local or "." not in domain or domain.startswith(".") or domain.endswith("."):
            raise ValidationFailure("Please enter a valid email address", field="email")
        role = str(role).upper()
        if role not in (WorkspaceRole.ADMIN.value, WorkspaceRole.MEMBER.value):
            raise ValidationFailure("Role must be ADMIN or MEMBER", field="role")

        needed = required_invite_permissions(WorkspaceRole(role))
        if not has_all_permissions(tenant.role, needed):
            raise AuthorizationError(
                "You don't have permission to invite with this role", role=role
            )

        await self.backend.invite_member(self._token(), tenant.id, email, role)
        logger.info("Member invited", tenant_id=tenant.id, role=role)

    async def accept_invite(self, invite_token: str) -> RedirectTarget:
        """Consume an invitation exactly once, then go pick a workspace."""
        if not invite_token:
            raise ValidationFailure("Missing invitation token", field="token")
        token = self._token()
        if not await self.invite_guard.claim(invite_token):
            raise DuplicateSubmissionError("Invitation already being accepted")

        try:
            await self.backend.accept_invite(token, invite_token)
        except PortalError as e:
            if isinstance(e, BackendError) and e.upstream_status is None:
                # Never reached the backend; the invitation is still unused
                await self.invite_guard.release(invite_token)
            logger.warning("Invitation acceptance failed", error=e.detail)
            raise
        await self.session.refresh_tenants()
        logger.info("Invitation accepted")
        return RedirectTarget(redirect_url=root_url(SELECT_WORKSPACE_PATH, self.settings))

    # --- Members ---

    async def list_members(self, tenant: Tenant | None = None) -> list[WorkspaceMember]:
        tenant = self._tenant(tenant)
        self._require(tenant, WorkspacePermission.VIEW_MEMBERS)
        members = await self.backend.list_members(self._token(), tenant.id)
        self._members[tenant.id] = list(members)
        return list(members)

    async def _cached_members(self, tenant: Tenant) -> list[WorkspaceMember]:
        cached = self._members.get(tenant.id)
        if cached is None:
            cached = await self.list_members(tenant)
        return cached

    async def remove_member(self, user_id: str, tenant: Tenant | None = None) -> None:
        tenant = self._tenant(tenant)
        self._require(tenant, WorkspacePermission.REMOVE_MEMBER)
        remaining = membership.remove_member(await self._cached_members(tenant), user_id)

        await self.backend.remove_member(self._token(), tenant.id, user_id)
        self._members[tenant.id] = remaining

    async def update_member_role(
        self, user_id: str, role: str, tenant: Tenant | None = None
    ) -> None:
        tenant = self._tenant(tenant)
        self._require(tenant, WorkspacePermission.UPDATE_MEMBER_ROLE)
        updated = membership.apply_role_update(await self._cached_members(tenant), user_id, role)

        await self.backend.update_member_role(self._token(), tenant.id, user_id, str(role).upper())
        self._members[tenant.id] = updated

    async def transfer_ownership(
        self,
        new_owner_id: str,
        confirmation_email: str,
        tenant: Tenant | None = None,
    ) -> None:
        """Make another member the owner; the caller is demoted to ADMIN.

        The new owner's email must be typed back exactly. Every check runs
        before the backend is called.
        """
        tenant = self._tenant(tenant)
        if not has_minimum_role(tenant.role, WorkspaceRole.OWNER):
            raise AuthorizationError("Only the workspace owner can transfer ownership")

        members = await self._cached_members(tenant)
        new_owner = membership.find_member(members, new_owner_id)
        if new_owner is None:
            raise ValidationFailure("User is not a member", field="new_owner_id")
        if (confirmation_email or "").strip().lower() != new_owner.email.lower():
            raise ValidationFailure(
                "Confirmation email does not match the new owner's email",
                field="confirmation_email",
            )
        transferred = membership.transfer_ownership(members, new_owner_id)

        await self.backend.transfer_ownership(self._token(), tenant.id, new_owner_id)
        self._members[tenant.id] = transferred
        logger.info("Workspace ownership transferred", tenant_id=tenant.id)
        await self.session.refresh_tenants()

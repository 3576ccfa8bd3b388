"""Principal, tenant and workspace member factories."""

from polyfactory import Use

from src.portal.models.enums import WorkspaceRole
from src.portal.schemas import Principal, Tenant, WorkspaceMember
from tests.factories.base import BaseFactory, generate_id, short_suffix, utc_now


class PrincipalFactory(BaseFactory):
    """Factory for the logged-in user."""

    __model__ = Principal

    id = Use(generate_id)
    email = Use(lambda: f"user-{short_suffix()}@example.org")
    name = Use(lambda: f"Test User {short_suffix()}")
    profile_picture = None


class TenantFactory(BaseFactory):
    """Factory for a workspace membership as listed by the backend."""

    __model__ = Tenant

    id = Use(generate_id)
    name = Use(lambda: f"Test Workspace {short_suffix()}")
    slug = Use(lambda: f"ws-{short_suffix()}")
    role = WorkspaceRole.MEMBER
    created_at = Use(utc_now)

    @classmethod
    def owner(cls, **kwargs):
        """Create a tenant the principal owns."""
        return cls.build(role=WorkspaceRole.OWNER, **kwargs)

    @classmethod
    def admin(cls, **kwargs):
        return cls.build(role=WorkspaceRole.ADMIN, **kwargs)

    @classmethod
    def member(cls, **kwargs):
        return cls.build(role=WorkspaceRole.MEMBER, **kwargs)


class WorkspaceMemberFactory(BaseFactory):
    """Factory for rows of a workspace's member list."""

    __model__ = WorkspaceMember

    id = Use(generate_id)
    email = Use(lambda: f"member-{short_suffix()}@example.org")
    full_name = Use(lambda: f"Member {short_suffix()}")
    avatar_url = None
    role = WorkspaceRole.MEMBER
    joined_at = Use(utc_now)

    @classmethod
    def owner(cls, **kwargs):
        return cls.build(role=WorkspaceRole.OWNER, **kwargs)

    @classmethod
    def admin(cls, **kwargs):
        return cls.build(role=WorkspaceRole.ADMIN, **kwargs)

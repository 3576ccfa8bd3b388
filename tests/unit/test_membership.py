"""Tests for single-owner membership rules."""

import pytest

from src.portal.core.exceptions import ValidationFailure
from src.portal.models.enums import ProjectRole, WorkspaceRole
from src.portal.services import membership
from tests.factories import ProjectMemberFactory, WorkspaceMemberFactory

pytestmark = pytest.mark.unit


@pytest.fixture
def team():
    """Owner, admin and member of one workspace."""
    return [
        WorkspaceMemberFactory.owner(id="u-owner"),
        WorkspaceMemberFactory.admin(id="u-admin"),
        WorkspaceMemberFactory.build(id="u-member"),
    ]


def roles(members) -> dict[str, str]:
    return {membership.member_id(m): m.role.value for m in members}


class TestTransferOwnership:
    def test_swaps_owner_and_demotes_previous(self, team):
        """The new owner gains OWNER and the old owner becomes ADMIN, together."""
        result = membership.transfer_ownership(team, "u-member")

        assert roles(result) == {"u-owner": "ADMIN", "u-admin": "ADMIN", "u-member": "OWNER"}
        assert membership.count_owners(result) == 1

    def test_input_untouched(self, team):
        before = roles(team)
        membership.transfer_ownership(team, "u-admin")
        assert roles(team) == before

    def test_unknown_target(self, team):
        with pytest.raises(ValidationFailure) as exc_info:
            membership.transfer_ownership(team, "u-stranger")
        assert exc_info.value.field == "user_id"

    def test_owner_to_self_rejected(self, team):
        with pytest.raises(ValidationFailure):
            membership.transfer_ownership(team, "u-owner")

    def test_requires_exactly_one_owner(self, team):
        """A list without a single owner is corrupt; nothing is changed."""
        no_owner = [m for m in team if m.role != WorkspaceRole.OWNER]
        with pytest.raises(ValidationFailure):
            membership.transfer_ownership(no_owner, "u-member")

    def test_project_members_keyed_by_user_id(self):
        members = [
            ProjectMemberFactory.owner(user_id="p-owner"),
            ProjectMemberFactory.build(user_id="p-viewer"),
        ]
        result = membership.transfer_ownership(members, "p-viewer")
        assert roles(result) == {"p-owner": "ADMIN", "p-viewer": "OWNER"}
        assert all(isinstance(m.role, ProjectRole) for m in result)


class TestRoleUpdate:
    def test_changes_only_target(self, team):
        result = membership.apply_role_update(team, "u-member", "admin")
        assert roles(result) == {"u-owner": "OWNER", "u-admin": "ADMIN", "u-member": "ADMIN"}

    def test_cannot_assign_owner(self, team):
        """OWNER only moves through ownership transfer."""
        with pytest.raises(ValidationFailure) as exc_info:
            membership.apply_role_update(team, "u-member", "OWNER")
        assert exc_info.value.field == "role"

    def test_cannot_change_owner(self, team):
        with pytest.raises(ValidationFailure):
            membership.apply_role_update(team, "u-owner", "MEMBER")

    def test_unknown_role(self, team):
        with pytest.raises(ValidationFailure):
            membership.apply_role_update(team, "u-member", "EDITOR")


class TestRemoveMember:
    def test_removes_non_owner(self, team):
        result = membership.remove_member(team, "u-admin")
        assert [membership.member_id(m) for m in result] == ["u-owner", "u-member"]

    def test_owner_cannot_be_removed(self, team):
        with pytest.raises(ValidationFailure):
            membership.remove_member(team, "u-owner")

    def test_unknown_member(self, team):
        with pytest.raises(ValidationFailure):
            membership.remove_member(team, "nobody")


def test_ensure_single_owner(team):
    membership.ensure_single_owner(team)
    two_owners = [*team, WorkspaceMemberFactory.owner()]
    with pytest.raises(ValidationFailure):
        membership.ensure_single_owner(two_owners)


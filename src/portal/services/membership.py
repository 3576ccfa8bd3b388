"""Single-owner membership rules shared by workspaces and projects.

These are pure functions over member lists. They never mutate their input:
a successful call returns a new list, a rejected one raises
:class:`ValidationFailure` and the caller's list is unchanged. Services run
them against the cached member list *before* calling the backend, and then
again to apply the backend's success locally.
"""

from collections.abc import Sequence
from typing import TypeVar

from src.portal.core.exceptions import ValidationFailure
from src.portal.schemas import ProjectMember, WorkspaceMember

MemberT = TypeVar("MemberT", WorkspaceMember, ProjectMember)

OWNER = "OWNER"


def member_id(member: WorkspaceMember | ProjectMember) -> str:
    if isinstance(member, ProjectMember):
        return member.user_id
    return member.id


def count_owners(members: Sequence[WorkspaceMember | ProjectMember]) -> int:
    return sum(1 for member in members if member.role == OWNER)


def ensure_single_owner(members: Sequence[WorkspaceMember | ProjectMember]) -> None:
    """Raise unless exactly one member holds OWNER."""
    owners = count_owners(members)
    if owners != 1:
        raise ValidationFailure(f"Expected exactly one owner, found {owners}")


def find_member(members: Sequence[MemberT], user_id: str) -> MemberT | None:
    for member in members:
        if member_id(member) == user_id:
            return member
    return None


def _require_member(members: Sequence[MemberT], user_id: str) -> MemberT:
    member = find_member(members, user_id)
    if member is None:
        raise ValidationFailure("User is not a member", field="user_id")
    return member


def transfer_ownership(members: Sequence[MemberT], new_owner_id: str) -> list[MemberT]:
    """Swap OWNER to ``new_owner_id``; the previous owner becomes ADMIN.

    Both role changes happen in the returned list or neither does.
    """
    ensure_single_owner(members)
    new_owner = _require_member(members, new_owner_id)
    if new_owner.role == OWNER:
        raise ValidationFailure("User is already the owner", field="new_owner_id")

    role_type = type(new_owner.role)
    result: list[MemberT] = []
    for member in members:
        if member.role == OWNER:
            member = member.model_copy(update={"role": role_type("ADMIN")})
        elif member_id(member) == new_owner_id:
            member = member.model_copy(update={"role": role_type(OWNER)})
        result.append(member)

    ensure_single_owner(result)
    return result


def apply_role_update(members: Sequence[MemberT], user_id: str, role: str) -> list[MemberT]:
    """Change a non-owner's role. OWNER can only move via ownership transfer."""
    if str(role).upper() == OWNER:
        raise ValidationFailure("Use ownership transfer to assign the owner role", field="role")
    target = _require_member(members, user_id)
    if target.role == OWNER:
        raise ValidationFailure("The owner's role cannot be changed", field="user_id")

    try:
        new_role = type(target.role)(str(role).upper())
    except ValueError as e:
        raise ValidationFailure(f"Unknown role: {role}", field="role") from e
    return [
        member.model_copy(update={"role": new_role}) if member_id(member) == user_id else member
        for member in members
    ]


def remove_member(members: Sequence[MemberT], user_id: str) -> list[MemberT]:
    """Drop a member; the owner cannot be removed."""
    target = _require_member(members, user_id)
    if target.role == OWNER:
        raise ValidationFailure("The owner cannot be removed", field="user_id")
    return [member for member in members if member_id(member) != user_id]

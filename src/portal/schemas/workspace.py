"""Workspace (tenant) and membership schemas."""

from datetime import datetime
from typing import Literal

from pydantic import AliasChoices, BaseModel, EmailStr, Field, field_validator

from src.portal.core.validators import (
    MAX_SUBDOMAIN_LABEL_LENGTH,
    normalize_email,
    validate_workspace_slug,
)
from src.portal.models.enums import WorkspaceRole
from src.portal.schemas.common import BackendModel


class Principal(BackendModel):
    """The authenticated user as reported by the backend."""

    id: str
    email: str
    name: str | None = Field(
        default=None, validation_alias=AliasChoices("name", "fullName", "full_name")
    )
    profile_picture: str | None = Field(
        default=None,
        validation_alias=AliasChoices("profilePicture", "avatarUrl", "profile_picture"),
    )


class Tenant(BackendModel):
    """A workspace the principal belongs to, with the principal's role in it."""

    id: str
    name: str
    slug: str
    role: WorkspaceRole | None = None
    created_at: datetime | None = None

    @field_validator("role", mode="before")
    @classmethod
    def normalize_role(cls, v: object) -> object:
        # The backend reports "UNKNOWN" when it cannot find the membership row
        if isinstance(v, str):
            v = v.upper()
            if v not in WorkspaceRole.__members__:
                return None
        return v


class WorkspaceMember(BackendModel):
    """A membership row in a workspace's member list."""

    id: str
    email: str
    full_name: str | None = None
    avatar_url: str | None = None
    role: WorkspaceRole
    joined_at: datetime | None = None


class CreateWorkspaceResult(BackendModel):
    workspace: Tenant
    redirect_url: str | None = None


# --- Portal request bodies ---


class WorkspaceCreate(BaseModel):
    """Schema for creating a workspace."""

    name: str = Field(min_length=1, max_length=100)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Workspace name cannot be empty or whitespace only")
        return v


class WorkspaceUpdate(BaseModel):
    """Schema for renaming a workspace or changing its slug."""

    name: str = Field(min_length=1, max_length=100)
    slug: str = Field(
        min_length=1,
        max_length=MAX_SUBDOMAIN_LABEL_LENGTH,
        json_schema_extra={
            "examples": ["acme", "acme-corp"],
            "description": "Lowercase letters, numbers and hyphens. Used as the subdomain.",
        },
    )

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Workspace name is required")
        return v

    @field_validator("slug")
    @classmethod
    def validate_slug(cls, v: str) -> str:
        return validate_workspace_slug(v)


class InviteCreateRequest(BaseModel):
    """Request to invite someone into the active workspace."""

    email: EmailStr
    role: Literal["ADMIN", "MEMBER"] = "MEMBER"

    @field_validator("role", mode="before")
    @classmethod
    def upper_role(cls, v: object) -> object:
        return v.upper() if isinstance(v, str) else v

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return normalize_email(v)


class MemberRoleUpdate(BaseModel):
    role: Literal["ADMIN", "MEMBER"]

    @field_validator("role", mode="before")
    @classmethod
    def upper_role(cls, v: object) -> object:
        return v.upper() if isinstance(v, str) else v


class OwnershipTransferRequest(BaseModel):
    """Ownership transfer; the new owner's email must be typed back as confirmation."""

    new_owner_id: str = Field(min_length=1)
    confirmation_email: str = Field(min_length=1)

"""Project schemas for backend records and portal request bodies."""

from datetime import datetime
from typing import Literal

from pydantic import AliasChoices, BaseModel, Field, field_validator

from src.portal.core.validators import validate_hex_color
from src.portal.models.enums import ProjectRole
from src.portal.schemas.common import BackendModel

DEFAULT_PROJECT_COLOR = "#3b82f6"


class Project(BackendModel):
    """A project node in the workspace's project forest."""

    id: str
    name: str
    color: str | None = None
    parent_id: str | None = None
    role: ProjectRole | None = None
    archived: bool = Field(
        default=False,
        validation_alias=AliasChoices("archived", "isArchived", "is_archived"),
    )

    @field_validator("role", mode="before")
    @classmethod
    def normalize_role(cls, v: object) -> object:
        if isinstance(v, str):
            v = v.upper()
            if v not in ProjectRole.__members__:
                return None
        return v


class ProjectMember(BackendModel):
    user_id: str
    email: str
    full_name: str | None = None
    avatar_url: str | None = None
    role: ProjectRole
    joined_at: datetime | None = None


class ProjectCreate(BackendModel):
    """Schema for creating a project, optionally under a parent."""

    model_config = {"frozen": False}

    name: str = Field(min_length=1, max_length=200)
    color: str = DEFAULT_PROJECT_COLOR
    parent_id: str | None = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Project name cannot be empty or whitespace only")
        return v

    @field_validator("color")
    @classmethod
    def validate_color(cls, v: str) -> str:
        return validate_hex_color(v)


class ProjectUpdate(BackendModel):
    """Schema for updating a project's mutable fields."""

    model_config = {"frozen": False}

    name: str | None = Field(default=None, min_length=1, max_length=200)
    color: str | None = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str | None) -> str | None:
        if v is not None:
            v = v.strip()
            if not v:
                raise ValueError("Project name cannot be empty or whitespace only")
        return v

    @field_validator("color")
    @classmethod
    def validate_color(cls, v: str | None) -> str | None:
        return validate_hex_color(v) if v is not None else None


class ProjectMemberAdd(BaseModel):
    user_id: str = Field(min_length=1)
    role: Literal["ADMIN", "EDITOR", "VIEWER"] = "VIEWER"

    @field_validator("role", mode="before")
    @classmethod
    def upper_role(cls, v: object) -> object:
        return v.upper() if isinstance(v, str) else v


class ProjectMemberRoleUpdate(BaseModel):
    role: Literal["ADMIN", "EDITOR", "VIEWER"]

    @field_validator("role", mode="before")
    @classmethod
    def upper_role(cls, v: object) -> object:
        return v.upper() if isinstance(v, str) else v


class ProjectOwnershipTransfer(BaseModel):
    new_owner_id: str = Field(min_length=1)

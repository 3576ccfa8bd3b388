"""Authentication schemas for the authorization-code exchange."""

from pydantic import Field

from src.portal.schemas.common import BackendModel
from src.portal.schemas.workspace import Principal, Tenant


class LoginResponse(BackendModel):
    """Result of exchanging a one-time authorization code for a credential."""

    access_token: str = Field(min_length=1)
    refresh_token: str | None = None
    user: Principal
    workspaces: list[Tenant] = Field(default_factory=list)
    redirect_url: str | None = None


class CodeExchangeRequest(BackendModel):
    code: str = Field(min_length=1)

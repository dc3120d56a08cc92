"""Request/response schemas for auth and self-service endpoints."""

from datetime import datetime

from pydantic import Field

from corpgate.schemas.common import ApiModel


class LoginRequest(ApiModel):
    """Credentials for login. Missing fields are reported as ok:false, not 422."""

    email: str | None = Field(default=None, max_length=255, description="Account email")
    password: str | None = Field(default=None, max_length=1024, description="Password")


class RefreshRequest(ApiModel):
    """Refresh token from a previous login."""

    refresh_token: str | None = Field(default=None, max_length=512)


class ChangePasswordRequest(ApiModel):
    current_password: str | None = None
    new_password: str | None = None


class SetInitialPasswordRequest(ApiModel):
    new_password: str | None = None


class UserSummary(ApiModel):
    email: str
    role: str
    status: str


class LoginResponse(ApiModel):
    """
    Successful login.

    Active accounts get a refresh token and their page list. Inactive accounts
    get needs_password_setup=true and an access token usable only for the
    initial password endpoint.
    """

    ok: bool = True
    access_token: str
    refresh_token: str | None = None
    user: UserSummary
    pages: list[str] | None = None
    needs_password_setup: bool | None = None


class RefreshResponse(ApiModel):
    ok: bool = True
    access_token: str


class CurrentUser(ApiModel):
    """Authenticated user as re-read from the store for the current request."""

    id: int
    email: str
    role: str
    status: str
    allowed_pages: list[str] = Field(default_factory=list)


class MeUser(ApiModel):
    id: int
    email: str
    username: str | None = None
    role: str
    allowed_pages: list[str] = Field(default_factory=list)
    status: str
    last_login: datetime | None = None


class MeResponse(ApiModel):
    ok: bool = True
    user: MeUser

"""Request/response schemas for admin user management."""

from datetime import datetime

from pydantic import Field

from corpgate.schemas.common import ApiModel


class EmailRequest(ApiModel):
    email: str | None = Field(default=None, max_length=255)


class CreateUserRequest(EmailRequest):
    role: str | None = Field(default=None, max_length=64)
    username: str | None = Field(default=None, max_length=255)


class SetAllowedPagesRequest(EmailRequest):
    pages: list[str] | None = None


class SetUserStatusRequest(EmailRequest):
    status: str | None = None


class SetUserRoleRequest(EmailRequest):
    role: str | None = Field(default=None, max_length=64)


class UserListItem(ApiModel):
    """User entry for admin list (no password)."""

    email: str
    username: str | None = None
    role: str
    allowed_pages: list[str] = Field(default_factory=list)
    status: str
    created_at: datetime | None = None
    last_login: datetime | None = None


class UsersListResponse(ApiModel):
    ok: bool = True
    users: list[UserListItem]


class TempPasswordResponse(ApiModel):
    """Returned when an admin creates or resets an account."""

    ok: bool = True
    temp_password: str
    message: str

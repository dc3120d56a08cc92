"""Pydantic request/response schemas."""

from corpgate.schemas.auth import (
    ChangePasswordRequest,
    CurrentUser,
    LoginRequest,
    LoginResponse,
    MeResponse,
    RefreshRequest,
    RefreshResponse,
    SetInitialPasswordRequest,
    UserSummary,
)
from corpgate.schemas.common import MessageResponse, fail
from corpgate.schemas.health import HealthResponse

__all__ = [
    "ChangePasswordRequest",
    "CurrentUser",
    "HealthResponse",
    "LoginRequest",
    "LoginResponse",
    "MeResponse",
    "MessageResponse",
    "RefreshRequest",
    "RefreshResponse",
    "SetInitialPasswordRequest",
    "UserSummary",
    "fail",
]

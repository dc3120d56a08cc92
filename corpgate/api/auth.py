"""Login, logout, token refresh, password change and current-user endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from corpgate.api.gates import require_user
from corpgate.core.config import get_settings
from corpgate.core.database import get_db
from corpgate.core.security import TokenService, get_token_service
from corpgate.schemas.auth import (
    ChangePasswordRequest,
    CurrentUser,
    LoginRequest,
    LoginResponse,
    MeResponse,
    MeUser,
    RefreshRequest,
    RefreshResponse,
)
from corpgate.schemas.common import MessageResponse, fail
from corpgate.services import auth as auth_service
from corpgate.services import user_store

router = APIRouter()


def password_too_short(password: str) -> str | None:
    """Validation message if password is below the configured minimum, else None."""
    min_len = get_settings().PASSWORD_MIN_LEN
    if len(password) < min_len:
        return f"Password must be at least {min_len} characters"
    return None


@router.post(
    "/login",
    response_model=LoginResponse | MessageResponse,
    response_model_exclude_none=True,
)
def login(
    body: LoginRequest,
    request: Request,
    db: Annotated[Session, Depends(get_db)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
) -> LoginResponse | MessageResponse:
    """
    Authenticate with email and password.

    Active accounts receive an access token, a refresh token and their page
    list. Inactive accounts receive needsPasswordSetup=true and an access
    token accepted only by /user/setInitialPassword.
    """
    if not body.email or not body.password:
        return fail("Email and password are required")
    client = auth_service.ClientMeta(
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )
    try:
        return auth_service.login(db, tokens, body.email, body.password, client)
    except auth_service.AuthError as e:
        return fail(e.message)


@router.post("/logout", response_model=MessageResponse, response_model_exclude_none=True)
def logout(
    body: RefreshRequest,
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    """Revoke the session behind a refresh token. Always succeeds."""
    auth_service.logout(db, body.refresh_token)
    return MessageResponse(ok=True)


@router.post(
    "/refresh",
    response_model=RefreshResponse | MessageResponse,
    response_model_exclude_none=True,
)
def refresh(
    body: RefreshRequest,
    db: Annotated[Session, Depends(get_db)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
) -> RefreshResponse | MessageResponse:
    """Exchange a refresh token for a new access token."""
    if not body.refresh_token:
        return fail("Refresh token required")
    try:
        return auth_service.refresh_access_token(db, tokens, body.refresh_token)
    except auth_service.AuthError as e:
        return fail(e.message)


@router.post("/change-password", response_model=MessageResponse, response_model_exclude_none=True)
def change_password(
    body: ChangePasswordRequest,
    current_user: Annotated[CurrentUser, Depends(require_user)],
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    """Change password; every session of the user is signed out."""
    if not body.current_password or not body.new_password:
        return fail("Current and new password required")
    problem = password_too_short(body.new_password)
    if problem:
        return fail(problem)
    try:
        auth_service.change_password(
            db, current_user.id, body.current_password, body.new_password
        )
    except auth_service.AuthError as e:
        return fail(e.message)
    return MessageResponse(ok=True, message="Password changed successfully")


@router.get("/me", response_model=MeResponse | MessageResponse, response_model_exclude_none=True)
def me(
    current_user: Annotated[CurrentUser, Depends(require_user)],
    db: Annotated[Session, Depends(get_db)],
) -> MeResponse | MessageResponse:
    """Profile of the signed-in user."""
    user = user_store.get_user_by_id(db, current_user.id)
    if user is None:
        return fail(auth_service.UserNotFoundError.default_message)
    return MeResponse(user=MeUser.model_validate(user))

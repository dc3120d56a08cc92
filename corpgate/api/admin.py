"""Admin user management. Every route requires an Active admin account."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from corpgate.api.gates import require_admin
from corpgate.core.config import get_settings
from corpgate.core.database import get_db
from corpgate.core.security import generate_temp_password, hash_password
from corpgate.models.user import STATUS_INACTIVE, USER_STATUSES
from corpgate.schemas.admin import (
    CreateUserRequest,
    EmailRequest,
    SetAllowedPagesRequest,
    SetUserRoleRequest,
    SetUserStatusRequest,
    TempPasswordResponse,
    UserListItem,
    UsersListResponse,
)
from corpgate.schemas.auth import CurrentUser
from corpgate.schemas.common import MessageResponse, fail
from corpgate.services import session_store, user_store

logger = logging.getLogger(__name__)
router = APIRouter()

AdminUser = Annotated[CurrentUser, Depends(require_admin)]
DbSession = Annotated[Session, Depends(get_db)]


def _unique_pages(pages: list[str]) -> list[str]:
    seen: set[str] = set()
    out = []
    for page in pages:
        if page not in seen:
            seen.add(page)
            out.append(page)
    return out


@router.post("/listUsers", response_model=UsersListResponse)
def list_users(_admin: AdminUser, db: DbSession) -> UsersListResponse:
    """All accounts, newest first (no password hashes)."""
    users = user_store.list_users(db)
    return UsersListResponse(users=[UserListItem.model_validate(u) for u in users])


@router.post(
    "/createUser",
    response_model=TempPasswordResponse | MessageResponse,
    response_model_exclude_none=True,
)
def create_user(
    body: CreateUserRequest, admin: AdminUser, db: DbSession
) -> TempPasswordResponse | MessageResponse:
    """
    Create an Inactive account with no pages and a temporary password.

    The temporary password is returned once; the user replaces it through
    /user/setInitialPassword and waits for activation.
    """
    if not body.email or not body.email.strip() or not body.role:
        return fail("Email and role are required")
    if user_store.get_user_by_email(db, body.email) is not None:
        return fail("User already exists")
    temp_password = generate_temp_password()
    user = user_store.create_user(
        db,
        body.email,
        hash_password(temp_password),
        body.role,
        username=body.username,
        status=STATUS_INACTIVE,
        allowed_pages=[],
    )
    logger.info("Admin id=%s created user id=%s role=%s", admin.id, user.id, user.role)
    return TempPasswordResponse(temp_password=temp_password, message="User created successfully")


@router.post("/setAllowedPages", response_model=MessageResponse, response_model_exclude_none=True)
def set_allowed_pages(
    body: SetAllowedPagesRequest, admin: AdminUser, db: DbSession
) -> MessageResponse:
    if not body.email:
        return fail("Email is required")
    pages = _unique_pages(body.pages or [])
    if not user_store.set_allowed_pages(db, body.email, pages):
        return fail("User not found")
    logger.info("Admin id=%s set %s page(s) for %s", admin.id, len(pages), body.email)
    return MessageResponse(ok=True, message="Allowed pages updated")


@router.post("/setUserStatus", response_model=MessageResponse, response_model_exclude_none=True)
def set_user_status(
    body: SetUserStatusRequest, admin: AdminUser, db: DbSession
) -> MessageResponse:
    """Activate or deactivate an account. Deactivation signs the user out everywhere."""
    if not body.email or not body.status:
        return fail("Email and status are required")
    if body.status not in USER_STATUSES:
        return fail("Invalid status. Must be Active or Inactive")
    user = user_store.get_user_by_email(db, body.email)
    if user is None:
        return fail("User not found")
    user_id = user.id
    user_store.set_status(db, body.email, body.status)
    revoked = 0
    if body.status == STATUS_INACTIVE and get_settings().REVOKE_SESSIONS_ON_DEACTIVATE:
        revoked = session_store.delete_user_sessions(db, user_id)
    logger.info(
        "Admin id=%s set user id=%s status=%s; sessions_revoked=%s",
        admin.id,
        user_id,
        body.status,
        revoked,
    )
    return MessageResponse(ok=True, message="User status updated")


@router.post("/setUserRole", response_model=MessageResponse, response_model_exclude_none=True)
def set_user_role(
    body: SetUserRoleRequest, admin: AdminUser, db: DbSession
) -> MessageResponse:
    if not body.email or not body.role:
        return fail("Email and role are required")
    if not user_store.set_role(db, body.email, body.role):
        return fail("User not found")
    logger.info("Admin id=%s set role=%s for %s", admin.id, body.role, body.email)
    return MessageResponse(ok=True, message="User role updated")


@router.post("/deleteUser", response_model=MessageResponse, response_model_exclude_none=True)
def delete_user(body: EmailRequest, admin: AdminUser, db: DbSession) -> MessageResponse:
    """Delete an account and, by cascade, its sessions. Admins cannot delete themselves."""
    if not body.email:
        return fail("Email is required")
    if user_store.normalize_email(body.email) == user_store.normalize_email(admin.email):
        return fail("Cannot delete your own account")
    if not user_store.delete_user(db, body.email):
        return fail("User not found")
    logger.info("Admin id=%s deleted %s", admin.id, body.email)
    return MessageResponse(ok=True, message="User deleted successfully")


@router.post(
    "/resetPassword",
    response_model=TempPasswordResponse | MessageResponse,
    response_model_exclude_none=True,
)
def reset_password(
    body: EmailRequest, admin: AdminUser, db: DbSession
) -> TempPasswordResponse | MessageResponse:
    """Issue a new temporary password, send the account back to Inactive and revoke its sessions."""
    if not body.email:
        return fail("Email is required")
    user = user_store.get_user_by_email(db, body.email)
    if user is None:
        return fail("User not found")
    user_id = user.id
    temp_password = generate_temp_password()
    user_store.reset_credentials(db, body.email, hash_password(temp_password))
    revoked = session_store.delete_user_sessions(db, user_id)
    logger.info(
        "Admin id=%s reset password for user id=%s; sessions_revoked=%s",
        admin.id,
        user_id,
        revoked,
    )
    return TempPasswordResponse(temp_password=temp_password, message="Password reset successfully")

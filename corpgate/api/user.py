"""Self-service onboarding endpoint for accounts that are still Inactive."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from corpgate.api.auth import password_too_short
from corpgate.api.gates import SETUP_ALLOWED, require_access
from corpgate.core.database import get_db
from corpgate.schemas.auth import CurrentUser, SetInitialPasswordRequest
from corpgate.schemas.common import MessageResponse, fail
from corpgate.services import auth as auth_service

router = APIRouter()


@router.post(
    "/setInitialPassword",
    response_model=MessageResponse,
    response_model_exclude_none=True,
)
def set_initial_password(
    body: SetInitialPasswordRequest,
    current_user: Annotated[CurrentUser, Depends(require_access(SETUP_ALLOWED))],
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    """Replace the temporary password. The account stays Inactive until an admin activates it."""
    if not body.new_password:
        return fail("New password required")
    problem = password_too_short(body.new_password)
    if problem:
        return fail(problem)
    try:
        auth_service.set_initial_password(db, current_user.id, body.new_password)
    except auth_service.AuthError as e:
        return fail(e.message)
    return MessageResponse(
        ok=True,
        message="Password set successfully. Please wait for admin approval.",
    )

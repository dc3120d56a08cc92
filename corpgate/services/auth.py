"""
Authentication core: login, logout, refresh, initial password setup and
password change.

Account lifecycle: an admin creates the account Inactive with a temporary
password; the user replaces it through set_initial_password (still Inactive);
an admin then sets the account Active. Only Active accounts get refresh-token
sessions.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from corpgate.core.security import (
    TokenIdentity,
    TokenService,
    dummy_password_hash,
    hash_password,
    verify_password,
)
from corpgate.models import User
from corpgate.models.user import STATUS_ACTIVE, STATUS_INACTIVE
from corpgate.schemas.auth import LoginResponse, RefreshResponse, UserSummary
from corpgate.services import session_store, user_store

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"


class AuthError(Exception):
    """Base for authentication failures reported to the caller as ok:false."""

    default_message = "Authentication failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidCredentialsError(AuthError):
    """Unknown email or wrong password; the two are deliberately indistinguishable."""

    default_message = INVALID_CREDENTIALS_MESSAGE


class InvalidTokenError(AuthError):
    default_message = "Invalid refresh token"


class TokenExpiredError(AuthError):
    default_message = "Refresh token expired"


class AccountInactiveError(AuthError):
    default_message = "User account is inactive"


class NotEligibleError(AuthError):
    default_message = "This endpoint is only for initial password setup"


class UserNotFoundError(AuthError):
    default_message = "User not found"


@dataclass(frozen=True)
class ClientMeta:
    """Audit metadata stored with a session."""

    ip_address: str | None = None
    user_agent: str | None = None


def _identity(user: User) -> TokenIdentity:
    return TokenIdentity(user_id=user.id, email=user.email, role=user.role)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored in UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def login(
    db: Session,
    tokens: TokenService,
    email: str,
    password: str,
    client: ClientMeta | None = None,
) -> LoginResponse:
    """
    Check credentials and start a session.

    Inactive accounts succeed with needs_password_setup=True and an access
    token only; no session row is written for them.
    Raises InvalidCredentialsError for unknown email or wrong password.
    """
    user = user_store.get_user_by_email(db, email)
    # Both paths run exactly one bcrypt verify; unknown emails use a dummy hash.
    stored_hash = user.password_hash if user is not None else dummy_password_hash()
    if not verify_password(password, stored_hash) or user is None:
        logger.info("Login failed for %s", user_store.normalize_email(email))
        raise InvalidCredentialsError()

    summary = UserSummary(email=user.email, role=user.role, status=user.status)
    access_token = tokens.issue_access_token(_identity(user))

    if user.status == STATUS_INACTIVE:
        logger.info("Login for inactive user id=%s; password setup required", user.id)
        return LoginResponse(
            access_token=access_token,
            user=summary,
            needs_password_setup=True,
        )

    client = client or ClientMeta()
    refresh_token = tokens.issue_refresh_token()
    session_store.create_session(
        db,
        user.id,
        refresh_token,
        tokens.refresh_expiry(),
        ip_address=client.ip_address,
        user_agent=client.user_agent,
    )
    user_store.update_last_login(db, user.id)
    logger.info("Login succeeded for user id=%s", user.id)
    return LoginResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        user=summary,
        pages=list(user.allowed_pages or []),
    )


def logout(db: Session, refresh_token: str | None) -> None:
    """Drop the session for refresh_token. Unknown or missing tokens are not an error."""
    if not refresh_token:
        return
    deleted = session_store.delete_session(db, refresh_token)
    logger.debug("Logout removed %s session(s)", deleted)


def refresh_access_token(
    db: Session,
    tokens: TokenService,
    refresh_token: str,
    now: datetime | None = None,
) -> RefreshResponse:
    """
    Mint a new access token from a stored refresh token.

    The refresh token is not rotated and stays usable until it expires or is
    revoked. Expired sessions are deleted on sight. A session whose owner is
    no longer Active is refused but left in place.
    """
    found = session_store.get_session_with_user(db, refresh_token)
    if found is None:
        raise InvalidTokenError()
    row, user = found
    user_id = user.id

    if now is None:
        now = datetime.now(timezone.utc)
    if _as_utc(row.expires_at) < now:
        session_store.delete_session(db, refresh_token)
        logger.info("Expired session removed for user id=%s", user_id)
        raise TokenExpiredError()

    if user.status != STATUS_ACTIVE:
        logger.warning("Refresh refused for inactive user id=%s", user_id)
        raise AccountInactiveError()

    return RefreshResponse(access_token=tokens.issue_access_token(_identity(user)))


def set_initial_password(db: Session, user_id: int, new_password: str) -> None:
    """
    Replace the temporary password of an Inactive account.

    The account stays Inactive; activation is a separate admin action.
    Raises NotEligibleError once the account is no longer Inactive or its
    temporary password has already been replaced, so this cannot serve as a
    general password reset.
    """
    user = user_store.get_user_by_id(db, user_id)
    if user is None:
        raise UserNotFoundError()
    if user.status != STATUS_INACTIVE or user.password_set:
        raise NotEligibleError()
    if not user_store.store_initial_password(db, user_id, hash_password(new_password)):
        raise NotEligibleError()
    logger.info("Initial password set for user id=%s", user_id)


def change_password(
    db: Session, user_id: int, current_password: str, new_password: str
) -> int:
    """
    Change the password after checking the current one.

    Every session of the user is revoked, including the caller's, so all
    devices must sign in again. Returns the number of sessions removed.
    """
    user = user_store.get_user_by_id(db, user_id)
    if user is None:
        raise UserNotFoundError()
    if not verify_password(current_password, user.password_hash):
        raise InvalidCredentialsError("Current password is incorrect")
    user_store.update_password(db, user_id, hash_password(new_password))
    revoked = session_store.delete_user_sessions(db, user_id)
    logger.info("Password changed for user id=%s; sessions_revoked=%s", user_id, revoked)
    return revoked


def cleanup_expired_sessions(db: Session, now: datetime | None = None) -> int:
    """Delete every session past its expiry. Idempotent: safe to run repeatedly."""
    if now is None:
        now = datetime.now(timezone.utc)
    deleted = session_store.delete_expired_sessions(db, now)
    if deleted > 0:
        logger.info("Session cleanup: cutoff=%s, sessions_deleted=%s", now.isoformat(), deleted)
    return deleted

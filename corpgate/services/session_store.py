"""Session store: accessors over the refresh-token sessions table."""

from datetime import datetime

from sqlalchemy.orm import Session

from corpgate.models import User, UserSession


def create_session(
    db: Session,
    user_id: int,
    refresh_token: str,
    expires_at: datetime,
    *,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> UserSession:
    row = UserSession(
        user_id=user_id,
        refresh_token=refresh_token,
        expires_at=expires_at,
        ip_address=ip_address,
        user_agent=user_agent,
    )
    db.add(row)
    db.commit()
    return row


def get_session_with_user(
    db: Session, refresh_token: str
) -> tuple[UserSession, User] | None:
    """Session row for a refresh token joined with its owning user, or None."""
    row = (
        db.query(UserSession, User)
        .join(User, User.id == UserSession.user_id)
        .filter(UserSession.refresh_token == refresh_token)
        .first()
    )
    if row is None:
        return None
    return row[0], row[1]


def delete_session(db: Session, refresh_token: str) -> int:
    count = (
        db.query(UserSession)
        .filter(UserSession.refresh_token == refresh_token)
        .delete(synchronize_session=False)
    )
    db.commit()
    return count


def delete_user_sessions(db: Session, user_id: int) -> int:
    count = (
        db.query(UserSession)
        .filter(UserSession.user_id == user_id)
        .delete(synchronize_session=False)
    )
    db.commit()
    return count


def delete_expired_sessions(db: Session, cutoff: datetime) -> int:
    count = (
        db.query(UserSession)
        .filter(UserSession.expires_at < cutoff)
        .delete(synchronize_session=False)
    )
    db.commit()
    return count

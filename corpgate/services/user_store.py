"""Credential store: accessors over the users table. No business rules here."""

from datetime import datetime, timezone

from sqlalchemy.orm import Session

from corpgate.models import User
from corpgate.models.user import STATUS_INACTIVE


def normalize_email(email: str) -> str:
    """Emails are matched trimmed and lowercased."""
    return email.strip().lower()


def get_user_by_email(db: Session, email: str) -> User | None:
    return db.query(User).filter(User.email == normalize_email(email)).first()


def get_user_by_id(db: Session, user_id: int) -> User | None:
    return db.query(User).filter(User.id == user_id).first()


def list_users(db: Session) -> list[User]:
    """All users, newest first."""
    return db.query(User).order_by(User.created_at.desc(), User.id.desc()).all()


def create_user(
    db: Session,
    email: str,
    password_hash: str,
    role: str,
    *,
    username: str | None = None,
    status: str = STATUS_INACTIVE,
    allowed_pages: list[str] | None = None,
    password_set: bool = False,
) -> User:
    user = User(
        email=normalize_email(email),
        username=username,
        password_hash=password_hash,
        role=role,
        status=status,
        allowed_pages=list(allowed_pages or []),
        password_set=password_set,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def update_password(db: Session, user_id: int, password_hash: str) -> int:
    count = (
        db.query(User)
        .filter(User.id == user_id)
        .update({User.password_hash: password_hash}, synchronize_session=False)
    )
    db.commit()
    return count


def store_initial_password(db: Session, user_id: int, password_hash: str) -> int:
    """
    Set the first self-chosen password. Matches only Inactive accounts still on
    a temporary password, so concurrent or repeated calls update at most once.
    """
    count = (
        db.query(User)
        .filter(
            User.id == user_id,
            User.status == STATUS_INACTIVE,
            User.password_set.is_(False),
        )
        .update(
            {User.password_hash: password_hash, User.password_set: True},
            synchronize_session=False,
        )
    )
    db.commit()
    return count


def update_last_login(db: Session, user_id: int) -> None:
    db.query(User).filter(User.id == user_id).update(
        {User.last_login: datetime.now(timezone.utc)}, synchronize_session=False
    )
    db.commit()


def _update_by_email(db: Session, email: str, values: dict) -> int:
    count = (
        db.query(User)
        .filter(User.email == normalize_email(email))
        .update(values, synchronize_session=False)
    )
    db.commit()
    return count


def set_allowed_pages(db: Session, email: str, pages: list[str]) -> int:
    return _update_by_email(db, email, {User.allowed_pages: list(pages)})


def set_status(db: Session, email: str, status: str) -> int:
    return _update_by_email(db, email, {User.status: status})


def set_role(db: Session, email: str, role: str) -> int:
    return _update_by_email(db, email, {User.role: role})


def reset_credentials(db: Session, email: str, password_hash: str) -> int:
    """Replace the password and send the account back to Inactive."""
    values = {
        User.password_hash: password_hash,
        User.status: STATUS_INACTIVE,
        User.password_set: False,
    }
    return _update_by_email(db, email, values)


def delete_user(db: Session, email: str) -> int:
    count = (
        db.query(User)
        .filter(User.email == normalize_email(email))
        .delete(synchronize_session=False)
    )
    db.commit()
    return count

"""ORM model for refresh-token sessions (one row per signed-in device/browser)."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, func

from corpgate.models.base import Base


class UserSession(Base):
    """
    Server-side record binding an opaque refresh token to a user and an expiry.

    A user may hold any number of sessions. Rows are removed on logout, on
    password change, on admin deactivation/reset, or once found expired.
    """

    __tablename__ = "sessions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    refresh_token = Column(String(255), nullable=False, unique=True, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
    ip_address = Column(String(64), nullable=True)
    user_agent = Column(Text, nullable=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

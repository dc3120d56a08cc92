"""ORM model for portal accounts (credentials, role and page allowlist)."""

from sqlalchemy import Boolean, Column, DateTime, Integer, String, func

from corpgate.models.base import Base, JSONType

STATUS_ACTIVE = "Active"
STATUS_INACTIVE = "Inactive"
USER_STATUSES = (STATUS_ACTIVE, STATUS_INACTIVE)

ADMIN_ROLE = "admin"


class User(Base):
    """
    Portal account.

    status: 'Active' or 'Inactive'. New accounts start Inactive with a temporary
    password and only reach Active through an admin status update.
    role: free-form; 'admin' (any case) bypasses page and ownership checks.
    allowed_pages: page names the account may open (treated as a set).
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    username = Column(String(255), nullable=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(64), nullable=False, default="User")
    status = Column(String(16), nullable=False, default=STATUS_INACTIVE)
    allowed_pages = Column(JSONType, nullable=False, default=list)
    # False until the user replaces the temporary password an admin issued
    password_set = Column(Boolean, nullable=False, default=False)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    last_login = Column(DateTime(timezone=True), nullable=True)

    @property
    def is_admin(self) -> bool:
        return is_admin_role(self.role)


def is_admin_role(role: str | None) -> bool:
    """True if role names the privileged admin role (case-insensitive)."""
    return (role or "").lower() == ADMIN_ROLE

"""SQLAlchemy ORM models."""

from corpgate.models.base import Base
from corpgate.models.records import Issue, Order
from corpgate.models.session import UserSession
from corpgate.models.user import User

__all__ = ["Base", "Issue", "Order", "User", "UserSession"]

"""ORM models for ownership-bearing business records (orders and issues)."""

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String, Text, func

from corpgate.models.base import Base

ORDER_STATUSES = ("Waiting Supplier", "Delivered")
ISSUE_STATUSES = ("Disorder", "Solved")


class Order(Base):
    """Supply order; non-admin users may only touch orders they created."""

    __tablename__ = "orders"

    order_id = Column(Integer, primary_key=True, autoincrement=True)
    item = Column(String(255), nullable=False, default="")
    quantity = Column(Integer, nullable=False, default=1)
    supplier_id = Column(Integer, nullable=True)
    status = Column(String(32), nullable=False, default="Waiting Supplier")
    delivered_date = Column(Date, nullable=True)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )


class Issue(Base):
    """Device issue report; solved_by/solved_at are stamped when status becomes Solved."""

    __tablename__ = "issues"

    issue_id = Column(Integer, primary_key=True, autoincrement=True)
    device_id = Column(Integer, nullable=True)
    description = Column(Text, nullable=False, default="")
    status = Column(String(32), nullable=False, default="Disorder")
    solved_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    solved_at = Column(DateTime(timezone=True), nullable=True)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

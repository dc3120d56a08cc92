"""Status transitions for orders and issues, each in a single transaction."""

import logging
from datetime import date, datetime, timezone

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from corpgate.models import Issue, Order
from corpgate.models.records import ISSUE_STATUSES, ORDER_STATUSES

logger = logging.getLogger(__name__)


class RecordError(Exception):
    """Raised when a record status update cannot be applied."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


def update_order_status(db: Session, order_id: int, status: str) -> Order:
    """
    Set an order's status; Delivered also stamps delivered_date.

    Read and write happen in one transaction that is rolled back on any failure.
    """
    if status not in ORDER_STATUSES:
        raise RecordError(f"Invalid status. Must be one of: {', '.join(ORDER_STATUSES)}")
    try:
        order = db.get(Order, order_id, with_for_update=True)
        if order is None:
            db.rollback()
            raise RecordError("Order not found")
        order.status = status
        if status == "Delivered":
            order.delivered_date = date.today()
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Order status update failed for order_id=%s", order_id)
        raise RecordError("Failed to update status") from e
    db.refresh(order)
    return order


def update_issue_status(db: Session, issue_id: int, status: str, user_id: int) -> Issue:
    """
    Set an issue's status; Solved also records who solved it and when.

    Read and write happen in one transaction that is rolled back on any failure.
    """
    if status not in ISSUE_STATUSES:
        raise RecordError(f"Invalid status. Must be one of: {', '.join(ISSUE_STATUSES)}")
    try:
        issue = db.get(Issue, issue_id, with_for_update=True)
        if issue is None:
            db.rollback()
            raise RecordError("Issue not found")
        issue.status = status
        if status == "Solved":
            issue.solved_by = user_id
            issue.solved_at = datetime.now(timezone.utc)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Issue status update failed for issue_id=%s", issue_id)
        raise RecordError("Failed to update status") from e
    db.refresh(issue)
    return issue

"""Order and issue endpoints guarded by page allowlist and record ownership."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from corpgate.api.gates import OwnershipRule, RouteAccess, require_access
from corpgate.core.database import get_db
from corpgate.models import Issue, Order
from corpgate.schemas.auth import CurrentUser
from corpgate.schemas.common import MessageResponse, fail
from corpgate.schemas.records import (
    IssueOut,
    IssueResponse,
    IssueStatusRequest,
    OrderOut,
    OrderResponse,
    OrderStatusRequest,
)
from corpgate.services.records import RecordError, update_issue_status, update_order_status

router = APIRouter()

# The ownership gate reads the id from the same place the handler acts on.
ORDER_ACCESS = RouteAccess(page="Orders", ownership=OwnershipRule(Order, "order_id"))
ORDER_UPDATE_ACCESS = RouteAccess(
    page="Orders", ownership=OwnershipRule(Order, "order_id", source="body")
)
ISSUE_ACCESS = RouteAccess(page="Issues", ownership=OwnershipRule(Issue, "issue_id"))
ISSUE_UPDATE_ACCESS = RouteAccess(
    page="Issues", ownership=OwnershipRule(Issue, "issue_id", source="body")
)


@router.get(
    "/orders/{order_id}",
    response_model=OrderResponse | MessageResponse,
    response_model_exclude_none=True,
)
def get_order(
    order_id: int,
    _user: Annotated[CurrentUser, Depends(require_access(ORDER_ACCESS))],
    db: Annotated[Session, Depends(get_db)],
) -> OrderResponse | MessageResponse:
    order = db.get(Order, order_id)
    if order is None:
        return fail("Order not found")
    return OrderResponse(record=OrderOut.model_validate(order))


@router.post(
    "/orders/updateStatus",
    response_model=OrderResponse | MessageResponse,
    response_model_exclude_none=True,
)
def post_order_status(
    body: OrderStatusRequest,
    _user: Annotated[CurrentUser, Depends(require_access(ORDER_UPDATE_ACCESS))],
    db: Annotated[Session, Depends(get_db)],
) -> OrderResponse | MessageResponse:
    if body.order_id is None or not body.status:
        return fail("order_id and status are required")
    try:
        order = update_order_status(db, body.order_id, body.status)
    except RecordError as e:
        return fail(e.message)
    return OrderResponse(record=OrderOut.model_validate(order))


@router.get(
    "/issues/{issue_id}",
    response_model=IssueResponse | MessageResponse,
    response_model_exclude_none=True,
)
def get_issue(
    issue_id: int,
    _user: Annotated[CurrentUser, Depends(require_access(ISSUE_ACCESS))],
    db: Annotated[Session, Depends(get_db)],
) -> IssueResponse | MessageResponse:
    issue = db.get(Issue, issue_id)
    if issue is None:
        return fail("Issue not found")
    return IssueResponse(record=IssueOut.model_validate(issue))


@router.post(
    "/issues/updateStatus",
    response_model=IssueResponse | MessageResponse,
    response_model_exclude_none=True,
)
def post_issue_status(
    body: IssueStatusRequest,
    user: Annotated[CurrentUser, Depends(require_access(ISSUE_UPDATE_ACCESS))],
    db: Annotated[Session, Depends(get_db)],
) -> IssueResponse | MessageResponse:
    if body.issue_id is None or not body.status:
        return fail("issue_id and status are required")
    try:
        issue = update_issue_status(db, body.issue_id, body.status, user.id)
    except RecordError as e:
        return fail(e.message)
    return IssueResponse(record=IssueOut.model_validate(issue))

"""Schemas for ownership-bearing records (orders and issues)."""

from datetime import date, datetime

from pydantic import Field

from corpgate.schemas.common import ApiModel


class OrderOut(ApiModel):
    order_id: int
    item: str
    quantity: int
    supplier_id: int | None = None
    status: str
    delivered_date: date | None = None
    created_by: int | None = None
    created_at: datetime | None = None


class IssueOut(ApiModel):
    issue_id: int
    device_id: int | None = None
    description: str
    status: str
    solved_by: int | None = None
    solved_at: datetime | None = None
    created_by: int | None = None
    created_at: datetime | None = None


class OrderResponse(ApiModel):
    ok: bool = True
    record: OrderOut


class IssueResponse(ApiModel):
    ok: bool = True
    record: IssueOut


class OrderStatusRequest(ApiModel):
    order_id: int | None = Field(default=None, alias="order_id")
    status: str | None = None


class IssueStatusRequest(ApiModel):
    issue_id: int | None = Field(default=None, alias="issue_id")
    status: str | None = None

"""
Per-request authorization gates and the FastAPI dependency that runs them.

Each route declares a RouteAccess tag. The guards below run in a fixed order
(token, user, status, role, page, ownership) and the first one that returns a
GateRejection stops the request before the handler is called.
"""

import json
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from typing import Annotated, Any, Literal

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from corpgate.core.database import get_db
from corpgate.core.security import TokenIdentity, TokenService, get_token_service
from corpgate.models import User
from corpgate.models.user import STATUS_INACTIVE, is_admin_role
from corpgate.schemas.auth import CurrentUser
from corpgate.services import user_store

logger = logging.getLogger(__name__)

bearer = HTTPBearer(auto_error=False)


class GateRejection(Exception):
    """A gate refused the request; rendered as {ok: false, message} with status_code."""

    status_code = 403

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class Unauthorized(GateRejection):
    status_code = 401


class Forbidden(GateRejection):
    status_code = 403


class NotFound(GateRejection):
    status_code = 404


class BadRequest(GateRejection):
    status_code = 400


@dataclass(frozen=True)
class OwnershipRule:
    """
    Record lookup for the ownership gate: model class, its primary-key field
    name, and where the request carries the id (`path` or `body`). The source
    must be the one the route handler acts on.
    """

    model: type
    id_field: str
    source: Literal["path", "body"] = "path"


@dataclass(frozen=True)
class RouteAccess:
    """Capability tag declared by each protected route."""

    allow_inactive: bool = False
    admin_only: bool = False
    page: str | None = None
    ownership: OwnershipRule | None = None


@dataclass
class GateContext:
    access: RouteAccess
    db: Session
    tokens: TokenService
    token: str | None = None
    record_id: Any = None
    identity: TokenIdentity | None = None
    user: User | None = None
    allowed_pages: set[str] = field(default_factory=set)


Guard = Callable[[GateContext], GateRejection | None]


def check_token(ctx: GateContext) -> GateRejection | None:
    if not ctx.token:
        return Unauthorized("Unauthorized: No token provided")
    ctx.identity = ctx.tokens.verify_access_token(ctx.token)
    if ctx.identity is None:
        return Unauthorized("Unauthorized: Invalid token")
    return None


def check_user(ctx: GateContext) -> GateRejection | None:
    # Role and status always come from the store, never from token claims.
    ctx.user = user_store.get_user_by_id(ctx.db, ctx.identity.user_id)
    if ctx.user is None:
        return Unauthorized("Unauthorized: User not found")
    ctx.allowed_pages = set(ctx.user.allowed_pages or [])
    return None


def check_status(ctx: GateContext) -> GateRejection | None:
    if ctx.user.status == STATUS_INACTIVE and not ctx.access.allow_inactive:
        return Forbidden("Account inactive. Please set your password first.")
    return None


def check_role(ctx: GateContext) -> GateRejection | None:
    if ctx.access.admin_only and not is_admin_role(ctx.user.role):
        return Forbidden("Forbidden: Admin access required")
    return None


def check_page(ctx: GateContext) -> GateRejection | None:
    page = ctx.access.page
    if page is None or is_admin_role(ctx.user.role):
        return None
    if page not in ctx.allowed_pages:
        return Forbidden(f"Forbidden: Access to {page} page not allowed")
    return None


def parse_record_id(value: Any) -> int | None:
    """Integer ids or all-digit strings; floats, booleans and anything else are None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.isascii() and value.isdigit():
        return int(value)
    return None


def check_ownership(ctx: GateContext) -> GateRejection | None:
    rule = ctx.access.ownership
    if rule is None or is_admin_role(ctx.user.role):
        return None
    if ctx.record_id is None or ctx.record_id == "":
        return BadRequest("Record ID required")
    record_id = parse_record_id(ctx.record_id)
    if record_id is None:
        return NotFound("Record not found")
    record = ctx.db.get(rule.model, record_id)
    if record is None:
        return NotFound("Record not found")
    if record.created_by != ctx.user.id:
        return Forbidden("Forbidden: You can only access your own records")
    return None


GATES: tuple[Guard, ...] = (
    check_token,
    check_user,
    check_status,
    check_role,
    check_page,
    check_ownership,
)


def evaluate(ctx: GateContext, gates: Sequence[Guard] = GATES) -> GateRejection | None:
    """Run gates in order; return the first rejection, or None when all admit."""
    for gate in gates:
        rejection = gate(ctx)
        if rejection is not None:
            logger.info(
                "Request rejected by %s: status=%s message=%s",
                gate.__name__,
                rejection.status_code,
                rejection.message,
            )
            return rejection
    return None


async def _resolve_record_id(request: Request, rule: OwnershipRule) -> Any:
    """
    Record id from the one place the rule names. Other places are never
    consulted, so a query-string id cannot stand in for the body id the
    handler updates.
    """
    if rule.source == "path":
        return request.path_params.get(rule.id_field)
    if not await request.body():
        return None
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None
    if not isinstance(body, dict):
        return None
    return body.get(rule.id_field)


def require_access(access: RouteAccess) -> Callable[..., Awaitable[CurrentUser]]:
    """Build a dependency that admits the request per access or raises a GateRejection."""

    async def dependency(
        request: Request,
        credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer)],
        db: Annotated[Session, Depends(get_db)],
        tokens: Annotated[TokenService, Depends(get_token_service)],
    ) -> CurrentUser:
        ctx = GateContext(
            access=access,
            db=db,
            tokens=tokens,
            token=credentials.credentials if credentials else None,
        )
        if access.ownership is not None:
            ctx.record_id = await _resolve_record_id(request, access.ownership)
        rejection = await run_in_threadpool(evaluate, ctx)
        if rejection is not None:
            raise rejection
        current = CurrentUser(
            id=ctx.user.id,
            email=ctx.user.email,
            role=ctx.user.role,
            status=ctx.user.status,
            allowed_pages=list(ctx.user.allowed_pages or []),
        )
        request.state.user = current
        return current

    return dependency


# Common tags
AUTHENTICATED = RouteAccess()
SETUP_ALLOWED = RouteAccess(allow_inactive=True)
ADMIN_ONLY = RouteAccess(admin_only=True)

require_user = require_access(AUTHENTICATED)
require_admin = require_access(ADMIN_ONLY)

"""Shared response envelope: every JSON body carries an `ok` flag."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """Base for request/response bodies: camelCase on the wire, snake_case in code."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class MessageResponse(ApiModel):
    """Plain outcome with an optional human-readable message."""

    ok: bool = Field(default=True, description="Whether the operation succeeded")
    message: str | None = Field(default=None, description="Outcome or failure reason")


def fail(message: str) -> MessageResponse:
    """Business-logic failure body (sent with HTTP 200)."""
    return MessageResponse(ok=False, message=message)

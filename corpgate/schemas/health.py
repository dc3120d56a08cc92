"""Health check response."""

from typing import Literal

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Liveness plus database reachability; `degraded` when the store is down."""

    ok: bool = True
    status: Literal["ok", "degraded"] = "ok"
    environment: str
    database: Literal["connected", "disconnected"] = Field(
        description="Result of a trivial query against the session store"
    )

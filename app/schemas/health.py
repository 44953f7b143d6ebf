"""Liveness payload for load balancers and monitoring."""

from typing import Literal

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Degraded when the store is unreachable; the audit writer state is informational only."""

    status: Literal["ok", "degraded"] = "ok"
    version: str
    environment: str = Field(description="APP_ENV of the running process")
    database: Literal["connected", "disconnected"]
    audit: Literal["running", "stopped"] = Field(
        default="stopped",
        description="Whether the background audit writer is draining records",
    )

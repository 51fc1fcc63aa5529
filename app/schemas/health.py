"""Pydantic schemas for health check responses."""

from typing import Literal

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Liveness plus database reachability, for load balancers."""

    status: Literal["ok"] = Field(default="ok", description="Service status")
    service: str = Field(default="users", description="Service name")
    environment: str = Field(description="Current app environment (dev or prod)")
    database: Literal["connected", "disconnected"] = Field(
        description="Result of a SELECT 1 against the user store",
    )

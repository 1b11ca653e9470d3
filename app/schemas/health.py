"""Pydantic schema for the health check response."""

from typing import Literal

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Response body for GET /health."""

    status: Literal["ok"] = Field(default="ok", description="Service status")
    environment: Literal["dev", "prod"] = Field(description="Current APP_ENV")
    database: Literal["connected", "disconnected"] = Field(
        description="Whether the user/session database answered a trivial query",
    )

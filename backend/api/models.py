"""Pydantic models for the API response bodies."""

from datetime import datetime, timezone

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Response body for the health check.

    Attributes:
        status: Overall service status.
        version: API version string.
        timestamp: Time the check ran (UTC).
        error_handlers: Number of registered error log identities.
    """

    status: str = Field(default="healthy", description="Service status")
    version: str = Field(..., description="API version")
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Time of the health check",
    )
    error_handlers: int = Field(default=0, description="Registered error log identities")

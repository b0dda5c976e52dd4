"""API routes."""

import structlog
from fastapi import APIRouter

from api.models import HealthResponse
from errorlog import default_registry

API_VERSION = "1.0.0"

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Check API health.",
)
async def health_check() -> HealthResponse:
    """Return service status and the size of the error log registry."""
    return HealthResponse(version=API_VERSION, error_handlers=len(default_registry))

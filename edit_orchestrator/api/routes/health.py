"""Health check endpoints."""

from fastapi import APIRouter, Request

from ... import __version__
from ..schemas import HealthResponse

router = APIRouter()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Check if the API server is running and healthy.",
)
def health_check(request: Request) -> HealthResponse:
    """Return health status and the configured completion model."""
    return HealthResponse(
        status="healthy",
        version=__version__,
        model=request.app.state.config.orchestrator.model,
    )

"""
Health check router.

Provides a simple health endpoint for liveness/readiness probes.
Reports the application version and whether maintenance mode is on.
While maintenance is on, the maintenance middleware answers this route
with a 503 like any other.
"""

from fastapi import APIRouter, Request

from graceful_errors.core.config import settings
from graceful_errors.domain.maintenance import MaintenanceState, maintenance_state
from graceful_errors.interfaces.schemas import HealthResponse

router = APIRouter(tags=["health"])


def _maintenance(request: Request) -> MaintenanceState:
    return getattr(request.app.state, "maintenance", maintenance_state)


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Returns application health status, version and maintenance flag.",
)
def health_check(request: Request) -> HealthResponse:
    """Return current application health status."""
    in_maintenance = _maintenance(request).status()
    return HealthResponse(
        status="maintenance" if in_maintenance else "ok",
        version=settings.version,
        maintenance=in_maintenance,
    )

"""Health check endpoint router."""

import logging

from fastapi import APIRouter, Request

from toolhub_server.models.health import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """Health check endpoint.

    Returns the current health status and version of toolhub-server along
    with registry, connection and execution counts. Counts are zero when the
    services have not been started.

    Args:
        request: The FastAPI request object.

    Returns:
        HealthResponse: Health status and version information.
    """
    state = request.app.state
    registry = getattr(state, "tool_registry", None)
    coordinator = getattr(state, "execution_coordinator", None)
    bus = getattr(state, "broadcast_bus", None)

    return HealthResponse(
        status="ok",
        version=request.app.version,
        tool_count=len(registry) if registry is not None else 0,
        connection_count=len(bus) if bus is not None else 0,
        active_executions=coordinator.active_count() if coordinator is not None else 0,
    )

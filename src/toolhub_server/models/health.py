"""Health check response model."""

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Response model for the health check endpoint.

    Attributes:
        status: Health status indicator ("ok" or "error").
        version: The version of toolhub-server.
        tool_count: Number of registered tools.
        connection_count: Number of open WebSocket peers.
        active_executions: Number of executions that have not finished.
    """

    status: str = Field(..., description="Health status of the service")
    version: str = Field(..., description="Version of toolhub-server")
    tool_count: int = Field(default=0, description="Number of registered tools")
    connection_count: int = Field(default=0, description="Number of open peers")
    active_executions: int = Field(
        default=0, description="Number of executions still in flight"
    )

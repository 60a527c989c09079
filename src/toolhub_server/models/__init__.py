"""Pydantic models for HTTP API response schemas.

This package contains the models used to serialize responses of the
HTTP endpoints. WebSocket envelopes live in toolhub_server.protocol.
"""

from toolhub_server.models.health import HealthResponse
from toolhub_server.models.tools import ToolListResponse, ToolResponse

__all__ = [
    "HealthResponse",
    "ToolListResponse",
    "ToolResponse",
]

"""FastAPI routers for API endpoints.

This package contains the HTTP route handlers (health, tools) and the
WebSocket endpoints that carry the tool protocol.
"""

from toolhub_server.routers import health, tools, ws

__all__ = [
    "health",
    "tools",
    "ws",
]

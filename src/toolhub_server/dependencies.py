"""Dependency injection providers for FastAPI endpoints.

This module provides FastAPI dependency functions that are used across
multiple routers to inject the shared services created at startup.
"""

from functools import lru_cache

from fastapi import HTTPException, Request

from toolhub_server.config import ToolHubSettings
from toolhub_server.tools import ToolRegistry


@lru_cache
def get_settings() -> ToolHubSettings:
    """Get the application settings instance.

    This function is cached so that the same settings instance is reused
    across all requests. Settings are loaded from environment variables
    with the TOOLHUB_ prefix.

    Returns:
        ToolHubSettings: The application configuration settings.
    """
    return ToolHubSettings()


def _require_state(request: Request, name: str):
    if not hasattr(request.app.state, name):
        raise HTTPException(
            status_code=503,
            detail={
                "error": {
                    "code": "SERVER_ERROR",
                    "message": "Server is not ready",
                    "details": {},
                }
            },
        )
    return getattr(request.app.state, name)


def get_registry(request: Request) -> ToolRegistry:
    """Get the tool registry from app state.

    Raises:
        HTTPException: If the registry is not initialized (503 Service Unavailable).
    """
    return _require_state(request, "tool_registry")

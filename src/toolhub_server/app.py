"""FastAPI application factory and lifespan management.

This module contains the create_app() factory function that creates and configures
the FastAPI application instance, including lifespan management for startup/shutdown
and router registration.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from toolhub_server.config import ToolHubSettings
from toolhub_server.execution import ExecutionCoordinator
from toolhub_server.protocol.broadcast import BroadcastBus
from toolhub_server.protocol.router import MessageRouter
from toolhub_server.routers import health, tools, ws
from toolhub_server.tools import PeerToolHandler, ToolHandler, ToolRegistry

logger = logging.getLogger(__name__)

VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Lifespan context manager for FastAPI application.

    The tool registry, execution coordinator, broadcast bus and message
    router are created once at startup and stored in app.state, so every
    connection shares the same tables.

    Args:
        app: The FastAPI application instance.

    Yields:
        None: Control is yielded while the app is running.
    """
    settings: ToolHubSettings = app.state.settings

    registry = ToolRegistry(max_schema_depth=settings.max_schema_depth)
    coordinator = ExecutionCoordinator(registry)
    bus = BroadcastBus()
    handler: ToolHandler = app.state.tool_handler or PeerToolHandler(bus)

    app.state.tool_registry = registry
    app.state.execution_coordinator = coordinator
    app.state.broadcast_bus = bus
    app.state.message_router = MessageRouter(
        settings=settings,
        registry=registry,
        coordinator=coordinator,
        bus=bus,
        handler=handler,
    )
    logger.info(
        f"{settings.server_name} {settings.server_version} ready "
        f"(handler: {type(handler).__name__})"
    )

    yield

    # Shutdown: stop waiting on tool handlers
    await app.state.message_router.shutdown()
    logger.info("Message router shut down")


def create_app(
    settings: ToolHubSettings | None = None,
    tool_handler: ToolHandler | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    This factory function creates a FastAPI instance with all routers,
    middleware, and configuration applied. It can accept an optional
    settings object and tool handler for testing or embedding.

    Args:
        settings: Optional ToolHubSettings instance. If not provided,
                  settings will be loaded from environment variables.
        tool_handler: Optional handler that performs tool computations.
                      Defaults to forwarding invocations to the peer that
                      registered the tool.

    Returns:
        FastAPI: Configured FastAPI application instance.
    """
    if settings is None:
        from toolhub_server.dependencies import get_settings

        settings = get_settings()

    app = FastAPI(
        title="toolhub-server",
        description="WebSocket coordinator for registering and executing tools",
        version=VERSION,
        lifespan=lifespan,
    )

    # Store settings and handler in app.state for lifespan access
    app.state.settings = settings
    app.state.tool_handler = tool_handler

    # Configure CORS
    # Note: FastAPI's type hints for add_middleware are overly strict
    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register routers
    app.include_router(health.router)
    app.include_router(tools.router)
    app.include_router(ws.router)
    if settings.discovery_enabled:
        app.include_router(ws.discovery_router)

    return app

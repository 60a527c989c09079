"""Pytest configuration and shared fixtures for toolhub-server tests.

This module provides common fixtures used across all test modules,
including test app creation, async client setup and fake connections.
"""

import json
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from toolhub_server import create_app
from toolhub_server.config import ToolHubSettings
from toolhub_server.protocol.broadcast import Peer
from toolhub_server.tools import LocalToolHandler


class FakeConnection:
    """Stand-in for a WebSocket that records every JSON frame sent, decoded."""

    def __init__(self, fail: bool = False):
        self.sent: list[dict[str, Any]] = []
        self.fail = fail

    async def send_text(self, data: str) -> None:
        if self.fail:
            raise RuntimeError("connection closed")
        self.sent.append(json.loads(data))

    def types(self) -> list[str]:
        return [message["type"] for message in self.sent]

    def of_type(self, message_type: str) -> list[dict[str, Any]]:
        return [m for m in self.sent if m["type"] == message_type]


@pytest.fixture
def make_peer():
    """Factory for peers backed by FakeConnection.

    Returns:
        Callable returning a Peer; its connection is available as peer.connection.
    """

    def _make(peer_id: str | None = None, fail: bool = False) -> Peer:
        return Peer(FakeConnection(fail=fail), peer_id=peer_id)

    return _make


@pytest.fixture
def test_settings():
    """Create test settings.

    Returns:
        ToolHubSettings: Settings instance configured for testing.
    """
    return ToolHubSettings(
        host="127.0.0.1",
        port=5005,
        server_name="Test ToolHub",
        server_version="9.9.9",
        capabilities=["tool_execution"],
        execution_timeout=5.0,
        log_level="DEBUG",
        cors_origins=["*"],
    )


@pytest.fixture
def local_handler():
    """LocalToolHandler with an 'echo' implementation."""

    async def echo(x: str) -> dict[str, str]:
        return {"echo": x}

    return LocalToolHandler({"echo": echo})


@pytest.fixture
def test_app(test_settings):
    """Create a FastAPI test application instance.

    Args:
        test_settings: Test settings fixture.

    Returns:
        FastAPI: Configured test application.
    """
    return create_app(settings=test_settings)


@pytest_asyncio.fixture
async def async_client(test_app):
    """Create an async HTTP client for testing FastAPI endpoints.

    Args:
        test_app: Test application fixture.

    Yields:
        AsyncClient: Async HTTP client for making test requests.
    """
    # Trigger the lifespan startup manually for tests
    async with test_app.router.lifespan_context(test_app):
        transport = ASGITransport(app=test_app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            yield client


@pytest.fixture
def echo_schema():
    """Argument schema of the 'echo' tool: one required string property."""
    return {
        "type": "object",
        "properties": {"x": {"type": "string"}},
        "required": ["x"],
    }

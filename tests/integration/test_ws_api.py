"""Integration tests for the WebSocket endpoints.

These tests run the full application, lifespan included, through
Starlette's TestClient.
"""

import json

import pytest
from fastapi.testclient import TestClient

from toolhub_server import create_app


@pytest.fixture
def client(test_settings):
    """TestClient where tools are served by the peers that register them."""
    with TestClient(create_app(settings=test_settings)) as client:
        yield client


@pytest.fixture
def local_client(test_settings, local_handler):
    """TestClient where tools run in-process."""
    app = create_app(settings=test_settings, tool_handler=local_handler)
    with TestClient(app) as client:
        yield client


def _register(ws, name, schema, description=None):
    ws.send_json(
        {
            "type": "register_tool",
            "data": {"name": name, "schema": schema, "description": description},
        }
    )
    return ws.receive_json()


def _ready(ws):
    """Round-trip a discover so the connection is known to be registered."""
    ws.send_json({"type": "discover"})
    return ws.receive_json()


def test_discover(client):
    """Test discover over the main endpoint."""
    with client.websocket_connect("/ws") as ws:
        response = _ready(ws)

    assert response["type"] == "discover_response"
    assert response["data"]["server"]["name"] == "Test ToolHub"
    assert response["data"]["server"]["version"] == "9.9.9"


def test_invalid_frame(client):
    """Test that a non-JSON frame is answered with an error envelope."""
    with client.websocket_connect("/ws") as ws:
        ws.send_text("not json")
        response = ws.receive_json()

        # The connection stays usable
        assert _ready(ws)["type"] == "discover_response"

    assert response["type"] == "error"
    assert response["error"]["code"] == "INVALID_MESSAGE"



def test_binary_frames(client):
    """Test that binary frames carrying UTF-8 JSON are dispatched like text."""
    with client.websocket_connect("/ws") as ws:
        ws.send_bytes(json.dumps({"type": "discover"}).encode("utf-8"))
        response = ws.receive_json()

        ws.send_bytes(b"\xc3\x28 not json")
        error = ws.receive_json()

        assert _ready(ws)["type"] == "discover_response"

    assert response["type"] == "discover_response"
    assert error["type"] == "error"
    assert error["error"]["code"] == "INVALID_MESSAGE"


def test_binary_frame_on_discovery_endpoint(client):
    """Test that the discovery endpoint also accepts binary frames."""
    with client.websocket_connect("/ws/discovery") as discovery:
        discovery.send_bytes(b'{"type": "discover"}')
        response = discovery.receive_json()

    assert response["type"] == "discover_response"


def test_registration_without_schema(client):
    """Test that a registration missing its schema gets an error envelope."""
    with client.websocket_connect("/ws") as ws:
        ws.send_json({"type": "register_tool", "data": {"name": "echo"}})
        response = ws.receive_json()

        listed = client.get("/api/v1/tools").json()

    assert response["type"] == "error"
    assert response["error"]["code"] == "INVALID_SCHEMA"
    assert listed["tools"] == []


def test_register_and_execute_local_tool(local_client, echo_schema):
    """Test the full register -> execute flow with an in-process tool."""
    with local_client.websocket_connect("/ws") as ws:
        registered = _register(ws, "echo", echo_schema, "Echoes x")
        assert registered["type"] == "register_tool_response"
        assert registered["data"]["success"] is True

        ws.send_json(
            {
                "type": "execute_tool",
                "data": {"executionId": "e1", "name": "echo", "args": {"x": "hi"}},
            }
        )
        started = ws.receive_json()
        completed = ws.receive_json()
        response = ws.receive_json()

    assert started["type"] == "execution_status"
    assert started["data"]["status"] == "started"
    assert completed["data"]["status"] == "completed"
    assert response == {
        "type": "execute_tool_response",
        "data": {"executionId": "e1", "result": {"echo": "hi"}},
    }


def test_execute_with_invalid_arguments(local_client, echo_schema):
    """Test that invalid arguments produce a single error envelope."""
    with local_client.websocket_connect("/ws") as ws:
        _register(ws, "echo", echo_schema)
        ws.send_json(
            {"type": "execute_tool", "data": {"executionId": "e1", "name": "echo", "args": {}}}
        )
        response = ws.receive_json()

    assert response["type"] == "error"
    assert response["error"]["code"] == "INVALID_ARGUMENTS"
    assert response["error"]["executionId"] == "e1"


def test_registration_is_broadcast_to_other_peers(client, echo_schema):
    """Test that other peers are told about new tools."""
    with client.websocket_connect("/ws") as origin, client.websocket_connect(
        "/ws"
    ) as listener:
        _ready(origin)
        _ready(listener)

        registered = _register(origin, "echo", echo_schema)
        announcement = listener.receive_json()

    assert announcement["type"] == "register_tool"
    assert announcement["data"] == registered["data"]["tool"]


def test_tool_served_by_provider_peer(client, echo_schema):
    """Test forwarding an invocation to the peer that registered the tool."""
    with client.websocket_connect("/ws") as provider:
        _register(provider, "echo", echo_schema)

        with client.websocket_connect("/ws") as invoker:
            invoker.send_json(
                {
                    "type": "execute_tool",
                    "data": {"executionId": "e1", "name": "echo", "args": {"x": "hi"}},
                }
            )
            started = invoker.receive_json()

            invoke = provider.receive_json()
            assert invoke == {
                "type": "invoke_tool",
                "data": {"executionId": "e1", "name": "echo", "args": {"x": "hi"}},
            }
            provider.send_json(
                {
                    "type": "tool_result",
                    "data": {"executionId": "e1", "result": {"echo": "hi"}},
                }
            )

            completed = invoker.receive_json()
            response = invoker.receive_json()

    assert started["data"]["status"] == "started"
    assert completed["data"]["status"] == "completed"
    assert response["data"] == {"executionId": "e1", "result": {"echo": "hi"}}


def test_connection_count_in_health(client):
    """Test that open peers are reported by the health endpoint."""
    with client.websocket_connect("/ws") as ws:
        _ready(ws)
        data = client.get("/api/v1/health").json()

    assert data["connection_count"] == 1


def test_discovery_endpoint(client, echo_schema):
    """Test the discovery endpoint lists tools and the main endpoint."""
    with client.websocket_connect("/ws") as ws:
        _register(ws, "echo", echo_schema, "Echoes x")

        with client.websocket_connect("/ws/discovery") as discovery:
            discovery.send_json({"type": "discover"})
            response = discovery.receive_json()

    server = response["data"]["server"]
    assert response["type"] == "discover_response"
    assert server["websocketPath"] == "/ws"
    assert server["websocketPort"] == 5005
    assert server["tools"] == [{"name": "echo", "description": "Echoes x"}]

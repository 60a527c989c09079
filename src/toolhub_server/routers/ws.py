"""WebSocket endpoints: /ws for tool traffic, /ws/discovery for discovery."""

import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from toolhub_server.protocol.broadcast import Peer
from toolhub_server.protocol.router import MessageRouter

logger = logging.getLogger(__name__)

router = APIRouter(tags=["websocket"])
discovery_router = APIRouter(tags=["websocket"])


async def _receive_frame(websocket: WebSocket) -> str | bytes:
    """Receive one text or binary frame.

    Raises:
        WebSocketDisconnect: When the client closes the connection.
    """
    message = await websocket.receive()
    if message["type"] == "websocket.disconnect":
        raise WebSocketDisconnect(message.get("code", 1000), message.get("reason"))
    text = message.get("text")
    if text is not None:
        return text
    return message.get("bytes") or b""


@router.websocket("/ws")
async def ws_tools(websocket: WebSocket) -> None:
    """Main protocol endpoint.

    Each frame carries one JSON envelope (binary frames as UTF-8), for example::

        {"type": "register_tool", "data": {"name": "echo", "schema": {...}}}
        {"type": "execute_tool", "data": {"executionId": "e1", "name": "echo",
                                          "args": {"x": "hi"}}}

    Frames are dispatched in receipt order. Replies and broadcasts are sent
    by the MessageRouter.
    """
    message_router: MessageRouter = websocket.app.state.message_router

    await websocket.accept()
    peer = Peer(websocket)
    message_router.bus.add(peer)
    logger.info(f"Peer {peer.peer_id} connected")

    try:
        while True:
            frame = await _receive_frame(websocket)
            await message_router.dispatch(peer, frame)
    except WebSocketDisconnect:
        logger.info(f"Peer {peer.peer_id} disconnected")
    finally:
        await message_router.peer_disconnected(peer)


@discovery_router.websocket("/ws/discovery")
async def ws_discovery(websocket: WebSocket) -> None:
    """Discovery endpoint answering discover with server info and tools."""
    message_router: MessageRouter = websocket.app.state.message_router

    await websocket.accept()
    peer = Peer(websocket)
    logger.debug("New discovery connection")

    try:
        while True:
            frame = await _receive_frame(websocket)
            await message_router.dispatch_discovery(peer, frame)
    except WebSocketDisconnect:
        logger.debug("Discovery connection closed")
    finally:
        peer.closed = True

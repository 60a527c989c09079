"""Connection fan-out.

A Peer wraps one open connection. The BroadcastBus is the process-wide set
of open peers: connections are added when accepted and removed when they
close.
"""

import asyncio
import json
import logging
import uuid
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class TextConnection(Protocol):
    """Anything that can send a text frame, e.g. a Starlette WebSocket."""

    async def send_text(self, data: str) -> None: ...


class Peer:
    """One open connection.

    Writes are serialized so that concurrent execution tasks never interleave
    frames on the same connection.

    Attributes:
        peer_id: Generated connection ID.
        connection: The underlying connection.
        closed: Set once the connection is gone; later sends are dropped.
    """

    def __init__(self, connection: TextConnection, peer_id: str | None = None):
        self.peer_id = peer_id or uuid.uuid4().hex[:12]
        self.connection = connection
        self.closed = False
        self._send_lock = asyncio.Lock()

    async def send(self, envelope: dict[str, Any]) -> bool:
        """Send an envelope to the peer.

        The envelope is serialized before anything is written, so an
        unserializable payload leaves the connection untouched.

        Returns:
            True if the envelope was written, False if the peer is closed.

        Raises:
            TypeError, ValueError: If the envelope is not JSON-serializable.
        """
        text = json.dumps(envelope)

        if self.closed:
            logger.debug(
                f"Dropping {envelope.get('type')} for closed peer {self.peer_id}"
            )
            return False

        async with self._send_lock:
            try:
                await self.connection.send_text(text)
            except Exception as e:
                self.closed = True
                logger.debug(f"Send to peer {self.peer_id} failed: {e}")
                return False
        return True

    def __repr__(self) -> str:
        return f"Peer({self.peer_id!r})"


class BroadcastBus:
    """Registry of open peers used to publish events."""

    def __init__(self) -> None:
        self._peers: dict[str, Peer] = {}

    def add(self, peer: Peer) -> None:
        """Track a newly opened connection."""
        self._peers[peer.peer_id] = peer
        logger.debug(f"Peer {peer.peer_id} connected ({len(self._peers)} open)")

    def remove(self, peer: Peer) -> None:
        """Stop tracking a closed connection."""
        peer.closed = True
        if self._peers.pop(peer.peer_id, None) is not None:
            logger.debug(
                f"Peer {peer.peer_id} disconnected ({len(self._peers)} open)"
            )

    def get(self, peer_id: str | None) -> Peer | None:
        """Get an open peer by ID."""
        if peer_id is None:
            return None
        return self._peers.get(peer_id)

    def peers(self) -> list[Peer]:
        """Snapshot of open peers."""
        return list(self._peers.values())

    async def broadcast(
        self, envelope: dict[str, Any], exclude: Peer | None = None
    ) -> int:
        """Send an envelope to every open peer except `exclude`.

        Returns:
            Number of peers the envelope was delivered to.
        """
        delivered = 0
        for peer in self.peers():
            if peer is exclude:
                continue
            if await peer.send(envelope):
                delivered += 1
        logger.debug(f"Broadcast {envelope.get('type')} to {delivered} peers")
        return delivered

    def __len__(self) -> int:
        return len(self._peers)

    def __contains__(self, peer: object) -> bool:
        return isinstance(peer, Peer) and self._peers.get(peer.peer_id) is peer

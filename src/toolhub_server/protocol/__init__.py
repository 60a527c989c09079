"""WebSocket protocol layer.

This package contains the envelope models, the connection fan-out bus and
(in toolhub_server.protocol.router) the message router that dispatches
envelopes to the registry and the execution coordinator.
"""

from toolhub_server.protocol.broadcast import BroadcastBus, Peer
from toolhub_server.protocol.messages import (
    MessageType,
    data_envelope,
    error_envelope,
    parse_envelope,
)

__all__ = [
    "BroadcastBus",
    "MessageType",
    "Peer",
    "data_envelope",
    "error_envelope",
    "parse_envelope",
]

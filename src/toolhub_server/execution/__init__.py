"""Execution lifecycle tracking for toolhub-server.

This package tracks invocations from start to their single terminal
transition and produces the status events relayed to peers.
"""

from toolhub_server.execution.coordinator import ExecutionCoordinator
from toolhub_server.execution.types import (
    ExecutionError,
    ExecutionStatus,
    ExecutionStatusEvent,
    Invocation,
    StatusListener,
)

__all__ = [
    "ExecutionCoordinator",
    "ExecutionError",
    "ExecutionStatus",
    "ExecutionStatusEvent",
    "Invocation",
    "StatusListener",
]

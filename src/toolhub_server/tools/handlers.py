"""Tool handlers: whatever performs the computation behind an invocation.

The execution coordinator only tracks lifecycles. A ToolHandler is given
each running invocation and either returns its result or raises
ToolExecutionError.

Two handlers are provided:
- PeerToolHandler forwards the invocation to the peer that registered the
  tool and waits for that peer's tool_result message.
- LocalToolHandler runs in-process Python callables.
"""

import asyncio
import inspect
import logging
from typing import TYPE_CHECKING, Any, Callable

from toolhub_server.errors import (
    ErrorCode,
    ExecutionNotFoundError,
    InvalidMessageError,
    ToolExecutionError,
    ToolHubError,
)
from toolhub_server.protocol.broadcast import BroadcastBus, Peer
from toolhub_server.protocol.messages import (
    MessageType,
    ToolResultData,
    data_envelope,
)
from toolhub_server.tools.registry import ToolDescriptor

if TYPE_CHECKING:
    from toolhub_server.execution.types import Invocation

logger = logging.getLogger(__name__)


class ToolHandler:
    """Base class for tool handlers."""

    async def execute(self, invocation: "Invocation", descriptor: ToolDescriptor) -> Any:
        """Run the tool and return its result.

        Raises:
            ToolExecutionError: If the tool fails.
        """
        raise NotImplementedError

    async def resolve(self, peer: Peer, data: Any) -> None:
        """Accept a tool_result message from a peer.

        Raises:
            InvalidMessageError: If this handler does not take results from peers.
        """
        raise InvalidMessageError("This server does not accept tool results")

    async def peer_disconnected(self, peer: Peer) -> None:
        """Called when a connection closes."""


class LocalToolHandler(ToolHandler):
    """Runs tools as in-process Python callables keyed by tool name."""

    def __init__(self, functions: dict[str, Callable[..., Any]] | None = None):
        self.functions: dict[str, Callable[..., Any]] = dict(functions or {})

    def add(self, name: str, function: Callable[..., Any]) -> None:
        """Map a tool name to a callable taking the invocation args as kwargs."""
        self.functions[name] = function

    async def execute(self, invocation: "Invocation", descriptor: ToolDescriptor) -> Any:
        function = self.functions.get(invocation.tool_name)
        if function is None:
            raise ToolExecutionError(
                f"Tool not implemented: {invocation.tool_name}",
                code=ErrorCode.TOOL_NOT_FOUND,
            )

        try:
            result = function(**invocation.args)
            if inspect.isawaitable(result):
                result = await result
        except ToolHubError:
            raise
        except Exception as e:
            raise ToolExecutionError(str(e) or type(e).__name__) from e
        return result


class PeerToolHandler(ToolHandler):
    """Forwards invocations to the peer that registered the tool.

    The owner receives an invoke_tool envelope and answers with a
    tool_result message, which resolves the waiting future.
    """

    def __init__(self, bus: BroadcastBus):
        self.bus = bus
        # execution_id -> (owner peer_id, future)
        self._pending: dict[str, tuple[str, asyncio.Future[Any]]] = {}

    async def execute(self, invocation: "Invocation", descriptor: ToolDescriptor) -> Any:
        owner = self.bus.get(descriptor.owner)
        if owner is None:
            raise ToolExecutionError(
                f"No connected provider for tool: {descriptor.name}"
            )

        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self._pending[invocation.execution_id] = (owner.peer_id, future)
        try:
            sent = await owner.send(
                data_envelope(
                    MessageType.INVOKE_TOOL,
                    {
                        "executionId": invocation.execution_id,
                        "name": invocation.tool_name,
                        "args": invocation.args,
                    },
                )
            )
            if not sent:
                raise ToolExecutionError(
                    f"Provider for tool {descriptor.name} is not reachable"
                )
            logger.debug(
                f"Forwarded execution {invocation.execution_id} to peer {owner.peer_id}"
            )
            return await future
        finally:
            self._pending.pop(invocation.execution_id, None)

    async def resolve(self, peer: Peer, data: Any) -> None:
        """Resolve a forwarded invocation from its provider's tool_result.

        Raises:
            ExecutionNotFoundError: If the ID is not waiting on this peer.
        """
        payload = ToolResultData.parse(data)
        pending = self._pending.get(payload.execution_id)
        if pending is None or pending[0] != peer.peer_id:
            raise ExecutionNotFoundError(
                f"No pending execution {payload.execution_id} for this peer"
            )

        _, future = pending
        if future.done():
            return
        if payload.error is not None:
            future.set_exception(
                ToolExecutionError(
                    payload.error.message,
                    code=payload.error.code or ErrorCode.TOOL_EXECUTION_FAILED,
                )
            )
        else:
            future.set_result(payload.result)

    async def peer_disconnected(self, peer: Peer) -> None:
        """Fail every invocation waiting on the disconnected provider."""
        for execution_id, (owner_id, future) in list(self._pending.items()):
            if owner_id == peer.peer_id and not future.done():
                logger.warning(
                    f"Provider {peer.peer_id} disconnected during execution {execution_id}"
                )
                future.set_exception(
                    ToolExecutionError(f"Tool provider disconnected: {peer.peer_id}")
                )

    def pending_count(self) -> int:
        return len(self._pending)

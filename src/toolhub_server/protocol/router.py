"""Message routing for WebSocket peers.

The MessageRouter validates each inbound envelope, hands it to the tool
registry or the execution coordinator, and sends the resulting envelopes to
the origin peer or to every peer.

Registration changes are broadcast to all other peers. Execution traffic is
point-to-point between the invoking peer and the server.
"""

import asyncio
import json
import logging
from typing import Any

from toolhub_server.config import ToolHubSettings
from toolhub_server.errors import (
    ExecutionTimeoutError,
    InvalidMessageError,
    ToolExecutionError,
    ToolHubError,
)
from toolhub_server.execution import (
    ExecutionCoordinator,
    ExecutionStatusEvent,
    Invocation,
)
from toolhub_server.protocol.broadcast import BroadcastBus, Peer
from toolhub_server.protocol.messages import (
    ExecuteToolData,
    MessageType,
    RegisterToolData,
    data_envelope,
    error_envelope,
    parse_envelope,
)
from toolhub_server.tools.handlers import ToolHandler
from toolhub_server.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)


def _ensure_serializable(result: Any) -> None:
    """Raise ToolExecutionError if a tool result cannot be sent as JSON."""
    try:
        json.dumps(result)
    except (TypeError, ValueError) as e:
        raise ToolExecutionError(f"Tool result is not JSON serializable: {e}")


def _raw_execution_id(data: Any) -> str | None:
    """Best-effort executionId from a payload that failed validation."""
    if isinstance(data, dict) and isinstance(data.get("executionId"), str):
        return data["executionId"]
    return None


class MessageRouter:
    """Dispatches inbound envelopes and relays the resulting events."""

    def __init__(
        self,
        settings: ToolHubSettings,
        registry: ToolRegistry,
        coordinator: ExecutionCoordinator,
        bus: BroadcastBus,
        handler: ToolHandler,
    ):
        self.settings = settings
        self.registry = registry
        self.coordinator = coordinator
        self.bus = bus
        self.handler = handler
        self._tasks: set[asyncio.Task[None]] = set()

    def server_info(self) -> dict[str, Any]:
        """Server identity reported to discover requests."""
        return {
            "name": self.settings.server_name,
            "version": self.settings.server_version,
            "capabilities": list(self.settings.capabilities),
        }

    async def dispatch(self, peer: Peer, raw: Any) -> None:
        """Handle one inbound message from a peer.

        Every rejected message produces an error envelope to its sender.

        Args:
            peer: The origin peer.
            raw: The decoded JSON message, or its raw text.
        """
        try:
            message = self._decode(raw)
            message_type, data = parse_envelope(message)
            logger.debug(f"Peer {peer.peer_id} sent {message_type.value}")

            if message_type is MessageType.DISCOVER:
                await peer.send(
                    data_envelope(
                        MessageType.DISCOVER_RESPONSE, {"server": self.server_info()}
                    )
                )
            elif message_type is MessageType.REGISTER_TOOL:
                await self._handle_registration(peer, data)
            elif message_type is MessageType.EXECUTE_TOOL:
                await self._handle_execution(peer, data)
            elif message_type is MessageType.TOOL_RESULT:
                await self._handle_tool_result(peer, data)
        except ToolHubError as e:
            logger.warning(f"Rejected message from peer {peer.peer_id}: {e.message}")
            await peer.send(error_envelope(e))
        except Exception as e:
            logger.exception(f"Failed to handle message from peer {peer.peer_id}")
            await peer.send(error_envelope(ToolHubError(str(e) or "Internal server error")))

    async def dispatch_discovery(self, peer: Peer, raw: Any) -> None:
        """Handle a message on the discovery endpoint.

        Only discover is accepted. The response also lists the registered
        tools and where the main WebSocket endpoint lives.
        """
        try:
            message_type, _ = parse_envelope(self._decode(raw))
            if message_type is not MessageType.DISCOVER:
                raise InvalidMessageError(
                    f"Unsupported message type on discovery endpoint: {message_type.value}"
                )
            server = self.server_info()
            server["websocketPort"] = self.settings.port
            server["websocketPath"] = "/ws"
            server["tools"] = [
                {"name": tool.name, "description": tool.description}
                for tool in self.registry.list_tools()
            ]
            await peer.send(
                data_envelope(MessageType.DISCOVER_RESPONSE, {"server": server})
            )
        except ToolHubError as e:
            logger.warning(f"Rejected discovery message: {e.message}")
            await peer.send(error_envelope(e))

    async def peer_disconnected(self, peer: Peer) -> None:
        """Forget a closed peer.

        In-flight executions started by the peer keep running; their events
        are dropped.
        """
        self.bus.remove(peer)
        await self.handler.peer_disconnected(peer)

    async def shutdown(self) -> None:
        """Cancel execution tasks that are still waiting on handlers.

        Each cancelled invocation fails with SERVER_ERROR, its invoking peer
        is told, and it is released.
        """
        # Let tasks created in this loop iteration enter their try block first
        await asyncio.sleep(0)
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.info(f"Cancelled {len(tasks)} in-flight executions")

    def _decode(self, raw: Any) -> Any:
        if isinstance(raw, (str, bytes, bytearray)):
            try:
                return json.loads(raw)
            except ValueError:
                raise InvalidMessageError("Message is not valid JSON")
        return raw

    async def _handle_registration(self, peer: Peer, data: Any) -> None:
        # Missing or mistyped fields are envelope errors, raised to dispatch
        payload = RegisterToolData.parse(data)
        try:
            descriptor = await self.registry.register(
                payload.name,
                payload.tool_schema,
                description=payload.description,
                owner=peer.peer_id,
            )
        except ToolHubError as e:
            logger.warning(f"Tool registration failed: {e.message}")
            await peer.send(
                data_envelope(
                    MessageType.REGISTER_TOOL_RESPONSE,
                    {"success": False, "error": e.to_dict()},
                )
            )
            return

        tool = descriptor.to_dict()
        await peer.send(
            data_envelope(
                MessageType.REGISTER_TOOL_RESPONSE, {"success": True, "tool": tool}
            )
        )
        await self.bus.broadcast(
            data_envelope(MessageType.REGISTER_TOOL, tool), exclude=peer
        )

    async def _handle_execution(self, peer: Peer, data: Any) -> None:
        execution_id = _raw_execution_id(data)
        try:
            payload = ExecuteToolData.parse(data)
            execution_id = payload.execution_id

            async def relay(event: ExecutionStatusEvent) -> None:
                await peer.send(
                    data_envelope(MessageType.EXECUTION_STATUS, event.to_dict())
                )

            invocation = await self.coordinator.begin(
                payload.execution_id, payload.name, payload.args, listener=relay
            )
        except ToolHubError as e:
            logger.warning(f"Execution {execution_id} rejected: {e.message}")
            await peer.send(error_envelope(e, execution_id=execution_id))
            return

        task = asyncio.create_task(self._run(peer, invocation))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run(self, peer: Peer, invocation: Invocation) -> None:
        """Wait for the handler and drive the terminal transition."""
        execution_id = invocation.execution_id
        timeout = self.settings.resolved_execution_timeout
        error: ToolHubError | None = None
        result: Any = None

        try:
            try:
                result = await asyncio.wait_for(
                    self.handler.execute(invocation, invocation.descriptor),
                    timeout=timeout,
                )
                _ensure_serializable(result)
            except asyncio.TimeoutError:
                error = ExecutionTimeoutError(
                    f"Execution timed out after {timeout} seconds"
                )
            except asyncio.CancelledError:
                await self._finish(
                    peer,
                    execution_id,
                    None,
                    ToolHubError("Execution cancelled: server is shutting down"),
                )
                raise
            except ToolHubError as e:
                error = e
            except Exception as e:
                logger.exception(f"Tool handler crashed during execution {execution_id}")
                error = ToolExecutionError(str(e) or type(e).__name__)

            await self._finish(peer, execution_id, result, error)
        finally:
            await self.coordinator.release(execution_id)

    async def _finish(
        self,
        peer: Peer,
        execution_id: str,
        result: Any,
        error: ToolHubError | None,
    ) -> None:
        """Record the terminal transition and answer the invoking peer."""
        try:
            if error is None:
                await self.coordinator.complete(execution_id, result)
                await peer.send(
                    data_envelope(
                        MessageType.EXECUTE_TOOL_RESPONSE,
                        {"executionId": execution_id, "result": result},
                    )
                )
            else:
                await self.coordinator.fail(execution_id, error.code, error.message)
                await peer.send(error_envelope(error, execution_id=execution_id))
        except ToolHubError as e:
            logger.warning(f"Could not finish execution {execution_id}: {e.message}")

    async def _handle_tool_result(self, peer: Peer, data: Any) -> None:
        try:
            await self.handler.resolve(peer, data)
        except ToolHubError as e:
            logger.warning(f"Rejected tool result from peer {peer.peer_id}: {e.message}")
            await peer.send(error_envelope(e, execution_id=_raw_execution_id(data)))

"""ExecutionCoordinator for the invocation lifecycle.

This module provides the ExecutionCoordinator class which handles:
- Resolving the tool and validating arguments when an execution begins
- Enforcing unique execution IDs among in-flight invocations
- Allowing exactly one terminal transition per invocation
- Emitting status events to the invocation's listener

The coordinator never runs tools. Whoever performs the computation reports
back through complete() or fail().
"""

import asyncio
import logging
from typing import Any

from toolhub_server.errors import (
    DuplicateExecutionError,
    ErrorCode,
    ExecutionAlreadyCompletedError,
    ExecutionNotFoundError,
    InvalidArgumentsError,
    ToolNotFoundError,
)
from toolhub_server.execution.types import (
    ExecutionError,
    ExecutionStatus,
    ExecutionStatusEvent,
    Invocation,
    StatusListener,
)
from toolhub_server.schema import validate_value
from toolhub_server.tools.registry import ToolRegistry, utc_timestamp

logger = logging.getLogger(__name__)


class ExecutionCoordinator:
    """Tracks in-flight invocations by execution ID.

    All table mutations happen under one lock. Listeners are notified after
    the lock is released, so a slow listener never blocks other executions.
    """

    def __init__(self, registry: ToolRegistry):
        """Initialize the coordinator.

        Args:
            registry: Registry used to resolve tool names at begin().
        """
        self.registry = registry
        self._invocations: dict[str, Invocation] = {}
        self._lock = asyncio.Lock()

    async def begin(
        self,
        execution_id: str,
        tool_name: str,
        args: dict[str, Any] | None,
        listener: StatusListener | None = None,
    ) -> Invocation:
        """Start tracking a new invocation.

        The invocation is created as started, a started event is emitted,
        and it is advanced to running.

        Args:
            execution_id: Caller-supplied unique ID.
            tool_name: Name of a registered tool.
            args: Arguments checked against the tool schema (None means {}).
            listener: Async callback receiving status events.

        Returns:
            The running Invocation.

        Raises:
            ToolNotFoundError: If no tool is registered under tool_name.
            InvalidArgumentsError: If args do not satisfy the tool schema.
            DuplicateExecutionError: If execution_id is already in flight.
        """
        args = {} if args is None else args

        descriptor = self.registry.lookup(tool_name)
        if descriptor is None:
            raise ToolNotFoundError(f"Tool not found: {tool_name}")

        result = validate_value(args, descriptor.parsed_schema)
        if not result:
            raise InvalidArgumentsError(
                f"Invalid arguments for tool '{tool_name}': {'; '.join(result.errors)}",
                details={"errors": result.errors},
            )

        async with self._lock:
            existing = self._invocations.get(execution_id)
            if existing is not None and not existing.status.is_terminal:
                raise DuplicateExecutionError(
                    f"Execution already in progress: {execution_id}"
                )

            invocation = Invocation(
                execution_id=execution_id,
                tool_name=tool_name,
                args=args,
                created_at=utc_timestamp(),
                listener=listener,
                descriptor=descriptor,
            )
            self._invocations[execution_id] = invocation
            started = self._event(invocation)
            invocation.status = ExecutionStatus.RUNNING

        logger.info(f"Execution {execution_id} started for tool {tool_name}")
        await self._notify(invocation, started)
        return invocation

    async def complete(self, execution_id: str, result: Any) -> Invocation:
        """Record a successful result.

        Raises:
            ExecutionNotFoundError: If the execution is not tracked.
            ExecutionAlreadyCompletedError: If it already reached a terminal state.
        """
        async with self._lock:
            invocation = self._require_running(execution_id)
            invocation.status = ExecutionStatus.COMPLETED
            invocation.result = result
            invocation.finished_at = utc_timestamp()
            event = self._event(invocation)

        logger.info(f"Execution {execution_id} completed")
        await self._notify(invocation, event)
        return invocation

    async def fail(
        self, execution_id: str, code: ErrorCode | str, message: str
    ) -> Invocation:
        """Record a failure.

        Raises:
            ExecutionNotFoundError: If the execution is not tracked.
            ExecutionAlreadyCompletedError: If it already reached a terminal state.
        """
        code_value = code.value if isinstance(code, ErrorCode) else str(code)

        async with self._lock:
            invocation = self._require_running(execution_id)
            invocation.status = ExecutionStatus.FAILED
            invocation.error = ExecutionError(code=code_value, message=message)
            invocation.finished_at = utc_timestamp()
            event = self._event(invocation)

        logger.info(f"Execution {execution_id} failed: {code_value}: {message}")
        await self._notify(invocation, event)
        return invocation

    async def release(self, execution_id: str) -> None:
        """Drop a terminal invocation from the table.

        Called once its terminal event has been relayed. Invocations that are
        still running are kept.
        """
        async with self._lock:
            invocation = self._invocations.get(execution_id)
            if invocation is not None and invocation.status.is_terminal:
                del self._invocations[execution_id]
                logger.debug(f"Released execution {execution_id}")

    def get(self, execution_id: str) -> Invocation | None:
        """Get a tracked invocation, or None."""
        return self._invocations.get(execution_id)

    def active_count(self) -> int:
        """Number of invocations that have not reached a terminal state."""
        return sum(
            1 for inv in self._invocations.values() if not inv.status.is_terminal
        )

    def __len__(self) -> int:
        return len(self._invocations)

    def _require_running(self, execution_id: str) -> Invocation:
        invocation = self._invocations.get(execution_id)
        if invocation is None:
            raise ExecutionNotFoundError(f"Execution not found: {execution_id}")
        if invocation.status.is_terminal:
            raise ExecutionAlreadyCompletedError(
                f"Execution already {invocation.status.value}: {execution_id}"
            )
        return invocation

    def _event(self, invocation: Invocation) -> ExecutionStatusEvent:
        return ExecutionStatusEvent(
            execution_id=invocation.execution_id,
            status=invocation.status,
            timestamp=invocation.finished_at or invocation.created_at,
            result=invocation.result,
            error=invocation.error,
        )

    async def _notify(
        self, invocation: Invocation, event: ExecutionStatusEvent
    ) -> None:
        if invocation.listener is None:
            return
        try:
            await invocation.listener(event)
        except Exception:
            logger.exception(
                f"Status listener failed for execution {invocation.execution_id}"
            )

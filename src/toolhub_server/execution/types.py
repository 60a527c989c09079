"""Data types for tool executions."""

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Awaitable, Callable

if TYPE_CHECKING:
    from toolhub_server.tools.registry import ToolDescriptor


class ExecutionStatus(str, Enum):
    """Lifecycle states of an invocation."""

    STARTED = "started"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (ExecutionStatus.COMPLETED, ExecutionStatus.FAILED)


@dataclass
class ExecutionError:
    """Error recorded on a failed invocation."""

    code: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"code": self.code, "message": self.message}


@dataclass
class ExecutionStatusEvent:
    """A status transition relayed to the invoking peer."""

    execution_id: str
    status: ExecutionStatus
    timestamp: str
    result: Any = None
    error: ExecutionError | None = None

    def to_dict(self) -> dict[str, Any]:
        """Wire payload of an execution_status envelope."""
        payload: dict[str, Any] = {
            "executionId": self.execution_id,
            "status": self.status.value,
            "timestamp": self.timestamp,
        }
        if self.status is ExecutionStatus.COMPLETED:
            payload["result"] = self.result
        if self.error is not None:
            payload["error"] = self.error.to_dict()
        return payload


StatusListener = Callable[[ExecutionStatusEvent], Awaitable[None]]


@dataclass
class Invocation:
    """One tracked request to run a tool."""

    execution_id: str
    tool_name: str
    args: dict[str, Any]
    status: ExecutionStatus = ExecutionStatus.STARTED
    result: Any = None
    error: ExecutionError | None = None
    created_at: str = ""
    finished_at: str | None = None
    listener: StatusListener | None = field(default=None, repr=False, compare=False)
    descriptor: "ToolDescriptor | None" = field(default=None, repr=False, compare=False)

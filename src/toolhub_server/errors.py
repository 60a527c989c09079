"""Error codes and exception types for toolhub-server.

Every failure that is reported back to a peer is raised as a ToolHubError
subclass. The subclass fixes the wire error code; to_dict() produces the
payload sent in ``error`` envelopes and ``register_tool_response`` bodies.
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Error codes sent to peers."""

    INVALID_NAME = "INVALID_NAME"
    INVALID_SCHEMA = "INVALID_SCHEMA"
    INVALID_ARGUMENTS = "INVALID_ARGUMENTS"
    INVALID_MESSAGE = "INVALID_MESSAGE"
    TOOL_NOT_FOUND = "TOOL_NOT_FOUND"
    TOOL_EXECUTION_FAILED = "TOOL_EXECUTION_FAILED"
    DUPLICATE_EXECUTION_ID = "DUPLICATE_EXECUTION_ID"
    EXECUTION_NOT_FOUND = "EXECUTION_NOT_FOUND"
    EXECUTION_ALREADY_COMPLETED = "EXECUTION_ALREADY_COMPLETED"
    TIMEOUT = "TIMEOUT"
    SERVER_ERROR = "SERVER_ERROR"


class ToolHubError(Exception):
    """Base class for errors that are reported to peers.

    Attributes:
        code: The wire error code.
        message: Human-readable description.
        details: Optional structured details (e.g. a list of validation errors).
    """

    code: ErrorCode = ErrorCode.SERVER_ERROR

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        code: ErrorCode | str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        if code is not None:
            self.code = code  # type: ignore[assignment]

    @property
    def code_value(self) -> str:
        """The error code as a plain string."""
        return self.code.value if isinstance(self.code, ErrorCode) else str(self.code)

    def to_dict(self) -> dict[str, Any]:
        """Convert the error to its wire representation."""
        payload: dict[str, Any] = {"code": self.code_value, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class InvalidMessageError(ToolHubError):
    """The envelope is malformed or has an unsupported type."""

    code = ErrorCode.INVALID_MESSAGE


class InvalidNameError(ToolHubError):
    """A tool name is missing, empty or not a string."""

    code = ErrorCode.INVALID_NAME


class InvalidSchemaError(ToolHubError):
    """A tool schema failed shape validation."""

    code = ErrorCode.INVALID_SCHEMA


class InvalidArgumentsError(ToolHubError):
    """Arguments or payload fields failed validation."""

    code = ErrorCode.INVALID_ARGUMENTS


class ToolNotFoundError(ToolHubError):
    """No tool is registered under the requested name."""

    code = ErrorCode.TOOL_NOT_FOUND


class DuplicateExecutionError(ToolHubError):
    """An execution with the same ID is already in flight."""

    code = ErrorCode.DUPLICATE_EXECUTION_ID


class ExecutionNotFoundError(ToolHubError):
    """No tracked execution has the given ID."""

    code = ErrorCode.EXECUTION_NOT_FOUND


class ExecutionAlreadyCompletedError(ToolHubError):
    """The execution already reached a terminal state."""

    code = ErrorCode.EXECUTION_ALREADY_COMPLETED


class ToolExecutionError(ToolHubError):
    """The tool handler failed to produce a result."""

    code = ErrorCode.TOOL_EXECUTION_FAILED


class ExecutionTimeoutError(ToolHubError):
    """The tool handler did not finish before the deadline."""

    code = ErrorCode.TIMEOUT

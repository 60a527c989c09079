"""Pydantic models for WebSocket protocol envelopes.

Inbound envelopes are checked for shape here before they are routed.
Outbound envelopes are plain dicts built by the helpers at the bottom of
this module.
"""

from enum import Enum
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from toolhub_server.errors import (
    ErrorCode,
    InvalidArgumentsError,
    InvalidMessageError,
    ToolHubError,
)


class MessageType(str, Enum):
    """Envelope types exchanged over the connection."""

    DISCOVER = "discover"
    DISCOVER_RESPONSE = "discover_response"
    REGISTER_TOOL = "register_tool"
    REGISTER_TOOL_RESPONSE = "register_tool_response"
    EXECUTE_TOOL = "execute_tool"
    EXECUTE_TOOL_RESPONSE = "execute_tool_response"
    EXECUTION_STATUS = "execution_status"
    INVOKE_TOOL = "invoke_tool"
    TOOL_RESULT = "tool_result"
    ERROR = "error"


# Types a peer may send to the server
INBOUND_TYPES = frozenset(
    {
        MessageType.DISCOVER,
        MessageType.REGISTER_TOOL,
        MessageType.EXECUTE_TOOL,
        MessageType.TOOL_RESULT,
    }
)


class Envelope(BaseModel):
    """Top-level inbound message."""

    type: str
    data: Any = None


class PayloadModel(BaseModel):
    """Base for inbound payloads.

    Field validation failures are mapped to wire error codes through
    `field_error_codes`; anything else uses `default_error`.
    """

    model_config = ConfigDict(populate_by_name=True)

    field_error_codes: ClassVar[dict[str, ErrorCode]] = {}
    default_error: ClassVar[type[ToolHubError]] = InvalidArgumentsError
    label: ClassVar[str] = "payload"

    @classmethod
    def parse(cls, data: Any) -> "PayloadModel":
        """Validate a raw payload.

        Raises:
            ToolHubError: With the code mapped from the first failing field.
        """
        if not isinstance(data, dict):
            raise cls.default_error(f"{cls.label} must be an object")
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            first = e.errors()[0]
            field_name = str(first["loc"][0]) if first["loc"] else ""
            message = f"{cls.label} field '{field_name}': {first['msg']}"
            details = {
                "errors": [
                    {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
                    for err in e.errors()
                ]
            }
            code = cls.field_error_codes.get(field_name)
            if code is not None:
                raise ToolHubError(message, details=details, code=code)
            raise cls.default_error(message, details=details)


class RegisterToolData(PayloadModel):
    """Payload of a register_tool request."""

    field_error_codes: ClassVar[dict[str, ErrorCode]] = {
        "name": ErrorCode.INVALID_NAME,
        "schema": ErrorCode.INVALID_SCHEMA,
    }
    label: ClassVar[str] = "Tool registration data"

    name: str
    tool_schema: dict[str, Any] = Field(alias="schema")
    description: str | None = None


class ExecuteToolData(PayloadModel):
    """Payload of an execute_tool request."""

    field_error_codes: ClassVar[dict[str, ErrorCode]] = {
        "name": ErrorCode.INVALID_NAME,
    }
    label: ClassVar[str] = "Tool execution data"

    execution_id: str = Field(alias="executionId", min_length=1)
    name: str = Field(min_length=1)
    args: dict[str, Any] | None = None


class ToolResultError(BaseModel):
    """Error reported by a tool provider."""

    code: str | None = None
    message: str


class ToolResultData(PayloadModel):
    """Payload of a tool_result message sent by a tool provider."""

    label: ClassVar[str] = "Tool result data"

    execution_id: str = Field(alias="executionId", min_length=1)
    result: Any = None
    error: ToolResultError | None = None


def parse_envelope(raw: Any) -> tuple[MessageType, Any]:
    """Validate the envelope shape.

    Args:
        raw: Decoded JSON message.

    Returns:
        Tuple of (message type, raw payload).

    Raises:
        InvalidMessageError: If the message is not an object with a known type.
    """
    if not isinstance(raw, dict):
        raise InvalidMessageError("Message must be a JSON object")
    try:
        envelope = Envelope.model_validate(raw)
    except ValidationError:
        raise InvalidMessageError("Message must have a string type field")

    try:
        message_type = MessageType(envelope.type)
    except ValueError:
        raise InvalidMessageError(f"Unsupported message type: {envelope.type}")
    if message_type not in INBOUND_TYPES:
        raise InvalidMessageError(f"Unsupported message type: {envelope.type}")
    return message_type, envelope.data


def data_envelope(message_type: MessageType, data: dict[str, Any]) -> dict[str, Any]:
    """Build an outbound envelope carrying a data payload."""
    return {"type": message_type.value, "data": data}


def error_envelope(
    error: ToolHubError, execution_id: str | None = None
) -> dict[str, Any]:
    """Build an outbound error envelope."""
    payload = error.to_dict()
    if execution_id is not None:
        payload["executionId"] = execution_id
    return {"type": MessageType.ERROR.value, "error": payload}

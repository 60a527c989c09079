"""ToolRegistry for tool registration and lookup.

This module provides the ToolRegistry class which handles:
- Validating tool names and schemas on registration
- Replacing descriptors registered under an existing name
- Lookup and listing of registered tools
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from toolhub_server.errors import InvalidNameError, InvalidSchemaError
from toolhub_server.schema import (
    DEFAULT_MAX_DEPTH,
    Schema,
    parse_schema,
    validate_tool_schema,
)

logger = logging.getLogger(__name__)


def utc_timestamp() -> str:
    """Current UTC time as an ISO 8601 string with a Z suffix."""
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class ToolDescriptor:
    """A registered tool.

    Attributes:
        name: Unique tool name.
        schema: Raw argument schema as sent by the registering peer.
        parsed_schema: The same schema parsed for argument validation.
        description: Optional human-readable description.
        registered_at: ISO 8601 registration timestamp.
        owner: Connection ID of the registering peer, None for in-process tools.
    """

    name: str
    schema: dict[str, Any]
    parsed_schema: Schema = field(repr=False, compare=False)
    description: str | None = None
    registered_at: str = ""
    owner: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Wire representation of the descriptor (owner is not exposed)."""
        return {
            "name": self.name,
            "schema": self.schema,
            "description": self.description,
            "registeredAt": self.registered_at,
        }


class ToolRegistry:
    """Holds validated tool descriptors keyed by name.

    Registration under an existing name replaces the previous descriptor.
    Mutations are serialized through a single lock.
    """

    def __init__(self, max_schema_depth: int = DEFAULT_MAX_DEPTH):
        """Initialize an empty registry.

        Args:
            max_schema_depth: Nesting ceiling applied to registered schemas.
        """
        self.max_schema_depth = max_schema_depth
        self._tools: dict[str, ToolDescriptor] = {}
        self._lock = asyncio.Lock()

    async def register(
        self,
        name: Any,
        schema: Any,
        description: str | None = None,
        owner: str | None = None,
    ) -> ToolDescriptor:
        """Register a tool, replacing any tool with the same name.

        Args:
            name: Tool name, must be a non-empty string.
            schema: Raw argument schema, must be a well-formed object schema.
            description: Optional description.
            owner: Connection ID of the registering peer.

        Returns:
            The stored ToolDescriptor.

        Raises:
            InvalidNameError: If the name is empty or not a string.
            InvalidSchemaError: If the schema fails validation.
        """
        if not isinstance(name, str) or not name:
            raise InvalidNameError("Tool name must be a non-empty string")

        result = validate_tool_schema(schema, max_depth=self.max_schema_depth)
        if not result:
            raise InvalidSchemaError(
                f"Invalid schema for tool '{name}': {'; '.join(result.errors)}",
                details={"errors": result.errors},
            )

        descriptor = ToolDescriptor(
            name=name,
            schema=schema,
            parsed_schema=parse_schema(schema, max_depth=self.max_schema_depth),
            description=description,
            registered_at=utc_timestamp(),
            owner=owner,
        )

        async with self._lock:
            replaced = name in self._tools
            self._tools[name] = descriptor

        if replaced:
            logger.info(f"Replaced tool registration: {name}")
        else:
            logger.info(f"Registered tool: {name}")
        return descriptor

    def lookup(self, name: str) -> ToolDescriptor | None:
        """Get a tool by name, or None if it is not registered."""
        return self._tools.get(name)

    def list_tools(self) -> list[ToolDescriptor]:
        """Snapshot of all registered tools in registration order."""
        return list(self._tools.values())

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

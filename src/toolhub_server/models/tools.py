"""Pydantic models for the tools API."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ToolResponse(BaseModel):
    """A registered tool as returned by the tools API."""

    name: str = Field(description="Unique tool name")
    tool_schema: dict[str, Any] = Field(
        alias="schema", description="Argument schema of the tool"
    )
    description: str | None = Field(default=None, description="Tool description")
    registered_at: str = Field(
        alias="registeredAt", description="ISO 8601 registration timestamp"
    )

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "name": "echo",
                "schema": {
                    "type": "object",
                    "properties": {"x": {"type": "string"}},
                    "required": ["x"],
                },
                "description": "Echoes its input",
                "registeredAt": "2025-01-15T10:30:00.000000Z",
            }
        },
    )


class ToolListResponse(BaseModel):
    """Response body for GET /api/v1/tools."""

    tools: list[ToolResponse] = Field(
        default_factory=list, description="Registered tools in registration order"
    )

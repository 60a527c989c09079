"""Tools API endpoints.

Read-only HTTP view of the tool registry. Registration happens over the
WebSocket protocol.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from toolhub_server.dependencies import get_registry
from toolhub_server.models.tools import ToolListResponse, ToolResponse
from toolhub_server.tools import ToolRegistry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/tools", tags=["tools"])


@router.get("", response_model=ToolListResponse)
async def list_tools(
    registry: ToolRegistry = Depends(get_registry),
) -> ToolListResponse:
    """List all registered tools.

    Args:
        registry: Injected tool registry

    Returns:
        ToolListResponse with tools in registration order
    """
    tools = [ToolResponse.model_validate(t.to_dict()) for t in registry.list_tools()]
    logger.debug(f"Listed {len(tools)} tools")
    return ToolListResponse(tools=tools)


@router.get("/{name}", response_model=ToolResponse)
async def get_tool(
    name: str,
    registry: ToolRegistry = Depends(get_registry),
) -> ToolResponse:
    """Get a registered tool by name.

    Raises:
        HTTPException: 404 if no tool is registered under the name
    """
    descriptor = registry.lookup(name)
    if descriptor is None:
        raise HTTPException(
            status_code=404,
            detail={
                "error": {
                    "code": "TOOL_NOT_FOUND",
                    "message": f"Tool not found: {name}",
                    "details": {"name": name},
                }
            },
        )
    return ToolResponse.model_validate(descriptor.to_dict())

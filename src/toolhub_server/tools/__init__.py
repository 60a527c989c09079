"""Tool registration and execution handlers.

This package holds the tool registry and the handlers that perform the
computation behind an invocation.
"""

from toolhub_server.tools.handlers import LocalToolHandler, PeerToolHandler, ToolHandler
from toolhub_server.tools.registry import ToolDescriptor, ToolRegistry

__all__ = [
    "LocalToolHandler",
    "PeerToolHandler",
    "ToolDescriptor",
    "ToolHandler",
    "ToolRegistry",
]

"""toolhub-server: WebSocket coordinator for remotely registered tools.

This package lets connected peers register schema-described tools, invoke
them, and receive correlated execution-status updates.
"""

from toolhub_server.app import VERSION as __version__
from toolhub_server.app import create_app

__all__ = ["create_app", "__version__"]

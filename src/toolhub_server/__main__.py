"""CLI entry point for toolhub-server.

This module provides the command-line interface for starting the toolhub-server.
It can be invoked as `toolhub-server` (via the script entry point) or
`python -m toolhub_server`.
"""

import argparse
import sys

import uvicorn

from toolhub_server import __version__, create_app
from toolhub_server.config import LOG_LEVELS, ToolHubSettings


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the toolhub-server CLI."""
    parser = argparse.ArgumentParser(
        prog="toolhub-server",
        description="WebSocket coordinator for registering and executing tools",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"toolhub-server {__version__}",
    )

    parser.add_argument(
        "--host",
        type=str,
        default=None,
        help="Host to bind the server to (default: 127.0.0.1, can be set via TOOLHUB_HOST)",
    )

    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port to bind the server to (default: 5005, can be set via TOOLHUB_PORT)",
    )

    parser.add_argument(
        "--execution-timeout",
        type=float,
        default=None,
        help="Seconds before a running execution fails with TIMEOUT, 0 disables "
        "(default: 300, can be set via TOOLHUB_EXECUTION_TIMEOUT)",
    )

    parser.add_argument(
        "--no-discovery",
        action="store_true",
        help="Disable the /ws/discovery endpoint",
    )

    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=list(LOG_LEVELS),
        help="Logging level (default: INFO, can be set via TOOLHUB_LOG_LEVEL)",
    )

    return parser


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the toolhub-server CLI.

    Parses command-line arguments and starts the uvicorn server with the
    FastAPI application.
    """
    args = build_parser().parse_args(argv)

    # Build settings, CLI args override environment variables
    settings_kwargs = {}
    if args.host is not None:
        settings_kwargs["host"] = args.host
    if args.port is not None:
        settings_kwargs["port"] = args.port
    if args.execution_timeout is not None:
        settings_kwargs["execution_timeout"] = args.execution_timeout
    if args.no_discovery:
        settings_kwargs["discovery_enabled"] = False
    if args.log_level is not None:
        settings_kwargs["log_level"] = args.log_level

    settings = ToolHubSettings(**settings_kwargs)

    # Create the FastAPI app
    app = create_app(settings=settings)

    # Start uvicorn
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    sys.exit(main())

#!/usr/bin/env python3
"""
Entrypoint for ServiceNow MCP Server

This file handles starting the MCP server in different environments:
- Local development: runs the stdio transport on a new event loop
- Hosted runners: an event loop is already running, so the server is returned
"""

import asyncio
import sys

from servicenow_mcp.config import ServerConfig, configure_logging
from servicenow_mcp.errors import ConfigurationError
from servicenow_mcp.server import create_server, main as serve


def main():
    """Main entrypoint that handles asyncio properly."""
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        print("Starting in local mode with new event loop", file=sys.stderr)
        serve()
        return None

    print("Running in async context, returning the server instance", file=sys.stderr)
    try:
        config = ServerConfig.from_env()
    except ConfigurationError as e:
        print(f"Error starting MCP server: {e}", file=sys.stderr)
        sys.exit(1)
    configure_logging(config.debug)
    return create_server(config)


if __name__ == "__main__":
    main()

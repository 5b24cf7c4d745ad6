"""
HTTP entrypoint for ServiceNow MCP Server

Exports an ASGI application that serves MCP over streamable HTTP instead of
stdio, e.g. ``uvicorn horizon_entrypoint:app``.
"""

from servicenow_mcp.config import ServerConfig, configure_logging
from servicenow_mcp.server import create_server

config = ServerConfig.from_env()
configure_logging(config.debug)

app = create_server(config).streamable_http_app()

__all__ = ['app']

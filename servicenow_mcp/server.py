"""
ServiceNow MCP server.

Wires the client, tool router, resource resolver and prompt catalog into a
FastMCP server. Run with ``servicenow-mcp`` (stdio) or serve
``horizon_entrypoint:app`` over HTTP.
"""

import asyncio
import logging
import sys
from typing import Any, Dict, Iterable, List, Optional, Sequence

from mcp.server.fastmcp import FastMCP
from mcp.server.lowlevel.helper_types import ReadResourceContents
from mcp.shared.exceptions import McpError
from mcp.types import (
    CallToolRequest,
    CallToolResult,
    GetPromptResult,
    Prompt,
    Resource,
    ResourceTemplate,
    ServerResult,
    TextContent,
    Tool,
)

from . import __version__, prompts
from .client import ServiceNowClient
from .config import ServerConfig, configure_logging
from .errors import ConfigurationError, ServiceNowError, describe
from .resources import EXAMPLES_URI, JSON_MIME, MARKDOWN_MIME, ResourceResolver, resource_templates
from .router import ToolRouter

logger = logging.getLogger(__name__)

SERVER_NAME = "servicenow-mcp-server"
INSTRUCTIONS = (
    "Tools, resources and prompts for a ServiceNow instance: incidents, script includes, "
    "any table through the Table API, Process Automation definitions with their lanes and "
    "activities, and attachments. Read servicenow://examples for usage examples."
)


class ServiceNowMCP(FastMCP):
    """FastMCP server whose tools, resources and prompts come from ServiceNow catalogs."""

    def __init__(self, client: ServiceNowClient, **settings: Any):
        self.client = client
        self.router = ToolRouter(client)
        self.resolver = ResourceResolver(client)
        super().__init__(SERVER_NAME, instructions=INSTRUCTIONS, **settings)
        # Replaces the SDK handler, which folds every exception into an isError result
        self._mcp_server.request_handlers[CallToolRequest] = self._handle_call_tool

    async def list_tools(self) -> List[Tool]:
        return self.router.list_tools()

    async def call_tool(self, name: str, arguments: Dict[str, Any]) -> Sequence[TextContent]:
        # Handlers do blocking HTTP
        return await asyncio.to_thread(self.router.dispatch, name, arguments)

    async def _handle_call_tool(self, request: CallToolRequest) -> ServerResult:
        """
        Answer a ``tools/call`` request.

        McpError propagates so the client receives a JSON-RPC error with its
        code. Any other failure is reported as an ``isError`` tool result.
        """
        try:
            content = await self.call_tool(request.params.name, request.params.arguments or {})
        except McpError:
            raise
        except Exception as e:
            logger.exception("Tool %s failed", request.params.name)
            return ServerResult(CallToolResult(content=[TextContent(type="text", text=describe(e))], isError=True))
        return ServerResult(CallToolResult(content=list(content), isError=False))

    async def list_resources(self) -> List[Resource]:
        return [
            Resource(
                uri=EXAMPLES_URI,
                name="Example Prompts",
                description="Example prompts and documentation for using ServiceNow MCP tools",
                mimeType=MARKDOWN_MIME,
            )
        ]

    async def list_resource_templates(self) -> List[ResourceTemplate]:
        return [
            ResourceTemplate(
                uriTemplate=template.uri_template,
                name=template.name,
                description=template.description,
                mimeType=JSON_MIME,
            )
            for template in resource_templates()
        ]

    async def read_resource(self, uri: Any) -> Iterable[ReadResourceContents]:
        uri = str(uri)
        if uri.rstrip("/") == EXAMPLES_URI:
            uri = EXAMPLES_URI
        text, mime_type = await asyncio.to_thread(self.resolver.read, uri)
        return [ReadResourceContents(content=text, mime_type=mime_type)]

    async def list_prompts(self) -> List[Prompt]:
        return prompts.list_prompts()

    async def get_prompt(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> GetPromptResult:
        return prompts.get_prompt(name, arguments)


def create_server(config: ServerConfig, client: Optional[ServiceNowClient] = None,
                  **settings: Any) -> ServiceNowMCP:
    """Build the server for ``config``. ``client`` may be supplied for testing."""
    if client is None:
        client = ServiceNowClient(config)
    return ServiceNowMCP(client, **settings)


def main() -> None:
    """Console entry point: load config, authenticate, serve over stdio."""
    try:
        config = ServerConfig.from_env()
    except ConfigurationError as e:
        configure_logging(False)
        logger.error("%s", e)
        sys.exit(1)

    configure_logging(config.debug)
    server = create_server(config)
    logger.info("Starting %s %s for %s", SERVER_NAME, __version__, config.instance_url)

    try:
        server.client.auth.authenticate()
    except ServiceNowError as e:
        # Retried on the first tool call
        logger.error("Initial authentication failed: %s", describe(e))

    try:
        server.run(transport="stdio")
    except KeyboardInterrupt:
        pass
    finally:
        logger.info("Server stopped")


if __name__ == "__main__":
    main()

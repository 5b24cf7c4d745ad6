"""Name-based dispatch of tool calls to the handler groups."""

import logging
from typing import Any, Dict, Iterable, List, Optional

from mcp.shared.exceptions import McpError
from mcp.types import TextContent, Tool
from pydantic import ValidationError

from .client import ServiceNowClient
from .errors import describe, internal_error, invalid_request, method_not_found
from .tools import CATALOG, ToolGroup, ToolSpec
from .tools.common import dumps

logger = logging.getLogger(__name__)


def _validation_message(name: str, error: ValidationError) -> str:
    problems = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"]) or "arguments"
        problems.append(f"{location}: {item['msg']}")
    return f"Invalid arguments for {name}: " + "; ".join(problems)


class ToolRouter:
    """
    Routes ``tools/call`` requests to their handlers.

    The routing table is built once from the tool catalogs. Construction fails
    if two tools share a name or a handler group has no tools, so a tool can
    never be silently unreachable.
    """

    def __init__(self, client: ServiceNowClient, tools: Iterable[ToolSpec] = CATALOG):
        self.client = client
        self.table: Dict[str, ToolSpec] = {}

        for spec in tools:
            if spec.name in self.table:
                raise ValueError(f"Duplicate tool name: {spec.name}")
            self.table[spec.name] = spec

        covered = {spec.group for spec in self.table.values()}
        empty = [group.value for group in ToolGroup if group not in covered]
        if empty:
            raise ValueError(f"Handler groups without tools: {', '.join(empty)}")

    def list_tools(self) -> List[Tool]:
        return [
            Tool(name=spec.name, description=spec.description, inputSchema=spec.input_schema())
            for spec in self.table.values()
        ]

    def dispatch(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> List[TextContent]:
        spec = self.table.get(name)
        if spec is None:
            raise method_not_found(f"Unknown tool: {name}")

        try:
            params = spec.params.model_validate(arguments or {})
        except ValidationError as e:
            raise invalid_request(_validation_message(name, e)) from e

        logger.debug("Calling %s", name)
        try:
            result = spec.handler(self.client, params)
        except McpError:
            raise
        except Exception as e:
            logger.error("Tool %s failed: %s", name, describe(e))
            raise internal_error(f"Tool execution failed: {name}: {describe(e)}") from e

        text = result if isinstance(result, str) else dumps(result)
        return [TextContent(type="text", text=text)]

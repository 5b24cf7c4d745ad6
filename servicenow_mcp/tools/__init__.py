"""Tool catalogs, one module per handler group."""

from . import (
    attachments, incidents, process_activities, process_definitions, process_lanes,
    script_includes, table_api,
)
from .common import ToolGroup, ToolSpec

CATALOG = [
    *incidents.TOOLS,
    *script_includes.TOOLS,
    *table_api.TOOLS,
    *process_definitions.TOOLS,
    *process_lanes.TOOLS,
    *process_activities.TOOLS,
    *attachments.TOOLS,
]

__all__ = ["CATALOG", "ToolGroup", "ToolSpec"]

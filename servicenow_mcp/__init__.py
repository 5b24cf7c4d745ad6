"""MCP server exposing ServiceNow incidents, tables, process definitions and attachments."""

__version__ = "1.0.0"

"""
Shared pieces for the tool catalogs: the tool descriptor, the handler groups,
common argument models and text formatting helpers.
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Type, Union

from pydantic import BaseModel, ConfigDict, Field

from ..client import ServiceNowClient

DICTIONARY_TABLE = "sys_dictionary"
DICTIONARY_FIELDS = [
    "element", "column_label", "internal_type", "max_length", "mandatory",
    "reference", "choice_field", "default_value", "comments",
]

ToolResult = Union[str, Dict[str, Any], List[Any]]


class ToolGroup(str, Enum):
    """Handler groups a tool can belong to."""

    INCIDENT = "incident"
    SCRIPT_INCLUDE = "script_include"
    TABLE = "table"
    PROCESS_DEFINITION = "process_definition"
    PROCESS_LANE = "process_lane"
    PROCESS_ACTIVITY = "process_activity"
    ATTACHMENT = "attachment"


@dataclass(frozen=True)
class ToolSpec:
    """One callable tool: its name, arguments model and handler."""

    name: str
    group: ToolGroup
    description: str
    params: Type[BaseModel]
    handler: Callable[[ServiceNowClient, Any], ToolResult]

    def input_schema(self) -> Dict[str, Any]:
        schema = self.params.model_json_schema()
        schema.pop("title", None)
        return schema


class NoParams(BaseModel):
    """Tools that take no arguments."""


class AliasedParams(BaseModel):
    """Arguments declared with camelCase names; snake_case is accepted too."""

    model_config = ConfigDict(populate_by_name=True)


class ListParams(BaseModel):
    """Query, field selection and paging shared by the list tools."""

    query: Optional[str] = Field(None, description="ServiceNow encoded query string (e.g. 'active=true^priority=1')")
    fields: Optional[str] = Field(None, description="Comma-separated list of fields to retrieve")
    limit: int = Field(100, ge=1, le=1000, description="Maximum number of records to return (default: 100)")
    offset: int = Field(0, ge=0, description="Number of records to skip (for pagination)")
    order_by: Optional[str] = Field(None, description="Field to order by (prefix with ^ for descending, e.g. '^sys_created_on')")


def dumps(value: Any) -> str:
    return json.dumps(value, indent=2)


def results(response: Dict[str, Any]) -> Any:
    """The ``result`` member of a Table API response."""
    return response.get("result")


def count_header(noun: str, count: int, limit: Optional[int], suffix: str = "") -> str:
    text = f"Found {count} {noun}(s){suffix}"
    if limit and count == limit:
        text += f" (showing first {limit})"
    return text + ":\n\n"


def is_true(value: Any) -> bool:
    """ServiceNow returns booleans as the strings 'true'/'false'."""
    return value is True or str(value).lower() == "true"


def query_dictionary(client: ServiceNowClient, table: str, fields=None, limit: int = 1000):
    response = client.query_table(
        DICTIONARY_TABLE,
        query=f"name={table}^active=true",
        fields=fields or DICTIONARY_FIELDS,
        limit=limit,
        offset=0,
        order_by="element",
    )
    return results(response) or []


def format_schema(table: str, rows: List[Dict[str, Any]]) -> str:
    """Readable listing of ``sys_dictionary`` rows for one table."""
    text = f'Schema for table "{table}" ({len(rows)} fields):\n\n'
    if not rows:
        return text + "No field definitions found for this table."

    for index, field in enumerate(rows, start=1):
        if not field.get("element"):
            continue
        text += f"{index}. {field['element']}"
        if field.get("column_label"):
            text += f" ({field['column_label']})"
        text += "\n"

        text += f"   Type: {field.get('internal_type')}"
        if field.get("max_length") and field.get("max_length") != "0":
            text += f" (max length: {field['max_length']})"
        if is_true(field.get("mandatory")):
            text += " - MANDATORY"
        text += "\n"

        if field.get("reference"):
            text += f"   Reference: {field['reference']}\n"
        if is_true(field.get("choice_field")):
            text += "   Choice field: Yes\n"
        if field.get("default_value"):
            text += f"   Default: {field['default_value']}\n"
        if field.get("comments"):
            text += f"   Description: {field['comments']}\n"
        text += "\n"
    return text


def to_record(params: BaseModel, exclude=None) -> Dict[str, Any]:
    """Model fields as ServiceNow column values (numbers and booleans become strings)."""
    data = {}
    for key, value in params.model_dump(exclude_none=True, exclude=exclude).items():
        if isinstance(value, bool):
            value = "true" if value else "false"
        elif isinstance(value, int):
            value = str(value)
        data[key] = value
    return data

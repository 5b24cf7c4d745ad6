"""Generic Table API tools that work against any table."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from ..client import ServiceNowClient
from .common import (
    ToolGroup, ToolSpec, count_header, dumps, format_schema, query_dictionary, results,
)

# Shown first, in this order, when summarising a record
KEY_FIELDS = ["number", "name", "title", "short_description", "display_value"]


class QueryTableParams(BaseModel):
    table: str = Field(..., min_length=1, description="Name of the ServiceNow table to query")
    query: Optional[str] = Field(None, description='ServiceNow query string to filter records (e.g., "active=true^stateIN1,2")')
    fields: Optional[str] = Field(None, description="Comma-separated list of fields to retrieve")
    limit: int = Field(100, ge=1, le=1000, description="Maximum number of records to return (default: 100)")
    offset: int = Field(0, ge=0, description="Number of records to skip (for pagination)")
    order_by: Optional[str] = Field(None, description='Field to order by (prefix with ^ for descending, e.g., "^sys_created_on")')
    display_value: Optional[str] = Field(None, description='Return display values: "true", "false" or "all" (optional)')


class GetRecordParams(BaseModel):
    table: str = Field(..., min_length=1, description="Name of the ServiceNow table")
    sys_id: str = Field(..., min_length=1, description="The sys_id of the record to retrieve")
    fields: Optional[str] = Field(None, description="Comma-separated list of fields to retrieve (optional)")


class CreateRecordParams(BaseModel):
    table: str = Field(..., min_length=1, description="Name of the ServiceNow table")
    data: Dict[str, Any] = Field(..., description="Object containing the field values for the new record")


class UpdateRecordParams(BaseModel):
    table: str = Field(..., min_length=1, description="Name of the ServiceNow table")
    sys_id: str = Field(..., min_length=1, description="The sys_id of the record to update")
    data: Dict[str, Any] = Field(..., description="Object containing the field values to update")


class DeleteRecordParams(BaseModel):
    table: str = Field(..., min_length=1, description="Name of the ServiceNow table")
    sys_id: str = Field(..., min_length=1, description="The sys_id of the record to delete")


class TableSchemaParams(BaseModel):
    table: str = Field(..., min_length=1, description="Name of the ServiceNow table to get schema for")


def summarize_record(record: Dict[str, Any]) -> str:
    text = f"Record {record.get('sys_id')}:\n"
    shown = set()
    for field in KEY_FIELDS:
        if record.get(field):
            text += f"   {field}: {record[field]}\n"
            shown.add(field)
    for field, value in record.items():
        if field in shown or field.startswith("sys_") or not value:
            continue
        text += f"   {field}: {value}\n"
    return text + f"   sys_created_on: {record.get('sys_created_on')}\n"


def query_table(client: ServiceNowClient, params: QueryTableParams) -> str:
    records = results(client.query_table(
        params.table, params.query, params.fields, params.limit, params.offset,
        params.order_by, params.display_value,
    )) or []

    text = count_header("record", len(records), params.limit, f' in table "{params.table}"')
    if not records:
        return text + "No records found matching the criteria."

    for index, record in enumerate(records, start=1):
        text += f"{index}. {summarize_record(record)}\n"
    return text


def get_record(client: ServiceNowClient, params: GetRecordParams) -> str:
    record = results(client.get_record(params.table, params.sys_id, params.fields))
    return (
        f'Successfully retrieved record from table "{params.table}" (sys_id: {params.sys_id}):'
        f"\n\n{dumps(record)}"
    )


def create_record(client: ServiceNowClient, params: CreateRecordParams) -> str:
    record = results(client.create_record(params.table, params.data)) or {}
    return (
        f'Successfully created record in table "{params.table}" (sys_id: {record.get("sys_id")}):'
        f"\n\n{dumps(record)}"
    )


def update_record(client: ServiceNowClient, params: UpdateRecordParams) -> str:
    record = results(client.update_record(params.table, params.sys_id, params.data))
    return (
        f'Successfully updated record in table "{params.table}" (sys_id: {params.sys_id}):'
        f"\n\n{dumps(record)}"
    )


def delete_record(client: ServiceNowClient, params: DeleteRecordParams) -> Dict[str, Any]:
    client.delete_record(params.table, params.sys_id)
    return {"success": True, "message": f"Record {params.sys_id} deleted from {params.table}"}


def table_schema(client: ServiceNowClient, params: TableSchemaParams) -> str:
    return format_schema(params.table, query_dictionary(client, params.table))


TOOLS = [
    ToolSpec("servicenow_query_table", ToolGroup.TABLE,
             "Query any ServiceNow table with filtering and pagination", QueryTableParams, query_table),
    ToolSpec("servicenow_get_record", ToolGroup.TABLE,
             "Get a specific record from any ServiceNow table by sys_id", GetRecordParams, get_record),
    ToolSpec("servicenow_create_record", ToolGroup.TABLE,
             "Create a new record in any ServiceNow table", CreateRecordParams, create_record),
    ToolSpec("servicenow_update_record", ToolGroup.TABLE,
             "Update an existing record in any ServiceNow table", UpdateRecordParams, update_record),
    ToolSpec("servicenow_delete_record", ToolGroup.TABLE,
             "Delete a record from any ServiceNow table", DeleteRecordParams, delete_record),
    ToolSpec("servicenow_table_schema", ToolGroup.TABLE,
             "Get schema information for a ServiceNow table (field definitions)", TableSchemaParams, table_schema),
]

"""Script Include tools (``sys_script_include`` table)."""

from typing import Literal, Optional

from pydantic import BaseModel, Field

from ..client import ServiceNowClient
from .common import ListParams, ToolGroup, ToolSpec, count_header, dumps, is_true, results

TABLE = "sys_script_include"
SNIPPET_LENGTH = 200

Access = Literal["public", "package_private"]


class GetScriptIncludeParams(BaseModel):
    sys_id: str = Field(..., min_length=1, description="The sys_id of the script include to retrieve")
    fields: Optional[str] = Field(None, description="Comma-separated list of fields to retrieve (optional)")


class CreateScriptIncludeParams(BaseModel):
    name: str = Field(..., min_length=1, description="Name of the script include")
    script: str = Field(..., description="The JavaScript code for the script include")
    description: Optional[str] = Field(None, description="Description of what the script include does")
    api_name: Optional[str] = Field(None, description="API name for the script include (if different from name)")
    client_callable: bool = Field(False, description="Whether the script include can be called from client-side scripts")
    active: bool = Field(True, description="Whether the script include is active (default: true)")
    access: Access = Field("public", description="Access level for the script include")


class UpdateScriptIncludeParams(BaseModel):
    sys_id: str = Field(..., min_length=1, description="The sys_id of the script include to update")
    name: Optional[str] = Field(None, description="Name of the script include")
    script: Optional[str] = Field(None, description="The JavaScript code for the script include")
    description: Optional[str] = Field(None, description="Description of what the script include does")
    api_name: Optional[str] = Field(None, description="API name for the script include")
    client_callable: Optional[bool] = Field(None, description="Whether the script include can be called from client-side scripts")
    active: Optional[bool] = Field(None, description="Whether the script include is active")
    access: Optional[Access] = Field(None, description="Access level for the script include")


class SearchScriptIncludesParams(BaseModel):
    search_term: str = Field(..., min_length=1, description="Term to search for in script include names or content")
    search_in_script: bool = Field(False, description="Whether to search in the script content as well (default: false)")
    active_only: bool = Field(True, description="Whether to search only active script includes (default: true)")
    limit: int = Field(50, ge=1, le=200, description="Maximum number of records to return (default: 50)")


def _title(script: dict) -> str:
    text = f"{script.get('name')}"
    if script.get("api_name") and script.get("api_name") != script.get("name"):
        text += f" (API: {script['api_name']})"
    return text + "\n"


def get_script_include(client: ServiceNowClient, params: GetScriptIncludeParams) -> str:
    record = results(client.get_record(TABLE, params.sys_id, params.fields)) or {}
    return (
        f'Successfully retrieved script include "{record.get("name")}" (sys_id: {params.sys_id}):'
        f"\n\n{dumps(record)}"
    )


def create_script_include(client: ServiceNowClient, params: CreateScriptIncludeParams) -> str:
    record = results(client.create_record(TABLE, params.model_dump(exclude_none=True))) or {}
    return (
        f'Successfully created script include "{record.get("name")}" (sys_id: {record.get("sys_id")}):'
        f"\n\n{dumps(record)}"
    )


def update_script_include(client: ServiceNowClient, params: UpdateScriptIncludeParams) -> str:
    data = params.model_dump(exclude_none=True, exclude={"sys_id"})
    record = results(client.update_record(TABLE, params.sys_id, data)) or {}
    return (
        f'Successfully updated script include "{record.get("name")}" (sys_id: {params.sys_id}):'
        f"\n\n{dumps(record)}"
    )


def list_script_includes(client: ServiceNowClient, params: ListParams) -> str:
    scripts = results(client.query_table(
        TABLE, params.query, params.fields, params.limit, params.offset, params.order_by
    )) or []

    text = count_header("script include", len(scripts), params.limit)
    if not scripts:
        return text + "No script includes found matching the criteria."

    for index, script in enumerate(scripts, start=1):
        text += f"{index}. {_title(script)}"
        if script.get("description"):
            text += f"   Description: {script['description']}\n"
        text += f"   Active: {'Yes' if is_true(script.get('active')) else 'No'}"
        if is_true(script.get("client_callable")):
            text += " | Client Callable: Yes"
        text += f"\n   Created: {script.get('sys_created_on')}\n\n"
    return text


def build_search_query(params: SearchScriptIncludesParams) -> str:
    term = params.search_term
    query = "active=true^" if params.active_only else ""
    query += f"nameLIKE{term}^ORapi_nameLIKE{term}"
    if params.search_in_script:
        query += f"^ORscriptLIKE{term}"
    return query


def search_script_includes(client: ServiceNowClient, params: SearchScriptIncludesParams) -> str:
    scripts = results(client.query_table(TABLE, build_search_query(params), limit=params.limit)) or []

    text = count_header("script include", len(scripts), params.limit, f' matching "{params.search_term}"')
    if not scripts:
        return text + "No script includes found matching the search term."

    term = params.search_term.lower()
    for index, script in enumerate(scripts, start=1):
        text += f"{index}. {_title(script)}"
        if script.get("description"):
            text += f"   Description: {script['description']}\n"

        body = script.get("script") or ""
        if params.search_in_script and term in body.lower():
            ellipsis = "..." if len(body) > SNIPPET_LENGTH else ""
            text += f"   Script snippet: {body[:SNIPPET_LENGTH]}{ellipsis}\n"

        text += f"   Active: {'Yes' if is_true(script.get('active')) else 'No'}\n\n"
    return text


TOOLS = [
    ToolSpec("servicenow_script_include_get", ToolGroup.SCRIPT_INCLUDE,
             "Retrieve a specific script include by sys_id", GetScriptIncludeParams, get_script_include),
    ToolSpec("servicenow_script_include_create", ToolGroup.SCRIPT_INCLUDE,
             "Create a new script include in ServiceNow", CreateScriptIncludeParams, create_script_include),
    ToolSpec("servicenow_script_include_update", ToolGroup.SCRIPT_INCLUDE,
             "Update an existing script include", UpdateScriptIncludeParams, update_script_include),
    ToolSpec("servicenow_script_include_list", ToolGroup.SCRIPT_INCLUDE,
             "List script includes with optional filtering", ListParams, list_script_includes),
    ToolSpec("servicenow_script_include_search", ToolGroup.SCRIPT_INCLUDE,
             "Search script includes by name or content", SearchScriptIncludesParams, search_script_includes),
]

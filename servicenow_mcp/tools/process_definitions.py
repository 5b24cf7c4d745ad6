"""Process Automation Designer definitions (``sys_pd_process_definition``)."""

from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field

from ..client import ServiceNowClient
from .common import (
    ListParams, NoParams, ToolGroup, ToolSpec, count_header, dumps, format_schema, is_true,
    query_dictionary, results,
)

TABLE = "sys_pd_process_definition"

CREATE_DEFAULTS = {
    "active": True,
    "access": "public",
    "restartable": "RESTARTABLE_FALSE",
    "status": "draft",
    "view_type": "DIAGRAM",
    "schema_version": "2",
}

Access = Literal["public", "restricted"]
Restartable = Literal["RESTARTABLE_TRUE", "RESTARTABLE_FALSE"]


class GetProcessDefinitionParams(BaseModel):
    sys_id: str = Field(..., min_length=1, description="The sys_id of the process definition to retrieve")
    fields: Optional[str] = Field(None, description="Comma-separated list of fields to retrieve (optional)")


class SearchProcessDefinitionsParams(BaseModel):
    search_term: str = Field(..., min_length=1, description="Term to search for in process definition names, labels, or descriptions")
    active_only: bool = Field(True, description="Whether to search only active process definitions (default: true)")
    published_only: bool = Field(True, description="Whether to search only published process definitions (default: true)")
    limit: int = Field(50, ge=1, le=200, description="Maximum number of records to return (default: 50)")


class CreateProcessDefinitionParams(BaseModel):
    name: str = Field(..., min_length=1, description="Name of the process definition (must be unique)")
    label: str = Field(..., min_length=1, description="Display label for the process definition")
    description: Optional[str] = Field(None, description="Description of what the process does")
    access: Optional[Access] = Field(None, description="Access level for the process")
    active: Optional[bool] = Field(None, description="Whether the process is active (default: true)")
    restartable: Optional[Restartable] = Field(None, description="Whether the process can be restarted")
    process_type: Optional[str] = Field(None, description="Type of process (leave empty for default)")


class UpdateProcessDefinitionParams(BaseModel):
    sys_id: str = Field(..., min_length=1, description="The sys_id of the process definition to update")
    name: Optional[str] = Field(None, description="Name of the process definition")
    label: Optional[str] = Field(None, description="Display label for the process definition")
    description: Optional[str] = Field(None, description="Description of what the process does")
    access: Optional[Access] = Field(None, description="Access level for the process")
    active: Optional[bool] = Field(None, description="Whether the process is active")
    status: Optional[Literal["draft", "published", "retired"]] = Field(None, description="Process status")
    restartable: Optional[Restartable] = Field(None, description="Whether the process can be restarted")


class ExecuteProcessDefinitionParams(BaseModel):
    sys_id: str = Field(..., min_length=1, description="The sys_id of the process definition to execute")
    input_data: Dict[str, Any] = Field(default_factory=dict, description="Input data for the process execution (if required)")
    wait_for_completion: bool = Field(False, description="Whether to wait for process completion (default: false)")


class ProcessNotExecutable(Exception):
    """The process definition is inactive or unpublished."""


def display_name(process: Dict[str, Any]) -> str:
    return process.get("label") or process.get("name") or ""


def get_process_definition(client: ServiceNowClient, params: GetProcessDefinitionParams) -> str:
    record = results(client.get_record(TABLE, params.sys_id, params.fields)) or {}
    name = record.get("name") or record.get("label")
    return f'Successfully retrieved process definition "{name}" (sys_id: {params.sys_id}):\n\n{dumps(record)}'


def list_process_definitions(client: ServiceNowClient, params: ListParams) -> str:
    processes = results(client.query_table(
        TABLE, params.query, params.fields, params.limit, params.offset, params.order_by
    )) or []

    text = count_header("process definition", len(processes), params.limit)
    if not processes:
        return text + "No process definitions found matching the criteria."

    for index, process in enumerate(processes, start=1):
        text += f"{index}. {display_name(process)}"
        if process.get("name") and process.get("label") and process["name"] != process["label"]:
            text += f" ({process['name']})"
        text += "\n"
        if process.get("description"):
            text += f"   Description: {process['description']}\n"
        text += f"   Status: {process.get('status') or 'Unknown'}"
        text += f" | Active: {'Yes' if is_true(process.get('active')) else 'No'}"
        if process.get("process_type"):
            text += f" | Type: {process['process_type']}"
        text += f"\n   Created: {process.get('sys_created_on')} | Updated: {process.get('sys_updated_on')}\n"
        text += f"   Sys ID: {process.get('sys_id')}\n\n"
    return text


def build_search_query(params: SearchProcessDefinitionsParams) -> str:
    term = params.search_term
    filters = []
    if params.active_only:
        filters.append("active=true")
    if params.published_only:
        filters.append("status=published")
    search = f"nameLIKE{term}^ORlabelLIKE{term}^ORdescriptionLIKE{term}"
    if filters:
        return f"{'^'.join(filters)}^({search})"
    return search


def search_process_definitions(client: ServiceNowClient, params: SearchProcessDefinitionsParams) -> str:
    processes = results(client.query_table(TABLE, build_search_query(params), limit=params.limit)) or []

    text = count_header("process definition", len(processes), params.limit, f' matching "{params.search_term}"')
    if not processes:
        return text + "No process definitions found matching the search term."

    for index, process in enumerate(processes, start=1):
        text += f"{index}. {display_name(process)}"
        if process.get("name") and process.get("label") and process["name"] != process["label"]:
            text += f" ({process['name']})"
        text += "\n"
        if process.get("description"):
            text += f"   Description: {process['description']}\n"
        text += (
            f"   Status: {process.get('status') or 'Unknown'}"
            f" | Active: {'Yes' if is_true(process.get('active')) else 'No'}\n"
        )
        text += f"   Sys ID: {process.get('sys_id')}\n\n"
    return text


def create_process_definition(client: ServiceNowClient, params: CreateProcessDefinitionParams) -> str:
    data = {**CREATE_DEFAULTS, **params.model_dump(exclude_none=True)}
    record = results(client.create_record(TABLE, data)) or {}
    return (
        f'Successfully created process definition "{display_name(record)}" (sys_id: {record.get("sys_id")}):'
        f"\n\n{dumps(record)}"
    )


def update_process_definition(client: ServiceNowClient, params: UpdateProcessDefinitionParams) -> str:
    data = params.model_dump(exclude_none=True, exclude={"sys_id"})
    record = results(client.update_record(TABLE, params.sys_id, data)) or {}
    return (
        f'Successfully updated process definition "{display_name(record)}" (sys_id: {params.sys_id}):'
        f"\n\n{dumps(record)}"
    )


def execute_process_definition(client: ServiceNowClient, params: ExecuteProcessDefinitionParams) -> str:
    """
    Check that a process definition can run.

    Starting a process needs the Process Automation runtime API, which is not
    part of the Table API, so this only confirms readiness and echoes the input.
    """
    process = results(client.get_record(TABLE, params.sys_id, "name,label,status,active")) or {}
    name = display_name(process)

    if not is_true(process.get("active")):
        raise ProcessNotExecutable(f'Cannot execute process definition "{name}": Process is not active.')
    if process.get("status") != "published":
        raise ProcessNotExecutable(
            f'Cannot execute process definition "{name}": Process is not published (status: {process.get("status")}).'
        )

    return (
        f'Process execution initiated for "{name}" (sys_id: {params.sys_id}).\n\n'
        "Note: Actual process execution requires additional API endpoints that may not be available in all "
        "ServiceNow instances. This tool confirms the process is ready for execution.\n\n"
        f"Input data: {dumps(params.input_data)}"
    )


def process_definition_schema(client: ServiceNowClient, params: NoParams) -> str:
    return format_schema(TABLE, query_dictionary(client, TABLE))


TOOLS = [
    ToolSpec("servicenow_process_definition_get", ToolGroup.PROCESS_DEFINITION,
             "Retrieve a specific process definition by sys_id",
             GetProcessDefinitionParams, get_process_definition),
    ToolSpec("servicenow_process_definition_list", ToolGroup.PROCESS_DEFINITION,
             "List process definitions with optional filtering",
             ListParams, list_process_definitions),
    ToolSpec("servicenow_process_definition_search", ToolGroup.PROCESS_DEFINITION,
             "Search process definitions by name, label, or description",
             SearchProcessDefinitionsParams, search_process_definitions),
    ToolSpec("servicenow_process_definition_create", ToolGroup.PROCESS_DEFINITION,
             "Create a new process definition",
             CreateProcessDefinitionParams, create_process_definition),
    ToolSpec("servicenow_process_definition_update", ToolGroup.PROCESS_DEFINITION,
             "Update an existing process definition",
             UpdateProcessDefinitionParams, update_process_definition),
    ToolSpec("servicenow_process_definition_execute", ToolGroup.PROCESS_DEFINITION,
             "Execute/trigger a process definition (if executable)",
             ExecuteProcessDefinitionParams, execute_process_definition),
    ToolSpec("servicenow_process_definition_schema", ToolGroup.PROCESS_DEFINITION,
             "Get the schema/field definitions for the sys_pd_process_definition table",
             NoParams, process_definition_schema),
]

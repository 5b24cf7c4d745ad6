"""Process activity tools (``sys_pd_activity`` table)."""

from typing import Literal, Optional

from pydantic import Field

from ..client import ServiceNowClient
from .common import (
    AliasedParams, NoParams, ToolGroup, ToolSpec, dumps, query_dictionary, results, to_record,
)
from .process_lanes import SCHEMA_FIELDS

TABLE = "sys_pd_activity"
DEFINITION_TABLE = "sys_pd_activity_definition"
ACTIVITY_FIELDS = (
    "sys_id,name,label,description,lane,activity_definition,order,active,inputs,outputs,"
    "condition_to_run,restart_rule,sys_created_on,sys_updated_on"
)
DEFINITION_FIELDS = "sys_id,name,label,description,category,plugin,sys_created_on"

# Argument name -> column name for create/update
COLUMNS = {
    "lane_id": "lane",
    "activity_definition": "activity_definition",
    "condition_to_run": "condition_to_run",
    "restart_rule": "restart_rule",
}


class ListProcessActivitiesParams(AliasedParams):
    lane_id: Optional[str] = Field(None, alias="laneId", description="Filter activities by lane sys_id")
    process_definition_id: Optional[str] = Field(None, alias="processDefinitionId", description="Filter activities by process definition sys_id (via lane relationship)")
    active: Optional[bool] = Field(True, description="Filter by active status (default: true)")
    activity_type: Optional[str] = Field(None, alias="activityType", description="Filter by activity type")
    limit: int = Field(50, ge=1, le=1000, description="Maximum number of activities to return (default: 50)")
    offset: int = Field(0, ge=0, description="Number of activities to skip for pagination (default: 0)")
    order_by: Literal["order", "name", "sys_created_on", "sys_updated_on"] = Field(
        "order", alias="orderBy", description="Field to sort by (default: order)")


class SearchProcessActivitiesParams(AliasedParams):
    query: str = Field(..., description="ServiceNow encoded query string for filtering activities")
    fields: Optional[str] = Field(None, description="Comma-separated list of fields to return (default: all important fields)")
    limit: int = Field(50, ge=1, le=1000, description="Maximum number of results (default: 50)")
    offset: int = Field(0, ge=0, description="Number of results to skip (default: 0)")
    order_by: Optional[str] = Field(None, alias="orderBy", description="Field to sort by with direction (e.g., ^name for ascending, name for descending)")


class GetProcessActivityParams(AliasedParams):
    activity_id: str = Field(..., min_length=1, alias="activityId", description="The sys_id of the activity to retrieve")
    fields: Optional[str] = Field(None, description="Comma-separated list of fields to return (default: all fields)")


class CreateProcessActivityParams(AliasedParams):
    lane_id: str = Field(..., min_length=1, alias="laneId", description="The sys_id of the lane this activity belongs to")
    name: str = Field(..., min_length=1, description="The name of the activity")
    label: Optional[str] = Field(None, description="The display label for the activity")
    description: Optional[str] = Field(None, description="Description of the activity")
    order: int = Field(..., description="The order/position of this activity in the lane")
    active: bool = Field(True, description="Whether the activity is active (default: true)")
    activity_definition: Optional[str] = Field(None, alias="activityDefinition", description="The sys_id of the activity definition that defines this activity type")
    inputs: Optional[str] = Field(None, description="Input parameters for the activity (JSON format)")
    outputs: Optional[str] = Field(None, description="Output parameters for the activity (JSON format)")
    condition_to_run: Optional[str] = Field(None, alias="conditionToRun", description="Condition that determines when this activity should run")
    restart_rule: Optional[str] = Field(None, alias="restartRule", description="Rule for restarting the activity (e.g., RUN_ONLY_ONCE, ALWAYS_RUN)")


class UpdateProcessActivityParams(AliasedParams):
    activity_id: str = Field(..., min_length=1, alias="activityId", description="The sys_id of the activity to update")
    name: Optional[str] = Field(None, description="The name of the activity")
    label: Optional[str] = Field(None, description="The display label for the activity")
    description: Optional[str] = Field(None, description="Description of the activity")
    order: Optional[int] = Field(None, description="The order/position of this activity in the lane")
    active: Optional[bool] = Field(None, description="Whether the activity is active")
    activity_definition: Optional[str] = Field(None, alias="activityDefinition", description="The sys_id of the activity definition")
    inputs: Optional[str] = Field(None, description="Input parameters for the activity (JSON format)")
    outputs: Optional[str] = Field(None, description="Output parameters for the activity (JSON format)")
    condition_to_run: Optional[str] = Field(None, alias="conditionToRun", description="Condition that determines when this activity should run")
    restart_rule: Optional[str] = Field(None, alias="restartRule", description="Rule for restarting the activity")


class DeleteProcessActivityParams(AliasedParams):
    activity_id: str = Field(..., min_length=1, alias="activityId", description="The sys_id of the activity to delete")
    hard_delete: bool = Field(False, alias="hardDelete", description="Whether to permanently delete the record (default: false, just deactivates)")


class ListActivityDefinitionsParams(AliasedParams):
    active: Optional[bool] = Field(True, description="Filter by active status (default: true)")
    limit: int = Field(50, ge=1, le=1000, description="Maximum number to return (default: 50)")


def list_process_activities(client: ServiceNowClient, params: ListProcessActivitiesParams) -> str:
    filters = []
    if params.lane_id:
        filters.append(f"lane={params.lane_id}")
    if params.process_definition_id:
        filters.append(f"lane.process_definition={params.process_definition_id}")
    if params.active is not None:
        filters.append(f"active={'true' if params.active else 'false'}")
    if params.activity_type:
        filters.append(f"activity_definition.name={params.activity_type}")

    activities = results(client.query_table(
        TABLE, "^".join(filters), ACTIVITY_FIELDS, params.limit, params.offset, f"^{params.order_by}"
    )) or []
    return f"Found {len(activities)} process activities:\n\n{dumps(activities)}"


def search_process_activities(client: ServiceNowClient, params: SearchProcessActivitiesParams) -> str:
    activities = results(client.query_table(
        TABLE, params.query, params.fields or ACTIVITY_FIELDS, params.limit, params.offset, params.order_by
    )) or []
    return f"Search found {len(activities)} process activities:\n\n{dumps(activities)}"


def get_process_activity(client: ServiceNowClient, params: GetProcessActivityParams) -> str:
    record = results(client.get_record(TABLE, params.activity_id, params.fields))
    return f"Process activity details:\n\n{dumps(record)}"


def create_process_activity(client: ServiceNowClient, params: CreateProcessActivityParams) -> str:
    data = to_record(params, exclude=set(COLUMNS))
    for field, column in COLUMNS.items():
        value = getattr(params, field)
        if value:
            data[column] = value

    record = results(client.create_record(TABLE, data))
    return f"Successfully created process activity:\n\n{dumps(record)}"


def update_process_activity(client: ServiceNowClient, params: UpdateProcessActivityParams) -> str:
    data = to_record(params, exclude={"activity_id"})
    record = results(client.update_record(TABLE, params.activity_id, data))
    return f"Successfully updated process activity:\n\n{dumps(record)}"


def delete_process_activity(client: ServiceNowClient, params: DeleteProcessActivityParams) -> str:
    if params.hard_delete:
        client.delete_record(TABLE, params.activity_id)
        return f"Successfully deleted process activity {params.activity_id}"
    record = results(client.update_record(TABLE, params.activity_id, {"active": "false"}))
    return f"Successfully deactivated process activity:\n\n{dumps(record)}"


def get_process_activity_schema(client: ServiceNowClient, params: NoParams) -> str:
    rows = query_dictionary(client, TABLE, fields=SCHEMA_FIELDS, limit=100)
    return f"Process activity table schema ({len(rows)} fields):\n\n{dumps(rows)}"


def list_activity_definitions(client: ServiceNowClient, params: ListActivityDefinitionsParams) -> str:
    query = None
    if params.active is not None:
        query = f"active={'true' if params.active else 'false'}"
    definitions = results(client.query_table(
        DEFINITION_TABLE, query, DEFINITION_FIELDS, params.limit, 0, "^name"
    )) or []
    return f"Found {len(definitions)} activity definitions:\n\n{dumps(definitions)}"


TOOLS = [
    ToolSpec("servicenow_list_process_activities", ToolGroup.PROCESS_ACTIVITY,
             "List process activities with filtering and sorting options",
             ListProcessActivitiesParams, list_process_activities),
    ToolSpec("servicenow_search_process_activities", ToolGroup.PROCESS_ACTIVITY,
             "Search process activities using advanced query filters",
             SearchProcessActivitiesParams, search_process_activities),
    ToolSpec("servicenow_get_process_activity", ToolGroup.PROCESS_ACTIVITY,
             "Get a specific process activity by its sys_id",
             GetProcessActivityParams, get_process_activity),
    ToolSpec("servicenow_create_process_activity", ToolGroup.PROCESS_ACTIVITY,
             "Create a new process activity",
             CreateProcessActivityParams, create_process_activity),
    ToolSpec("servicenow_update_process_activity", ToolGroup.PROCESS_ACTIVITY,
             "Update an existing process activity",
             UpdateProcessActivityParams, update_process_activity),
    ToolSpec("servicenow_delete_process_activity", ToolGroup.PROCESS_ACTIVITY,
             "Delete a process activity (sets active to false unless hardDelete is set)",
             DeleteProcessActivityParams, delete_process_activity),
    ToolSpec("servicenow_get_process_activity_schema", ToolGroup.PROCESS_ACTIVITY,
             "Get the schema/field definitions for the sys_pd_activity table",
             NoParams, get_process_activity_schema),
    ToolSpec("servicenow_list_activity_definitions", ToolGroup.PROCESS_ACTIVITY,
             "List available activity definitions that can be used when creating activities",
             ListActivityDefinitionsParams, list_activity_definitions),
]

"""Process lane tools (``sys_pd_lane`` table)."""

from typing import Literal, Optional

from pydantic import Field

from ..client import ServiceNowClient
from .common import (
    AliasedParams, NoParams, ToolGroup, ToolSpec, dumps, query_dictionary, results, to_record,
)

TABLE = "sys_pd_lane"
LANE_FIELDS = (
    "sys_id,name,label,description,process_definition,order,active,"
    "lane_condition,condition_to_run,sys_created_on,sys_updated_on"
)
SCHEMA_FIELDS = [
    "element", "column_label", "internal_type", "max_length", "mandatory",
    "reference", "dependent", "default_value",
]

SortField = Literal["order", "name", "sys_created_on", "sys_updated_on"]


class ListProcessLanesParams(AliasedParams):
    process_definition_id: Optional[str] = Field(None, alias="processDefinitionId", description="Filter lanes by process definition sys_id")
    active: Optional[bool] = Field(True, description="Filter by active status (default: true)")
    limit: int = Field(50, ge=1, le=1000, description="Maximum number of lanes to return (default: 50)")
    offset: int = Field(0, ge=0, description="Number of lanes to skip for pagination (default: 0)")
    order_by: SortField = Field("order", alias="orderBy", description="Field to sort by (default: order)")


class SearchProcessLanesParams(AliasedParams):
    query: str = Field(..., description="ServiceNow encoded query string for filtering lanes")
    fields: Optional[str] = Field(None, description="Comma-separated list of fields to return (default: all important fields)")
    limit: int = Field(50, ge=1, le=1000, description="Maximum number of results (default: 50)")
    offset: int = Field(0, ge=0, description="Number of results to skip (default: 0)")
    order_by: Optional[str] = Field(None, alias="orderBy", description="Field to sort by with direction (e.g., ^name for ascending, name for descending)")


class GetProcessLaneParams(AliasedParams):
    lane_id: str = Field(..., min_length=1, alias="laneId", description="The sys_id of the lane to retrieve")
    fields: Optional[str] = Field(None, description="Comma-separated list of fields to return (default: all fields)")


class CreateProcessLaneParams(AliasedParams):
    process_definition_id: str = Field(..., min_length=1, alias="processDefinitionId", description="The sys_id of the process definition this lane belongs to")
    name: str = Field(..., min_length=1, description="The name of the lane")
    label: Optional[str] = Field(None, description="The display label for the lane")
    description: Optional[str] = Field(None, description="Description of the lane")
    order: int = Field(..., description="The order/position of this lane in the process")
    active: bool = Field(True, description="Whether the lane is active (default: true)")
    lane_condition: Optional[str] = Field(None, alias="laneCondition", description="Condition that determines when this lane should be executed")
    condition_to_run: Optional[str] = Field(None, alias="conditionToRun", description="Additional condition for lane execution")


class UpdateProcessLaneParams(AliasedParams):
    lane_id: str = Field(..., min_length=1, alias="laneId", description="The sys_id of the lane to update")
    name: Optional[str] = Field(None, description="The name of the lane")
    label: Optional[str] = Field(None, description="The display label for the lane")
    description: Optional[str] = Field(None, description="Description of the lane")
    order: Optional[int] = Field(None, description="The order/position of this lane in the process")
    active: Optional[bool] = Field(None, description="Whether the lane is active")
    lane_condition: Optional[str] = Field(None, alias="laneCondition", description="Condition that determines when this lane should be executed")
    condition_to_run: Optional[str] = Field(None, alias="conditionToRun", description="Additional condition for lane execution")


class DeleteProcessLaneParams(AliasedParams):
    lane_id: str = Field(..., min_length=1, alias="laneId", description="The sys_id of the lane to delete")
    hard_delete: bool = Field(False, alias="hardDelete", description="Whether to permanently delete the record (default: false, just deactivates)")


def list_process_lanes(client: ServiceNowClient, params: ListProcessLanesParams) -> str:
    filters = []
    if params.process_definition_id:
        filters.append(f"process_definition={params.process_definition_id}")
    if params.active is not None:
        filters.append(f"active={'true' if params.active else 'false'}")

    lanes = results(client.query_table(
        TABLE, "^".join(filters), LANE_FIELDS, params.limit, params.offset, f"^{params.order_by}"
    )) or []
    return f"Found {len(lanes)} process lanes:\n\n{dumps(lanes)}"


def search_process_lanes(client: ServiceNowClient, params: SearchProcessLanesParams) -> str:
    lanes = results(client.query_table(
        TABLE, params.query, params.fields or LANE_FIELDS, params.limit, params.offset, params.order_by
    )) or []
    return f"Search found {len(lanes)} process lanes:\n\n{dumps(lanes)}"


def get_process_lane(client: ServiceNowClient, params: GetProcessLaneParams) -> str:
    record = results(client.get_record(TABLE, params.lane_id, params.fields))
    return f"Process lane details:\n\n{dumps(record)}"


def create_process_lane(client: ServiceNowClient, params: CreateProcessLaneParams) -> str:
    data = to_record(params, exclude={"process_definition_id", "lane_condition", "condition_to_run"})
    data["process_definition"] = params.process_definition_id
    if params.lane_condition: data["lane_condition"] = params.lane_condition
    if params.condition_to_run: data["condition_to_run"] = params.condition_to_run

    record = results(client.create_record(TABLE, data))
    return f"Successfully created process lane:\n\n{dumps(record)}"


def update_process_lane(client: ServiceNowClient, params: UpdateProcessLaneParams) -> str:
    record = results(client.update_record(TABLE, params.lane_id, to_record(params, exclude={"lane_id"})))
    return f"Successfully updated process lane:\n\n{dumps(record)}"


def delete_process_lane(client: ServiceNowClient, params: DeleteProcessLaneParams) -> str:
    if params.hard_delete:
        client.delete_record(TABLE, params.lane_id)
        return f"Successfully deleted process lane {params.lane_id}"
    record = results(client.update_record(TABLE, params.lane_id, {"active": "false"}))
    return f"Successfully deactivated process lane:\n\n{dumps(record)}"


def get_process_lane_schema(client: ServiceNowClient, params: NoParams) -> str:
    rows = query_dictionary(client, TABLE, fields=SCHEMA_FIELDS, limit=100)
    return f"Process lane table schema ({len(rows)} fields):\n\n{dumps(rows)}"


TOOLS = [
    ToolSpec("servicenow_list_process_lanes", ToolGroup.PROCESS_LANE,
             "List process definition lanes with filtering and sorting options",
             ListProcessLanesParams, list_process_lanes),
    ToolSpec("servicenow_search_process_lanes", ToolGroup.PROCESS_LANE,
             "Search process lanes using advanced query filters",
             SearchProcessLanesParams, search_process_lanes),
    ToolSpec("servicenow_get_process_lane", ToolGroup.PROCESS_LANE,
             "Get a specific process lane by its sys_id",
             GetProcessLaneParams, get_process_lane),
    ToolSpec("servicenow_create_process_lane", ToolGroup.PROCESS_LANE,
             "Create a new process lane",
             CreateProcessLaneParams, create_process_lane),
    ToolSpec("servicenow_update_process_lane", ToolGroup.PROCESS_LANE,
             "Update an existing process lane",
             UpdateProcessLaneParams, update_process_lane),
    ToolSpec("servicenow_delete_process_lane", ToolGroup.PROCESS_LANE,
             "Delete a process lane (sets active to false unless hardDelete is set)",
             DeleteProcessLaneParams, delete_process_lane),
    ToolSpec("servicenow_get_process_lane_schema", ToolGroup.PROCESS_LANE,
             "Get the schema/field definitions for the sys_pd_lane table",
             NoParams, get_process_lane_schema),
]

"""Incident tools (``incident`` table)."""

from typing import Literal, Optional

from pydantic import BaseModel, Field

from ..client import ServiceNowClient
from .common import ListParams, ToolGroup, ToolSpec, count_header, dumps, results

TABLE = "incident"

STATE_LABELS = {
    "1": "New",
    "2": "In Progress",
    "3": "On Hold",
    "6": "Resolved",
    "7": "Closed",
}

Priority = Literal["1", "2", "3", "4", "5"]
Level = Literal["1", "2", "3"]


def state_label(state) -> str:
    return STATE_LABELS.get(str(state), f"Unknown ({state})")


class GetIncidentParams(BaseModel):
    sys_id: str = Field(..., min_length=1, description="The sys_id of the incident to retrieve")
    fields: Optional[str] = Field(None, description="Comma-separated list of fields to retrieve (optional)")


class CreateIncidentParams(BaseModel):
    short_description: str = Field(..., min_length=1, description="Brief description of the incident")
    description: Optional[str] = Field(None, description="Detailed description of the incident")
    caller_id: Optional[str] = Field(None, description="Sys_id of the caller (user who reported the incident)")
    category: Optional[str] = Field(None, description='Category of the incident (e.g., "software", "hardware")')
    subcategory: Optional[str] = Field(None, description="Subcategory of the incident")
    priority: Optional[Priority] = Field(None, description="Priority level (1-Critical, 2-High, 3-Moderate, 4-Low, 5-Planning)")
    urgency: Optional[Level] = Field(None, description="Urgency level (1-High, 2-Medium, 3-Low)")
    impact: Optional[Level] = Field(None, description="Impact level (1-High, 2-Medium, 3-Low)")
    assignment_group: Optional[str] = Field(None, description="Sys_id of the assignment group")
    assigned_to: Optional[str] = Field(None, description="Sys_id of the assigned user")


class UpdateIncidentParams(BaseModel):
    sys_id: str = Field(..., min_length=1, description="The sys_id of the incident to update")
    short_description: Optional[str] = Field(None, description="Brief description of the incident")
    description: Optional[str] = Field(None, description="Detailed description of the incident")
    state: Optional[Literal["1", "2", "3", "6", "7"]] = Field(
        None, description="Incident state (1-New, 2-In Progress, 3-On Hold, 6-Resolved, 7-Closed)")
    priority: Optional[Priority] = Field(None, description="Priority level (1-Critical, 2-High, 3-Moderate, 4-Low, 5-Planning)")
    urgency: Optional[Level] = Field(None, description="Urgency level (1-High, 2-Medium, 3-Low)")
    impact: Optional[Level] = Field(None, description="Impact level (1-High, 2-Medium, 3-Low)")
    assignment_group: Optional[str] = Field(None, description="Sys_id of the assignment group")
    assigned_to: Optional[str] = Field(None, description="Sys_id of the assigned user")
    work_notes: Optional[str] = Field(None, description="Work notes to add to the incident")
    close_code: Optional[str] = Field(None, description="Close code when resolving/closing the incident")
    close_notes: Optional[str] = Field(None, description="Close notes when resolving/closing the incident")


def get_incident(client: ServiceNowClient, params: GetIncidentParams) -> str:
    record = results(client.get_record(TABLE, params.sys_id, params.fields))
    return f"Successfully retrieved incident {params.sys_id}:\n\n{dumps(record)}"


def create_incident(client: ServiceNowClient, params: CreateIncidentParams) -> str:
    record = results(client.create_record(TABLE, params.model_dump(exclude_none=True))) or {}
    return (
        f"Successfully created incident {record.get('number')} (sys_id: {record.get('sys_id')}):"
        f"\n\n{dumps(record)}"
    )


def update_incident(client: ServiceNowClient, params: UpdateIncidentParams) -> str:
    data = params.model_dump(exclude_none=True, exclude={"sys_id"})
    record = results(client.update_record(TABLE, params.sys_id, data)) or {}
    return (
        f"Successfully updated incident {record.get('number')} (sys_id: {params.sys_id}):"
        f"\n\n{dumps(record)}"
    )


def list_incidents(client: ServiceNowClient, params: ListParams) -> str:
    incidents = results(client.query_table(
        TABLE, params.query, params.fields, params.limit, params.offset, params.order_by
    )) or []

    text = count_header("incident", len(incidents), params.limit)
    if not incidents:
        return text + "No incidents found matching the criteria."

    for index, incident in enumerate(incidents, start=1):
        text += f"{index}. {incident.get('number')} - {incident.get('short_description')}\n"
        text += (
            f"   State: {state_label(incident.get('state'))} | Priority: {incident.get('priority')}"
            f" | Created: {incident.get('sys_created_on')}\n"
        )
        assigned = incident.get("assigned_to")
        if assigned:
            if isinstance(assigned, dict):
                assigned = assigned.get("display_value") or assigned.get("value")
            text += f"   Assigned to: {assigned}\n"
        text += "\n"
    return text


TOOLS = [
    ToolSpec("servicenow_incident_get", ToolGroup.INCIDENT,
             "Retrieve a specific incident by sys_id", GetIncidentParams, get_incident),
    ToolSpec("servicenow_incident_create", ToolGroup.INCIDENT,
             "Create a new incident in ServiceNow", CreateIncidentParams, create_incident),
    ToolSpec("servicenow_incident_update", ToolGroup.INCIDENT,
             "Update an existing incident", UpdateIncidentParams, update_incident),
    ToolSpec("servicenow_incident_list", ToolGroup.INCIDENT,
             "List incidents with optional filtering", ListParams, list_incidents),
]

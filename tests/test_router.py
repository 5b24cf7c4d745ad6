"""
Tests for tool dispatch and the tool handlers behind it
"""

import json
import logging
from unittest.mock import MagicMock

import pytest
from mcp.shared.exceptions import McpError
from mcp.types import INTERNAL_ERROR, INVALID_REQUEST, METHOD_NOT_FOUND, TextContent, Tool

from servicenow_mcp.errors import RemoteAPIError
from servicenow_mcp.router import ToolRouter
from servicenow_mcp.tools import CATALOG, ToolGroup, incidents
from servicenow_mcp.tools.process_lanes import LANE_FIELDS


@pytest.fixture
def client():
    return MagicMock()


@pytest.fixture
def router(client):
    return ToolRouter(client)


def call(router, name, arguments=None):
    [content] = router.dispatch(name, arguments)
    assert isinstance(content, TextContent)
    return content.text


class TestRoutingTable:
    """Build-time coverage of the tool catalog"""

    def test_every_group_has_tools(self, router):
        groups = {spec.group for spec in router.table.values()}
        assert groups == set(ToolGroup)

    def test_every_catalog_entry_is_routed(self, router):
        assert len(router.table) == len(CATALOG)
        assert set(router.table) == {spec.name for spec in CATALOG}

    def test_table_schema_tool_is_routed(self, router):
        """Name overlap with other table tools does not shadow it"""
        assert router.table["servicenow_table_schema"].group is ToolGroup.TABLE
        assert router.table["servicenow_query_table"].group is ToolGroup.TABLE

    def test_duplicate_names_rejected(self, client):
        with pytest.raises(ValueError, match="Duplicate tool name"):
            ToolRouter(client, [*CATALOG, CATALOG[0]])

    def test_empty_group_rejected(self, client):
        with pytest.raises(ValueError, match="without tools"):
            ToolRouter(client, incidents.TOOLS)

    def test_list_tools(self, router):
        tools = router.list_tools()

        assert all(isinstance(tool, Tool) for tool in tools)
        by_name = {tool.name: tool for tool in tools}
        schema = by_name["servicenow_incident_list"].inputSchema
        assert schema["type"] == "object"
        assert "title" not in schema
        assert schema["properties"]["limit"]["default"] == 100
        assert "sys_id" in by_name["servicenow_incident_get"].inputSchema["required"]

    def test_lane_schema_uses_camel_case(self, router):
        schema = router.table["servicenow_create_process_lane"].input_schema()
        assert "processDefinitionId" in schema["properties"]
        assert "processDefinitionId" in schema["required"]


class TestDispatch:
    """Validation, invocation and error wrapping"""

    def test_unknown_tool(self, router, client):
        with pytest.raises(McpError) as exc_info:
            router.dispatch("servicenow_unknown_tool", {})

        assert exc_info.value.error.code == METHOD_NOT_FOUND
        assert exc_info.value.error.message == "Unknown tool: servicenow_unknown_tool"
        assert client.mock_calls == []

    def test_out_of_range_limit(self, router, client):
        """Arguments are validated before the handler touches the client"""
        with pytest.raises(McpError) as exc_info:
            router.dispatch("servicenow_incident_list", {"limit": 0})

        assert exc_info.value.error.code == INVALID_REQUEST
        assert "limit" in exc_info.value.error.message
        assert client.mock_calls == []

    def test_missing_required_argument(self, router, client):
        with pytest.raises(McpError) as exc_info:
            router.dispatch("servicenow_incident_get", {})
        assert exc_info.value.error.code == INVALID_REQUEST
        assert "sys_id" in exc_info.value.error.message
        assert client.mock_calls == []

    def test_invalid_enum_value(self, router):
        with pytest.raises(McpError) as exc_info:
            router.dispatch("servicenow_incident_create", {"short_description": "x", "priority": "9"})
        assert exc_info.value.error.code == INVALID_REQUEST

    def test_string_result(self, router, client):
        client.get_record.return_value = {"result": {"sys_id": "abc", "number": "INC0010001"}}

        text = call(router, "servicenow_incident_get", {"sys_id": "abc"})

        client.get_record.assert_called_once_with("incident", "abc", None)
        assert text.startswith("Successfully retrieved incident abc")
        assert '"number": "INC0010001"' in text

    def test_structured_result_is_pretty_json(self, router, client):
        client.delete_record.return_value = {}

        text = call(router, "servicenow_delete_record", {"table": "incident", "sys_id": "abc"})

        assert json.loads(text) == {"success": True, "message": "Record abc deleted from incident"}
        assert "\n  " in text

    def test_handler_failure_is_internal_error(self, router, client, caplog):
        client.get_record.side_effect = RemoteAPIError(404, "No Record found")

        with caplog.at_level(logging.ERROR, logger="servicenow_mcp.router"):
            with pytest.raises(McpError) as exc_info:
                router.dispatch("servicenow_get_record", {"table": "incident", "sys_id": "nope"})

        assert exc_info.value.error.code == INTERNAL_ERROR
        assert exc_info.value.error.message == (
            "Tool execution failed: servicenow_get_record: "
            "RemoteAPIError: ServiceNow API error (404): No Record found"
        )
        assert "servicenow_get_record" in caplog.text

    def test_none_arguments(self, router, client):
        client.query_table.return_value = {"result": []}
        text = call(router, "servicenow_incident_list", None)
        assert "No incidents found" in text


class TestHandlers:
    """Per-group handler behaviour through the router"""

    def test_incident_list_summary(self, router, client):
        client.query_table.return_value = {"result": [
            {"number": "INC0010001", "short_description": "Email down", "state": "2", "priority": "1",
             "sys_created_on": "2024-01-01 10:00:00", "assigned_to": {"display_value": "Beth Anglin"}},
        ]}

        text = call(router, "servicenow_incident_list", {"query": "active=true", "limit": 1})

        client.query_table.assert_called_once_with("incident", "active=true", None, 1, 0, None)
        assert "Found 1 incident(s) (showing first 1)" in text
        assert "1. INC0010001 - Email down" in text
        assert "State: In Progress" in text
        assert "Assigned to: Beth Anglin" in text

    def test_script_include_search_query(self, router, client):
        client.query_table.return_value = {"result": [
            {"name": "StringUtil", "script": "var StringUtil = Class.create(); // trim helpers", "active": "true"},
        ]}

        text = call(router, "servicenow_script_include_search",
                    {"search_term": "trim", "search_in_script": True})

        client.query_table.assert_called_once_with(
            "sys_script_include", "active=true^nameLIKEtrim^ORapi_nameLIKEtrim^ORscriptLIKEtrim", limit=50
        )
        assert "Script snippet:" in text

    def test_process_definition_create_defaults(self, router, client):
        client.create_record.return_value = {"result": {"sys_id": "pd1", "label": "Onboarding"}}

        call(router, "servicenow_process_definition_create", {"name": "onboarding", "label": "Onboarding"})

        table, data = client.create_record.call_args.args
        assert table == "sys_pd_process_definition"
        assert data["status"] == "draft"
        assert data["view_type"] == "DIAGRAM"
        assert data["restartable"] == "RESTARTABLE_FALSE"
        assert data["name"] == "onboarding"

    def test_execute_requires_published(self, router, client):
        client.get_record.return_value = {"result": {"name": "p", "status": "draft", "active": "true"}}

        with pytest.raises(McpError) as exc_info:
            router.dispatch("servicenow_process_definition_execute", {"sys_id": "pd1"})

        assert exc_info.value.error.code == INTERNAL_ERROR
        assert "not published" in exc_info.value.error.message

    def test_execute_ready(self, router, client):
        client.get_record.return_value = {"result": {"name": "p", "status": "published", "active": "true"}}
        text = call(router, "servicenow_process_definition_execute", {"sys_id": "pd1", "input_data": {"a": 1}})
        assert text.startswith('Process execution initiated for "p"')

    def test_list_lanes_defaults(self, router, client):
        client.query_table.return_value = {"result": []}

        call(router, "servicenow_list_process_lanes", {"processDefinitionId": "pd1"})

        client.query_table.assert_called_once_with(
            "sys_pd_lane", "process_definition=pd1^active=true", LANE_FIELDS, 50, 0, "^order"
        )

    def test_get_lane_by_alias(self, router, client):
        client.get_record.return_value = {"result": {"sys_id": "l1"}}
        call(router, "servicenow_get_process_lane", {"laneId": "l1"})
        client.get_record.assert_called_once_with("sys_pd_lane", "l1", None)

    def test_lane_soft_delete(self, router, client):
        client.update_record.return_value = {"result": {"sys_id": "l1", "active": "false"}}

        text = call(router, "servicenow_delete_process_lane", {"laneId": "l1"})

        client.update_record.assert_called_once_with("sys_pd_lane", "l1", {"active": "false"})
        client.delete_record.assert_not_called()
        assert text.startswith("Successfully deactivated")

    def test_lane_hard_delete(self, router, client):
        call(router, "servicenow_delete_process_lane", {"laneId": "l1", "hardDelete": True})
        client.delete_record.assert_called_once_with("sys_pd_lane", "l1")

    def test_create_activity_maps_columns(self, router, client):
        client.create_record.return_value = {"result": {"sys_id": "a1"}}

        call(router, "servicenow_create_process_activity",
             {"laneId": "l1", "name": "Approve", "order": 10, "restartRule": "RUN_ONLY_ONCE"})

        client.create_record.assert_called_once_with("sys_pd_activity", {
            "name": "Approve",
            "order": "10",
            "active": "true",
            "lane": "l1",
            "restart_rule": "RUN_ONLY_ONCE",
        })

    def test_activities_by_process_definition(self, router, client):
        client.query_table.return_value = {"result": []}
        call(router, "servicenow_list_process_activities", {"processDefinitionId": "pd1", "active": None})
        query = client.query_table.call_args.args[1]
        assert query == "lane.process_definition=pd1"
        assert client.query_table.call_args.args[5] == "^order"

    def test_activities_sorted_by_requested_field(self, router, client):
        client.query_table.return_value = {"result": []}
        call(router, "servicenow_list_process_activities", {"laneId": "l1", "orderBy": "name"})
        assert client.query_table.call_args.args[5] == "^name"

    def test_activity_definitions_sorted_by_name(self, router, client):
        client.query_table.return_value = {"result": []}
        call(router, "servicenow_list_activity_definitions", {})
        assert client.query_table.call_args.args[5] == "^name"

    def test_attachment_download_is_base64(self, router, client):
        client.get_record.return_value = {"result": {"file_name": "a.txt", "content_type": "text/plain"}}
        client.download_attachment.return_value = b"hello"

        result = json.loads(call(router, "servicenow_attachment_download", {"sys_id": "att1"}))

        assert result["file_content"] == "aGVsbG8="
        assert result["file_name"] == "a.txt"

    def test_attachment_upload_decodes_content(self, router, client):
        client.upload_attachment.return_value = {"result": {"sys_id": "att1", "file_name": "a.txt"}}

        result = json.loads(call(router, "servicenow_attachment_upload", {
            "table_name": "incident", "table_sys_id": "abc", "file_name": "a.txt",
            "content_type": "text/plain", "file_content": "aGVsbG8=",
        }))

        client.upload_attachment.assert_called_once_with("incident", "abc", "a.txt", "text/plain", b"hello")
        assert result["sys_id"] == "att1"

    def test_attachment_upload_rejects_bad_base64(self, router, client):
        with pytest.raises(McpError) as exc_info:
            router.dispatch("servicenow_attachment_upload", {
                "table_name": "incident", "table_sys_id": "abc", "file_name": "a.txt",
                "file_content": "not base64!!",
            })

        assert exc_info.value.error.code == INVALID_REQUEST
        client.upload_attachment.assert_not_called()

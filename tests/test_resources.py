"""
Tests for servicenow:// resource resolution
"""

import json
import logging
from unittest.mock import MagicMock

import pytest
from mcp.shared.exceptions import McpError
from mcp.types import INTERNAL_ERROR, INVALID_REQUEST

from servicenow_mcp.errors import RemoteAPIError
from servicenow_mcp.resources import (
    ACTIVITY_TABLES, EXAMPLES, EXAMPLES_URI, LANE_TABLES, TEMPLATES, ResourceResolver,
)
from servicenow_mcp.tools.common import DICTIONARY_FIELDS

SYS_ID = "1c741bd70b2322007518478d83673af3"


@pytest.fixture
def client():
    return MagicMock()


@pytest.fixture
def resolver(client):
    return ResourceResolver(client)


class TestTableResources:

    def test_table_schema(self, resolver, client):
        """Dictionary rows are projected and rows without a column name dropped"""
        client.query_table.return_value = {"result": [
            {"element": "number", "column_label": "Number", "internal_type": "string", "mandatory": "true"},
            {"element": "", "column_label": "Collection", "internal_type": "collection"},
        ]}

        result = resolver.resolve("servicenow://table-schema/incident")

        client.query_table.assert_called_once_with(
            "sys_dictionary", "name=incident^active=true", DICTIONARY_FIELDS, 1000, 0, "element"
        )
        assert result == {
            "table": "incident",
            "fields": [{
                "column_name": "number",
                "column_label": "Number",
                "internal_type": "string",
                "max_length": None,
                "mandatory": True,
                "reference": None,
                "is_choice_field": False,
                "default_value": None,
                "comments": None,
            }],
        }

    def test_table_data_sample(self, resolver, client):
        client.query_table.return_value = {"result": [{"sys_id": "a"}, {"sys_id": "b"}]}

        result = resolver.resolve("servicenow://table-data/change_request")

        client.query_table.assert_called_once_with("change_request", limit=10, order_by="^sys_created_on")
        assert result == {"table": "change_request", "sample_count": 2, "records": [{"sys_id": "a"}, {"sys_id": "b"}]}

    def test_record(self, resolver, client):
        client.get_record.return_value = {"result": {"sys_id": "abc", "name": "Fred"}}

        result = resolver.resolve("servicenow://record/sys_user/abc")

        client.get_record.assert_called_once_with("sys_user", "abc")
        assert result == {"table": "sys_user", "sys_id": "abc", "record": {"sys_id": "abc", "name": "Fred"}}

    @pytest.mark.parametrize("uri", [
        "servicenow://record/incident",
        "servicenow://record/incident/",
        "servicenow://record//abc",
        "servicenow://record/",
        "servicenow://record/incident/abc/extra",
    ])
    def test_record_needs_two_segments(self, resolver, client, uri):
        with pytest.raises(McpError) as exc_info:
            resolver.resolve(uri)
        assert exc_info.value.error.code == INVALID_REQUEST
        assert "servicenow://record/{table_name}/{sys_id}" in exc_info.value.error.message
        for template in TEMPLATES:
            assert template.uri_template in exc_info.value.error.message
        assert client.mock_calls == []


class TestIdentifierLookup:

    def test_incident_by_number(self, resolver, client):
        record = {"number": "INC0010001", "sys_id": SYS_ID}
        client.query_table.return_value = {"result": [record]}

        result = resolver.resolve("servicenow://incident/INC0010001")

        client.query_table.assert_called_once_with("incident", "number=INC0010001", limit=1)
        client.get_record.assert_not_called()
        assert result == {
            "type": "incident",
            "identifier": "INC0010001",
            "lookup_method": "number",
            "record": record,
        }

    def test_incident_by_sys_id(self, resolver, client):
        """A 32 character hex identifier is fetched directly, not queried"""
        client.get_record.return_value = {"result": {"sys_id": SYS_ID}}

        result = resolver.resolve(f"servicenow://incident/{SYS_ID}")

        client.get_record.assert_called_once_with("incident", SYS_ID)
        client.query_table.assert_not_called()
        assert result["lookup_method"] == "sys_id"
        assert result["record"] == {"sys_id": SYS_ID}

    def test_uppercase_hex_is_sys_id(self, resolver, client):
        client.get_record.return_value = {"result": {}}
        result = resolver.resolve(f"servicenow://incident/{SYS_ID.upper()}")
        assert result["lookup_method"] == "sys_id"

    def test_short_hex_is_a_number(self, resolver, client):
        client.query_table.return_value = {"result": [{"number": SYS_ID[:31]}]}
        result = resolver.resolve(f"servicenow://incident/{SYS_ID[:31]}")
        assert result["lookup_method"] == "number"

    def test_unknown_incident_number(self, resolver, client):
        client.query_table.return_value = {"result": []}

        with pytest.raises(McpError) as exc_info:
            resolver.resolve("servicenow://incident/INC0000000")

        assert exc_info.value.error.code == INTERNAL_ERROR
        assert 'Failed to get incident "INC0000000"' in exc_info.value.error.message
        assert 'No incident found with number "INC0000000"' in exc_info.value.error.message

    def test_user_by_email(self, resolver, client):
        client.query_table.return_value = {"result": [{"user_name": "john.doe"}]}

        result = resolver.resolve("servicenow://user/john.doe@company.com")

        client.query_table.assert_called_once_with(
            "sys_user", "user_name=john.doe@company.com^ORemail=john.doe@company.com", limit=1
        )
        assert result["type"] == "user"
        assert result["lookup_method"] == "username_or_email"

    @pytest.mark.parametrize("uri, identifier", [
        ("servicenow://user/john%20doe", "john doe"),
        ("servicenow://user/jane%40example.com", "jane@example.com"),
        ("servicenow://user/j%C3%BCrgen", "j\u00fcrgen"),
    ])
    def test_user_identifier_is_decoded(self, resolver, client, uri, identifier):
        client.query_table.return_value = {"result": [{"user_name": identifier}]}

        result = resolver.resolve(uri)

        client.query_table.assert_called_once_with(
            "sys_user", f"user_name={identifier}^ORemail={identifier}", limit=1
        )
        assert result["identifier"] == identifier

    def test_user_by_sys_id(self, resolver, client):
        client.get_record.return_value = {"result": {"sys_id": SYS_ID}}
        result = resolver.resolve(f"servicenow://user/{SYS_ID}")
        client.get_record.assert_called_once_with("sys_user", SYS_ID)
        assert result["lookup_method"] == "sys_id"

    def test_transport_failure_is_internal_error(self, resolver, client):
        client.get_record.side_effect = RemoteAPIError(404, "No Record found")

        with pytest.raises(McpError) as exc_info:
            resolver.resolve("servicenow://record/incident/abc")

        assert exc_info.value.error.code == INTERNAL_ERROR
        assert "RemoteAPIError" in exc_info.value.error.message


class TestProcessDefinition:

    def test_lane_lookup_failing_on_both_tables(self, resolver, client, caplog):
        """Unavailable lane tables degrade to an empty structure"""
        client.get_record.return_value = {"result": {"sys_id": SYS_ID, "status": "published", "active": "true"}}
        client.query_table.side_effect = RemoteAPIError(400, "Invalid table")

        with caplog.at_level(logging.WARNING, logger="servicenow_mcp.resources"):
            result = resolver.resolve(f"servicenow://process-definition/{SYS_ID}")

        assert result["lanes"] == []
        assert result["activities"] == []
        assert result["summary"] == {"total_lanes": 0, "total_activities": 0, "status": "published", "active": True}
        assert [c.args[0] for c in client.query_table.call_args_list] == list(LANE_TABLES)
        assert "Could not query" in caplog.text

    def test_lanes_and_activities(self, resolver, client):
        client.get_record.return_value = {"result": {"sys_id": SYS_ID, "status": "draft", "active": "false"}}

        def query_table(table, query, **kwargs):
            if table == "sys_pd_lane_definition":
                raise RemoteAPIError(400, "Invalid table")
            if table == "sys_pd_lane":
                return {"result": [{"sys_id": "l1", "name": "Review"}]}
            if table == "sys_pd_activity_definition":
                return {"result": [{"sys_id": "a1", "name": "Approve"}]}
            raise AssertionError(table)

        client.query_table.side_effect = query_table

        result = resolver.resolve(f"servicenow://process-definition/{SYS_ID}")

        assert result["type"] == "process_definition"
        assert result["lanes"] == [{"sys_id": "l1", "name": "Review"}]
        assert result["activities"] == [{"sys_id": "a1", "name": "Approve", "lane_name": "Review", "lane_sys_id": "l1"}]
        assert result["summary"]["total_activities"] == 1
        assert result["summary"]["active"] is False

        lane_call = client.query_table.call_args_list[1]
        assert lane_call.args == ("sys_pd_lane", f"process_definition={SYS_ID}^active=true")
        assert lane_call.kwargs == {"limit": 100, "order_by": "order"}
        activity_call = client.query_table.call_args_list[2]
        assert activity_call.args == (ACTIVITY_TABLES[0], "lane=l1^active=true")

    def test_missing_definition_is_internal_error(self, resolver, client):
        client.get_record.side_effect = RemoteAPIError(404, "No Record found")
        with pytest.raises(McpError) as exc_info:
            resolver.resolve(f"servicenow://process-definition/{SYS_ID}")
        assert exc_info.value.error.code == INTERNAL_ERROR
        assert f'Failed to get process definition "{SYS_ID}"' in exc_info.value.error.message


class TestUriGrammar:

    @pytest.mark.parametrize("uri", [
        "servicenow://unknown/thing",
        "servicenow://incident/",
        "servicenow://table-schema/",
        "https://dev1.service-now.com/incident",
    ])
    def test_unknown_uri_lists_templates(self, resolver, client, uri):
        with pytest.raises(McpError) as exc_info:
            resolver.resolve(uri)

        assert exc_info.value.error.code == INVALID_REQUEST
        for template in TEMPLATES:
            assert template.uri_template in exc_info.value.error.message
        assert client.mock_calls == []

    def test_parse(self, resolver):
        template, parts = resolver.parse("servicenow://user/jane.doe")
        assert template.kind == "user"
        assert parts == ["jane.doe"]

    def test_parse_decodes_record_segments(self, resolver):
        """An encoded slash stays inside its segment"""
        template, parts = resolver.parse("servicenow://record/u_my%20table/a%2Fb")
        assert template.kind == "record"
        assert parts == ["u_my table", "a/b"]

    def test_read_examples(self, resolver, client):
        text, mime_type = resolver.read(EXAMPLES_URI)
        assert text == EXAMPLES
        assert mime_type == "text/markdown"
        assert client.mock_calls == []

    def test_read_returns_json_text(self, resolver, client):
        client.get_record.return_value = {"result": {"sys_id": "abc"}}

        text, mime_type = resolver.read("servicenow://record/incident/abc")

        assert mime_type == "application/json"
        assert json.loads(text) == {"table": "incident", "sys_id": "abc", "record": {"sys_id": "abc"}}

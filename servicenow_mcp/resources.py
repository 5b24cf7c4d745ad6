"""
``servicenow://`` resource URIs.

Six parameterised templates are resolved against live data, plus one static
markdown guide. A template is picked by its URI prefix, tested in the order of
``TEMPLATES``; the rest of the URI is the parameter.
"""

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Sequence, Tuple
from urllib.parse import unquote

from .client import ServiceNowClient
from .errors import describe, internal_error, invalid_request
from .tools.common import DICTIONARY_FIELDS, DICTIONARY_TABLE, is_true, results

logger = logging.getLogger(__name__)

SCHEME = "servicenow://"
EXAMPLES_URI = SCHEME + "examples"
JSON_MIME = "application/json"
MARKDOWN_MIME = "text/markdown"

SYS_ID = re.compile(r"^[a-f0-9]{32}$", re.IGNORECASE)

SAMPLE_SIZE = 10
SAMPLE_ORDER = "^sys_created_on"
PROCESS_TABLE = "sys_pd_process_definition"
LANE_TABLES = ("sys_pd_lane_definition", "sys_pd_lane")
ACTIVITY_TABLES = ("sys_pd_activity_definition", "sys_pd_activity")
CHILD_LIMIT = 100


@dataclass(frozen=True)
class Template:
    kind: str
    uri_template: str
    name: str
    description: str

    @property
    def prefix(self) -> str:
        return SCHEME + self.kind + "/"


TEMPLATES = [
    Template("table-schema", "servicenow://table-schema/{table}", "ServiceNow Table Schema",
             "Get field definitions and metadata for any ServiceNow table. Replace {table} with the "
             "table name (e.g., incident, sys_user, problem, change_request)."),
    Template("table-data", "servicenow://table-data/{table}", "ServiceNow Table Data Sample",
             "Get sample data (first 10 records) from any ServiceNow table. Replace {table} with the "
             "table name (e.g., incident, sys_user, problem)."),
    Template("record", "servicenow://record/{table}/{sys_id}", "ServiceNow Specific Record",
             "Get a specific record from any ServiceNow table by sys_id. Replace {table} with table "
             "name and {sys_id} with the record identifier."),
    Template("incident", "servicenow://incident/{number_or_sys_id}", "ServiceNow Incident",
             "Get detailed incident information by incident number (e.g., INC0010001) or sys_id. "
             "Smart lookup determines identifier type."),
    Template("user", "servicenow://user/{username_or_sys_id}", "ServiceNow User Profile",
             "Get user profile information by username, email address, or sys_id. Smart lookup "
             "handles different identifier formats."),
    Template("process-definition", "servicenow://process-definition/{sys_id}", "ServiceNow Process Definition",
             "Get complete process definition including associated lanes, activities, and metadata by "
             "process definition sys_id."),
]

EXAMPLES = """# ServiceNow MCP Server - Example Prompts

Example prompts and resource URIs for the ServiceNow MCP server.

## Quick Examples

### Create an Incident
"Create a critical incident for email server outage with description 'Email server completely down' and priority 1"

### List Recent Incidents
"Show me all high priority incidents created in the last 24 hours"

### Search Script Includes
"Find all Script Includes that contain 'StringUtil' in their name or code"

### Query Any Table
"Query the sys_user table to find all active users in the IT department"

### Get Table Schema
"Show me the schema and field definitions for the incident table"

## Resource Templates

| URI pattern | Returns |
|---|---|
| `servicenow://table-schema/{table}` | `table`, `fields` (column_name, column_label, internal_type, mandatory, reference, is_choice_field, ...) |
| `servicenow://table-data/{table}` | `table`, `sample_count`, `records` (first 10 records) |
| `servicenow://record/{table}/{sys_id}` | `table`, `sys_id`, `record` |
| `servicenow://incident/{number_or_sys_id}` | `type`, `identifier`, `lookup_method` ("number" or "sys_id"), `record` |
| `servicenow://user/{username_or_sys_id}` | `type`, `identifier`, `lookup_method` ("username_or_email" or "sys_id"), `record` |
| `servicenow://process-definition/{sys_id}` | `type`, `process_definition`, `lanes`, `activities`, `summary` |

A 32 character hexadecimal identifier is always treated as a sys_id.

### Example URIs
- `servicenow://table-schema/incident`
- `servicenow://table-data/change_request`
- `servicenow://record/sys_user/12345678901234567890123456789012`
- `servicenow://incident/INC0010001`
- `servicenow://user/john.doe@company.com`
- `servicenow://process-definition/abcd1234567890123456789012345678`

## Usage Examples

"Get the table schema for the incident table using the servicenow://table-schema/incident resource"

"Show me sample data from the change_request table using servicenow://table-data/change_request"

"Retrieve the user profile for john.doe using servicenow://user/john.doe"

"Get incident INC0010001 details using servicenow://incident/INC0010001"
"""


def _template_listing() -> str:
    return "Supported templates:\n" + "\n".join(f"  {template.uri_template}" for template in TEMPLATES)


def _unknown_uri(uri: str):
    return invalid_request(f"Unknown resource URI: {uri}. {_template_listing()}")


def _first(response: Dict[str, Any], message: str) -> Dict[str, Any]:
    rows = results(response) or []
    if not rows:
        raise LookupError(message)
    return rows[0]


class ResourceResolver:
    """Turns ``servicenow://`` URIs into JSON documents."""

    def __init__(self, client: ServiceNowClient):
        self.client = client
        self._handlers: Dict[str, Callable[[Sequence[str]], Dict[str, Any]]] = {
            "table-schema": self.table_schema,
            "table-data": self.table_data,
            "record": self.record,
            "incident": self.incident,
            "user": self.user,
            "process-definition": self.process_definition,
        }

    @staticmethod
    def parse(uri: str) -> Tuple[Template, List[str]]:
        """
        Match ``uri`` to a template and split out its parameters.

        Parameters are percent-decoded after splitting, so an encoded ``/``
        stays inside its segment.
        """
        for template in TEMPLATES:
            if not uri.startswith(template.prefix):
                continue
            rest = uri[len(template.prefix):]
            if template.kind == "record":
                parts = [unquote(part) for part in rest.split("/")]
                if len(parts) != 2 or not all(parts):
                    raise invalid_request(
                        f"URI format should be servicenow://record/{{table_name}}/{{sys_id}}, got: {uri}. "
                        f"{_template_listing()}"
                    )
                return template, parts
            rest = unquote(rest)
            if not rest:
                raise _unknown_uri(uri)
            return template, [rest]
        raise _unknown_uri(uri)

    def resolve(self, uri: str) -> Dict[str, Any]:
        template, parts = self.parse(uri)
        try:
            return self._handlers[template.kind](parts)
        except Exception as e:
            kind = template.kind.replace("-", " ")
            raise internal_error(f'Failed to get {kind} "{"/".join(parts)}": {describe(e)}') from e

    def read(self, uri: str) -> Tuple[str, str]:
        """Return ``(text, mime_type)`` for a resource URI."""
        if uri == EXAMPLES_URI:
            return EXAMPLES, MARKDOWN_MIME
        return json.dumps(self.resolve(uri), indent=2), JSON_MIME

    # ==========================================================================
    # TEMPLATE HANDLERS
    # ==========================================================================

    def table_schema(self, parts: Sequence[str]) -> Dict[str, Any]:
        table = parts[0]
        rows = results(self.client.query_table(
            DICTIONARY_TABLE, f"name={table}^active=true", DICTIONARY_FIELDS, 1000, 0, "element"
        )) or []
        fields = [
            {
                "column_name": row.get("element"),
                "column_label": row.get("column_label"),
                "internal_type": row.get("internal_type"),
                "max_length": row.get("max_length"),
                "mandatory": is_true(row.get("mandatory")),
                "reference": row.get("reference"),
                "is_choice_field": is_true(row.get("choice_field")),
                "default_value": row.get("default_value"),
                "comments": row.get("comments"),
            }
            for row in rows
            if row.get("element")
        ]
        return {"table": table, "fields": fields}

    def table_data(self, parts: Sequence[str]) -> Dict[str, Any]:
        table = parts[0]
        records = results(self.client.query_table(table, limit=SAMPLE_SIZE, order_by=SAMPLE_ORDER)) or []
        return {"table": table, "sample_count": len(records), "records": records}

    def record(self, parts: Sequence[str]) -> Dict[str, Any]:
        table, sys_id = parts
        return {"table": table, "sys_id": sys_id, "record": results(self.client.get_record(table, sys_id))}

    def incident(self, parts: Sequence[str]) -> Dict[str, Any]:
        identifier = parts[0]
        if SYS_ID.match(identifier):
            record = results(self.client.get_record("incident", identifier))
            method = "sys_id"
        else:
            record = _first(
                self.client.query_table("incident", f"number={identifier}", limit=1),
                f'No incident found with number "{identifier}"',
            )
            method = "number"
        return {"type": "incident", "identifier": identifier, "lookup_method": method, "record": record}

    def user(self, parts: Sequence[str]) -> Dict[str, Any]:
        identifier = parts[0]
        if SYS_ID.match(identifier):
            record = results(self.client.get_record("sys_user", identifier))
            method = "sys_id"
        else:
            record = _first(
                self.client.query_table("sys_user", f"user_name={identifier}^ORemail={identifier}", limit=1),
                f'No user found with username or email "{identifier}"',
            )
            method = "username_or_email"
        return {"type": "user", "identifier": identifier, "lookup_method": method, "record": record}

    def process_definition(self, parts: Sequence[str]) -> Dict[str, Any]:
        sys_id = parts[0]
        process = results(self.client.get_record(PROCESS_TABLE, sys_id)) or {}

        lanes = self._query_first_table(LANE_TABLES, f"process_definition={sys_id}^active=true")
        activities = []
        for lane in lanes:
            for activity in self._query_first_table(ACTIVITY_TABLES, f"lane={lane.get('sys_id')}^active=true"):
                activities.append({**activity, "lane_name": lane.get("name"), "lane_sys_id": lane.get("sys_id")})

        return {
            "type": "process_definition",
            "sys_id": sys_id,
            "process_definition": process,
            "lanes": lanes,
            "activities": activities,
            "summary": {
                "total_lanes": len(lanes),
                "total_activities": len(activities),
                "status": process.get("status"),
                "active": is_true(process.get("active")),
            },
        }

    def _query_first_table(self, tables: Sequence[str], query: str) -> List[Dict[str, Any]]:
        """
        Query each candidate table in turn and return the first result set.

        Process Automation table names differ between instance versions. If
        every candidate fails the lookup is logged and treated as empty.
        """
        error = None
        for table in tables:
            try:
                return results(self.client.query_table(table, query, limit=CHILD_LIMIT, order_by="order")) or []
            except Exception as e:
                logger.debug("Lookup on %s failed: %s", table, describe(e))
                error = e
        logger.warning("Could not query %s (%s): %s", " or ".join(tables), query, describe(error))
        return []


def resource_templates() -> List[Template]:
    return list(TEMPLATES)

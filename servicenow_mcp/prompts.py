"""
Prompt catalog.

Each prompt renders a single user message that walks a model through one
ServiceNow task using this server's tools. Missing arguments are rendered as
bracketed placeholders rather than rejected.
"""

from typing import Callable, Dict, List, Optional

from mcp.types import GetPromptResult, Prompt, PromptArgument, PromptMessage, TextContent

from .errors import invalid_request

Args = Dict[str, str]


def _flag(value: Optional[str], default: bool) -> bool:
    """Prompt arguments arrive as strings."""
    if value is None or value == "":
        return default
    return str(value).strip().lower() not in ("false", "0", "no")


def critical_incident(args: Args) -> str:
    description = args.get("description") or "[Please provide incident description]"
    details = args.get("details")
    affected = args.get("affected_users")
    return f"""Create a critical incident in ServiceNow with the following details:

Short Description: {description}
Priority: 1 (Critical)
Urgency: 1 (High)
Impact: 1 (High)
Category: software

Detailed Description: {details or '[Please provide detailed description of the issue]'}

{f'Additional Context: Approximately {affected} users are affected by this issue.' if affected else 'Additional Context: [Please specify impact and affected users]'}

Please use the servicenow_incident_create tool to create this incident and provide the incident number once created."""


def active_incidents(args: Args) -> str:
    query = "stateIN1,2"
    if args.get("priority"):
        query += f"^priority={args['priority']}"
    if args.get("assignment_group"):
        query += f"^assignment_group.name={args['assignment_group']}"
    limit = args.get("limit")
    return f"""Please list active incidents in ServiceNow with the following criteria:

Query: {query}
{f'Limit: {limit} incidents' if limit else 'Limit: 20 incidents (default)'}
Fields to show: number,short_description,priority,state,assignment_group,sys_created_on

Use the servicenow_incident_list tool with these parameters and format the results in a readable table showing the incident number, description, priority, current state, and assignment group."""


def resolve_incident(args: Args) -> str:
    number = args.get("incident_number") or "[INCIDENT_NUMBER]"
    resolution = args.get("resolution") or "[Please provide resolution details]"
    close_code = args.get("close_code") or "Solution provided"
    return f"""Please resolve incident {number} in ServiceNow:

1. First, find the incident with servicenow_incident_list using the query number={number}, and note its sys_id
2. Then update the incident to resolved status using servicenow_incident_update with:
   - State: 6 (Resolved)
   - Work notes: "{resolution}"
   - Close code: "{close_code}"
   - Close notes: "{resolution}"

3. Confirm the incident has been successfully resolved and provide a summary of the changes made."""


def search_script_includes(args: Args) -> str:
    functionality = args.get("functionality") or "[functionality type]"
    in_code = _flag(args.get("search_in_code"), True)
    return f"""Search for Script Includes related to "{functionality}" in ServiceNow:

Use the servicenow_script_include_search tool with:
- Search term: "{functionality}"
- Search in script content: {'true' if in_code else 'false'}
- Active only: true

Please show the results including the script names, descriptions, and whether they are client-callable. If you find relevant scripts, also get the full details of the most promising ones using servicenow_script_include_get."""


def utility_script(args: Args) -> str:
    utility = args.get("utility_type")
    description = args.get("description") or "[Please provide description of what this utility does]"
    callable_ = _flag(args.get("client_callable"), True)
    return f"""Create a new {utility or '[UtilityType]'} Script Include in ServiceNow:

Script Include Details:
- Name: "{utility or '[UtilityType]'}"
- Description: "{description}"
- Client callable: {'true' if callable_ else 'false'}
- Active: true

Please create a basic template for this utility script that includes:
1. Proper Script Include structure
2. Common utility functions for {utility or 'the specified functionality'}
3. JSDoc comments for documentation
4. Error handling

Use the servicenow_script_include_create tool to create this script include."""


def user_data(args: Args) -> str:
    conditions = []
    if _flag(args.get("active_only"), True):
        conditions.append("active=true")
    if args.get("department"):
        conditions.append(f"department.name={args['department']}")
    if args.get("role"):
        conditions.append(f"roles={args['role']}")
    query = "^".join(conditions)
    return f"""Query user information from ServiceNow with the following criteria:

Table: sys_user
Query: {query or '[no specific filters applied]'}
Fields: name,email,department,title,phone,active,sys_created_on

Use the servicenow_query_table tool to retrieve this user data and format it in a readable table showing:
- Full Name
- Email Address
- Department
- Job Title
- Phone Number
- Active Status
- Created Date

Limit the results to 50 users and sort by name."""


def incident_trends(args: Args) -> str:
    period = args.get("time_period")
    group_by = args.get("group_by")
    return f"""Analyze incident trends in ServiceNow for {period or '[time period]'}:

1. First, query incidents created in {period or 'the specified time period'} using servicenow_incident_list:
   - Query: sys_created_on>javascript:gs.daysAgo(30) (adjust timeframe as needed)
   - Fields: number,priority,category,state,assignment_group,sys_created_on,resolved_at

2. Analyze the data and provide insights on:
   - Total number of incidents
   - Distribution by priority level
   - Distribution by category
   - {f'Grouping by {group_by}' if group_by else 'Top assignment groups by incident count'}
   - Average resolution time
   - Incidents still open vs resolved

3. Create a summary report with trends and recommendations for improvement."""


def process_workflow(args: Args) -> str:
    kind = args.get("workflow_type")
    action = (args.get("action") or "").strip().lower()
    target = args.get("target_table")

    sections = []
    if action in ("", "search"):
        sections.append(f"""**Search Process Definitions:**
- Use servicenow_process_definition_search to find existing {kind or '[workflow type]'} processes
- Search term: "{kind or '[workflow type]'}"
- Show active and published processes only""")
    if action in ("", "create"):
        suffix = f"_{target}" if target else ""
        sections.append(f"""**Create Process Definition:**
- Use servicenow_process_definition_create with:
  - Name: "{kind or '[WorkflowType]'}{suffix}_Process"
  - Label: "{kind or '[Workflow Type]'} Process{f' for {target}' if target else ''}"
  - Description: "Automated {kind or '[workflow type]'} process{f' for {target} records' if target else ''}"
  - Access: "public"
  - Active: true
- Add lanes with servicenow_create_process_lane and activities with servicenow_create_process_activity""")
    if action in ("", "update"):
        sections.append("""**Update Process Definition:**
- Look up the process with servicenow_process_definition_search
- Use servicenow_process_definition_update with its sys_id and the fields to change""")
    if action in ("", "execute"):
        sections.append("""**Execute Process Definition:**
- First search for the appropriate process definition
- Use servicenow_process_definition_execute with the sys_id and required input data""")

    body = "\n\n".join(sections)
    return f"""Work with {kind or '[workflow type]'} process definitions in ServiceNow:

Action: {action or '[action to perform]'}
Target Table: {target or '[specify which table this workflow applies to]'}

Based on the action requested:

{body}

Each step is a separate call and can fail on its own; earlier steps are not rolled back. If a step fails, stop, report which steps completed (with the sys_ids created or changed) and which did not.

Provide detailed results and next steps for working with this workflow."""


def bulk_update(args: Args) -> str:
    table = args.get("table_name") or "[table_name]"
    criteria = args.get("filter_criteria") or "[specify filter criteria]"
    updates = args.get("update_fields") or "[specify which fields to update and their new values]"
    return f"""Perform bulk updates on {table} records in ServiceNow:

**Step 1: Query Records to Update**
- Table: {table}
- Filter: {criteria}
- Use servicenow_query_table to first identify all records that match the criteria
- Limit to 100 records for safety

**Step 2: Review Records**
- Display the records that will be updated
- Confirm the count and show key identifying fields

**Step 3: Bulk Update**
- For each record found, use servicenow_update_record to apply:
  {updates}
- Each update is independent: a failed update does not undo the ones before it

**Step 4: Verification**
- After updates, query the records again to verify changes were applied
- Report partial completion explicitly: list the sys_ids that were updated and the ones that failed, with the error for each

**Safety Notes:**
- Always query first to verify the correct records will be updated
- Consider testing on a small subset first
- Record the previous values before updating"""


PromptRenderer = Callable[[Args], str]

PROMPTS: Dict[str, tuple] = {}


def _register(name: str, description: str, message_description: str,
              arguments: List[PromptArgument], render: PromptRenderer) -> None:
    PROMPTS[name] = (Prompt(name=name, description=description, arguments=arguments),
                     message_description, render)


def _arg(name: str, description: str, required: bool = False) -> PromptArgument:
    return PromptArgument(name=name, description=description, required=required)


_register("create_critical_incident", "Create a critical incident with all required fields",
          "Create a critical priority incident in ServiceNow", [
              _arg("description", "Brief description of the critical incident", True),
              _arg("details", "Detailed description of the incident"),
              _arg("affected_users", "Number of users affected"),
          ], critical_incident)
_register("list_active_incidents", "List active incidents with filtering options",
          "List active incidents with optional filtering", [
              _arg("priority", "Priority level to filter by (1-5)"),
              _arg("assignment_group", "Assignment group name to filter by"),
              _arg("limit", "Maximum number of incidents to return"),
          ], active_incidents)
_register("resolve_incident", "Resolve an incident with work notes and close code",
          "Resolve an incident with proper work notes and closure", [
              _arg("incident_number", "Incident number (e.g., INC0010001)", True),
              _arg("resolution", "Description of how the incident was resolved", True),
              _arg("close_code", "Close code for the incident"),
          ], resolve_incident)
_register("search_script_includes", "Search for Script Includes by functionality",
          "Search for Script Includes by functionality", [
              _arg("functionality", 'Type of functionality to search for (e.g., "string utils", "date handling")', True),
              _arg("search_in_code", "Whether to search in the script code content"),
          ], search_script_includes)
_register("create_utility_script", "Create a new utility Script Include",
          "Create a new utility Script Include", [
              _arg("utility_type", 'Type of utility (e.g., "StringUtil", "DateUtil", "ValidationUtil")', True),
              _arg("description", "Description of what the utility does", True),
              _arg("client_callable", "Whether the script should be callable from client-side"),
          ], utility_script)
_register("query_user_data", "Query user information with various filters",
          "Query user information with filtering", [
              _arg("department", "Department to filter by"),
              _arg("role", "Role to filter by"),
              _arg("active_only", "Whether to only show active users"),
          ], user_data)
_register("analyze_incident_trends", "Analyze incident trends over a time period",
          "Analyze incident trends over time", [
              _arg("time_period", 'Time period for analysis (e.g., "last 30 days", "this month")', True),
              _arg("group_by", "How to group the analysis (category, priority, assignment_group)"),
          ], incident_trends)
_register("process_definition_workflow", "Work with process definitions and workflows",
          "Work with process definitions and workflows", [
              _arg("workflow_type", "Type of workflow (approval, automation, notification)", True),
              _arg("action", "Action to perform (create, search, execute, update)", True),
              _arg("target_table", "Table the workflow applies to"),
          ], process_workflow)
_register("bulk_update_records", "Perform bulk updates on ServiceNow records",
          "Perform bulk updates on ServiceNow records", [
              _arg("table_name", "Name of the table to update", True),
              _arg("filter_criteria", "Criteria to filter records for update", True),
              _arg("update_fields", "Description of fields and values to update", True),
          ], bulk_update)


def list_prompts() -> List[Prompt]:
    return [prompt for prompt, _, _ in PROMPTS.values()]


def get_prompt(name: str, arguments: Optional[Args] = None) -> GetPromptResult:
    if name not in PROMPTS:
        raise invalid_request(f"Unknown prompt: {name}")
    _, description, render = PROMPTS[name]
    text = render(arguments or {})
    return GetPromptResult(
        description=description,
        messages=[PromptMessage(role="user", content=TextContent(type="text", text=text))],
    )

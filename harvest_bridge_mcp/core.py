"""
Core request translation for the Harvest Application Bridge.

This module contains the code shared by every operation and transport:
- Constants
- Enums
- Pydantic models
- Query map building and endpoint resolution
- Output formatting
"""

import json
from string import Formatter
from typing import Optional, List, Dict, Any, Tuple, Union
from enum import Enum
from urllib.parse import urlencode

import structlog
from pydantic import BaseModel, Field, ConfigDict

from .errors import (
    DuplicateParameterError,
    InvalidStructureError,
    MissingRequiredParameterError,
)

logger = structlog.get_logger(__name__)


# ============================================================================
# CONSTANTS
# ============================================================================

ADAPTER_NAME = "Harvest Application Bridge"
CHARACTER_LIMIT = 25000


# ============================================================================
# ENUMS
# ============================================================================

class Structure(str, Enum):
    """Logical entity types the bridge exposes."""
    CLIENTS = "Clients"
    PROJECTS = "Projects"
    TASKS = "Tasks"
    TASK_ASSIGNMENTS = "Task Assignments"
    USERS = "Users"
    USER_ASSIGNMENTS = "User Assignments"


VALID_STRUCTURES = [s.value for s in Structure]


class OperationMode(str, Enum):
    """Whether a request lists many entities or fetches exactly one."""
    SEARCH = "search"
    RETRIEVE = "retrieve"


class ResponseFormat(str, Enum):
    """Output format for tool responses."""
    MARKDOWN = "markdown"
    JSON = "json"


# ============================================================================
# PYDANTIC MODELS
# ============================================================================

class HarvestCountInput(BaseModel):
    """Input model for counting Harvest records."""
    model_config = ConfigDict(
        validate_assignment=True,
        extra='forbid'
    )

    structure: str = Field(
        ...,
        description="Entity type to query. One of: 'Clients', 'Projects', 'Tasks', 'Task Assignments', 'Users', 'User Assignments'. Case and spacing must match exactly.",
    )

    query: str = Field(
        default="",
        description="Qualification as key=value pairs joined by '&'. May embed parameters as <%=parameter[\"Name\"]%>. Example: 'project_id=<%=parameter[\"Project Id\"]%>&is_active=true'",
    )

    parameters: Dict[str, str] = Field(
        default_factory=dict,
        description="Values for the parameters referenced in the query, keyed by parameter name."
    )


class HarvestRetrieveInput(HarvestCountInput):
    """Input model for retrieving a single Harvest record."""

    fields: Optional[List[str]] = Field(
        default=None,
        description="Fields to return, in order. Omit to return every field of the record.",
        max_length=100
    )

    response_format: ResponseFormat = Field(
        default=ResponseFormat.MARKDOWN,
        description="Output format: 'markdown' for human-readable (default), 'json' for machine-readable."
    )


class HarvestSearchInput(HarvestRetrieveInput):
    """Input model for searching Harvest records."""


class RecordList(BaseModel):
    """Ordered field schema plus the records that follow it."""
    model_config = ConfigDict(frozen=True)

    fields: List[str] = Field(default_factory=list)
    records: List[Dict[str, str]] = Field(default_factory=list)


# ============================================================================
# STRUCTURE VALIDATION
# ============================================================================

def parse_structure(structure: Union[str, Structure]) -> Structure:
    """Validate a structure name against the closed set the bridge serves."""
    if isinstance(structure, Structure):
        return structure
    try:
        return Structure(structure)
    except ValueError:
        raise InvalidStructureError(str(structure), VALID_STRUCTURES) from None


# ============================================================================
# QUERY MAP
# ============================================================================

def build_query_map(query: str) -> Dict[str, str]:
    """
    Split a flat 'key=value&key=value' query into an ordered mapping.

    Each pair is split on its first '='; a pair without one maps to the
    empty string. Keys and values are stripped of surrounding whitespace.
    Empty segments are skipped.

    Raises:
        DuplicateParameterError: if a key appears more than once
    """
    query_map: Dict[str, str] = {}
    for part in query.split("&"):
        if not part.strip():
            continue
        key, _, value = part.partition("=")
        key = key.strip()
        if key in query_map:
            raise DuplicateParameterError(key)
        query_map[key] = value.strip()
        logger.debug("query_map_entry", key=key, value=query_map[key])
    return query_map


# ============================================================================
# ENDPOINT RESOLUTION
# ============================================================================

# Placeholders in a path are path parameters: they are consumed from the
# query map and inserted verbatim.
ENDPOINT_RULES: Dict[Structure, Dict[OperationMode, str]] = {
    Structure.CLIENTS: {
        OperationMode.SEARCH: "/clients",
        OperationMode.RETRIEVE: "/clients/{client_id}",
    },
    Structure.PROJECTS: {
        OperationMode.SEARCH: "/projects",
        OperationMode.RETRIEVE: "/projects/{project_id}",
    },
    Structure.TASKS: {
        OperationMode.SEARCH: "/tasks",
        OperationMode.RETRIEVE: "/tasks/{task_id}",
    },
    Structure.TASK_ASSIGNMENTS: {
        OperationMode.SEARCH: "/projects/{project_id}/task_assignments",
        OperationMode.RETRIEVE: "/projects/{project_id}/task_assignments/{task_assignment_id}",
    },
    Structure.USERS: {
        OperationMode.SEARCH: "/people",
        OperationMode.RETRIEVE: "/people/{user_id}",
    },
    Structure.USER_ASSIGNMENTS: {
        OperationMode.SEARCH: "/projects/{project_id}/user_assignments",
        OperationMode.RETRIEVE: "/projects/{project_id}/user_assignments/{user_assignment_id}",
    },
}


def path_parameters(template: str) -> List[str]:
    """Names of the placeholders in a path template, in order."""
    return [name for _, name, _, _ in Formatter().parse(template) if name]


def resolve_endpoint(
    structure: Union[str, Structure],
    query_map: Dict[str, str],
    mode: OperationMode
) -> Tuple[str, Dict[str, str]]:
    """
    Resolve the relative path for a structure and operation mode.

    Args:
        structure: Structure name or enum member
        query_map: Parsed query; left untouched
        mode: Search or retrieve

    Returns:
        Tuple of (path, remaining_query_map) where the remaining map holds
        every entry not consumed as a path parameter

    Raises:
        InvalidStructureError: unknown structure
        MissingRequiredParameterError: a path parameter is absent
    """
    structure = parse_structure(structure)
    template = ENDPOINT_RULES[structure][mode]
    required = path_parameters(template)

    missing = [name for name in required if name not in query_map]
    if missing:
        raise MissingRequiredParameterError(structure.value, missing, mode.value)

    remaining = dict(query_map)
    values = {name: remaining.pop(name) for name in required}
    return template.format(**values), remaining


def build_url(base_url: str, path: str, remaining: Dict[str, str]) -> str:
    """Join base address, path and the encoded remaining query (space becomes '+')."""
    url = base_url + path
    if remaining:
        url += "?" + urlencode(remaining)
    return url


# ============================================================================
# OUTPUT FORMATTING
# ============================================================================

def format_record_markdown(record: Dict[str, str], title: str = "Record") -> str:
    """Format a single record in Markdown format."""
    md = f"### {title}\n\n"
    for field, value in record.items():
        md += f"**{field}:** {value}\n"
    return md + "\n---\n"


def _escape_cell(value: str) -> str:
    return value.replace("|", "\\|").replace("\n", " ")


def format_records_table(record_list: RecordList) -> str:
    """Format a record list as a Markdown table in field order."""
    if not record_list.fields:
        return ""

    md = "| " + " | ".join(_escape_cell(f) for f in record_list.fields) + " |\n"
    md += "|" + "---|" * len(record_list.fields) + "\n"
    for record in record_list.records:
        cells = [_escape_cell(record.get(f, "")) for f in record_list.fields]
        md += "| " + " | ".join(cells) + " |\n"
    return md


def format_result_json(payload: Dict[str, Any]) -> str:
    """Serialize a tool result as indented JSON."""
    return json.dumps(payload, indent=2)


def truncate_if_needed(content: str, data: List[Any], limit: int = CHARACTER_LIMIT) -> str:
    """Check response size and truncate if it exceeds the character limit."""
    if len(content) <= limit:
        return content

    truncated = content[:limit]

    notice = f"\n\n**TRUNCATED**: Response exceeded {limit} characters.\n"
    notice += f"Showing partial results. Original had {len(data)} records.\n"
    notice += "To see fewer results:\n"
    notice += "- Add query filters supported by the Harvest endpoint\n"
    notice += "- Request only the fields you need\n"

    return truncated + notice

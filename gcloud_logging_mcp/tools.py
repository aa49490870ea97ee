"""Static tool catalog for the Cloud Logging MCP server.

Each tool has an MCP descriptor (what clients see from ``tools/list``) and a
pydantic model used to validate the arguments of ``tools/call``.
"""

from mcp.types import Tool
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from gcloud_logging_mcp.exceptions import ToolArgumentsError

LIST_PROJECTS = "list-projects"
SELECT_PROJECT = "select-project"
GET_LOGS = "get-logs"


class NoArgs(BaseModel):
    """Arguments for tools that take none."""

    model_config = ConfigDict(extra="ignore")


class SelectProjectArgs(BaseModel):
    """Arguments for select-project."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    project_id: str = Field(alias="projectId", min_length=1)


class GetLogsArgs(BaseModel):
    """Arguments for get-logs."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    filter: str | None = None
    # Strict, so JSON booleans are not read as 0 or 1.
    page_size: float | None = Field(default=None, alias="pageSize", ge=0, strict=True)

    @field_validator("page_size")
    @classmethod
    def _whole_number(cls, value: float | None) -> int | None:
        if value is None:
            return None
        if not float(value).is_integer():
            raise ValueError("must be a whole number")
        return int(value)


TOOLS: tuple[Tool, ...] = (
    Tool(
        name=LIST_PROJECTS,
        description="List all GCP projects accessible with current credentials",
        input_schema={
            "type": "object",
            "properties": {},
            "required": [],
        },
    ),
    Tool(
        name=SELECT_PROJECT,
        description="Selects GCP project to use for subsequent logging operations",
        input_schema={
            "type": "object",
            "properties": {
                "projectId": {
                    "type": "string",
                    "description": "ID of the GCP project to select",
                },
            },
            "required": ["projectId"],
        },
    ),
    Tool(
        name=GET_LOGS,
        description="Get Cloud Logging entries for the current project",
        input_schema={
            "type": "object",
            "properties": {
                "filter": {
                    "type": "string",
                    "description": "Filter for the log entries (see Cloud Logging query syntax)",
                },
                "pageSize": {
                    "type": "number",
                    "description": "Maximum number of entries to return (default: 10)",
                },
            },
            "required": [],
        },
    ),
)

TOOL_ARGUMENTS: dict[str, type[BaseModel]] = {
    LIST_PROJECTS: NoArgs,
    SELECT_PROJECT: SelectProjectArgs,
    GET_LOGS: GetLogsArgs,
}


def list_tools() -> list[Tool]:
    """Return the tool catalog."""
    return list(TOOLS)


def parse_arguments(tool_name: str, raw_args: dict | None) -> BaseModel:
    """Validate raw call arguments against the tool's argument model.

    Raises:
        KeyError: if the tool is not in the catalog
        ToolArgumentsError: if the arguments do not validate
    """
    model = TOOL_ARGUMENTS[tool_name]
    try:
        return model.model_validate(raw_args or {})
    except ValidationError as e:
        raise ToolArgumentsError(tool_name, e) from e

"""Tool dispatch for the Cloud Logging MCP server."""

import json
import logging
from typing import Any, Awaitable, Callable

from mcp.types import CallToolResult, TextContent
from pydantic import BaseModel

from gcloud_logging_mcp.exceptions import CredentialAcquisitionError, ToolArgumentsError
from gcloud_logging_mcp.gcp import (
    CredentialProvider,
    DirectoryService,
    LogQuery,
    LogRecord,
    LogStore,
)
from gcloud_logging_mcp.models import ServerConfig
from gcloud_logging_mcp.retry import retry_async
from gcloud_logging_mcp.session import SessionState
from gcloud_logging_mcp.tools import (
    GET_LOGS,
    LIST_PROJECTS,
    SELECT_PROJECT,
    GetLogsArgs,
    SelectProjectArgs,
    parse_arguments,
)

logger = logging.getLogger(__name__)

NO_PROJECT_SELECTED = "No project selected. Please select a project first."

Handler = Callable[[Any, SessionState], Awaitable[str]]


def text_response(text: str) -> CallToolResult:
    """Wrap text in the single-item envelope every tool call returns."""
    return CallToolResult(content=[TextContent(type="text", text=text)])


def format_entry(record: LogRecord) -> dict[str, Any]:
    """Render a log record the way get-logs reports it."""
    return {
        "timestamp": record.timestamp,
        "severity": record.severity,
        "resource": record.resource,
        "textPayload": record.payload,
        "jsonPayload": record.payload if isinstance(record.payload, dict) else None,
    }


class Dispatcher:
    """Validates tool calls and routes them to their handlers.

    ``invoke`` never raises: unknown tools, bad arguments and failures of the
    Google services all come back as envelope text.
    """

    def __init__(
        self,
        credentials: CredentialProvider,
        directory: DirectoryService,
        logs: LogStore,
        config: ServerConfig | None = None,
    ):
        self.credentials = credentials
        self.directory = directory
        self.logs = logs
        self.config = config or ServerConfig()
        self._handlers: dict[str, Handler] = {
            LIST_PROJECTS: self._list_projects,
            SELECT_PROJECT: self._select_project,
            GET_LOGS: self._get_logs,
        }

    async def invoke(
        self, tool_name: str, raw_args: dict[str, Any] | None, state: SessionState
    ) -> CallToolResult:
        """Call a tool by name for the given session."""
        handler = self._handlers.get(tool_name)
        if handler is None:
            logger.warning(f"Unknown tool requested: {tool_name!r}")
            return text_response(f"Error: Unknown tool: {tool_name}")

        try:
            args = parse_arguments(tool_name, raw_args)
        except ToolArgumentsError as e:
            logger.info(f"Rejected call to {tool_name}: {e}")
            return text_response(f"Error: {e}")

        try:
            text = await handler(args, state)
        except Exception as e:
            logger.exception(f"Error in tool {tool_name}")
            return text_response(f"Error: {e}")

        return text_response(text)

    async def _list_projects(self, args: BaseModel, state: SessionState) -> str:
        try:
            projects = await self.directory.search_projects()
        except Exception as e:
            logger.error(f"Error listing projects: {e}")
            if self.config.strict_project_listing:
                return f"Error listing projects: {e}"
            projects = []
        return json.dumps({"projects": projects}, separators=(",", ":"))

    async def acquire_credentials(self) -> Any:
        """Obtain credentials for the configured scopes, retrying on failure.

        Raises:
            CredentialAcquisitionError: once every attempt has failed
        """
        scopes = list(self.config.scopes)
        outcome = await retry_async(
            lambda: self.credentials.acquire(scopes),
            retries=self.config.credential_retries,
            delay=self.config.retry_delay,
        )
        if not outcome.ok:
            raise CredentialAcquisitionError(outcome.attempts, outcome.error)
        return outcome.value

    async def _select_project(self, args: SelectProjectArgs, state: SessionState) -> str:
        try:
            credentials = await self.acquire_credentials()
        except CredentialAcquisitionError as e:
            logger.error(f"Failed to select project {args.project_id}: {e}")
            state.reset()
            return f"Error: Failed to select project {args.project_id}: {e}"

        state.select(args.project_id, credentials)
        logger.info(f"Selected project {args.project_id}")
        return f"Project {args.project_id} selected successfully!"

    async def _get_logs(self, args: GetLogsArgs, state: SessionState) -> str:
        if not state.has_selection:
            return NO_PROJECT_SELECTED

        query = LogQuery(
            project_id=state.selected_project_id,
            filter=args.filter or None,
            page_size=args.page_size or self.config.default_page_size,
        )
        try:
            records = await self.logs.list_entries(query, state.credentials)
        except Exception as e:
            logger.error(f"Error getting logs for {query.project_id}: {e}")
            return f"Error getting logs: {e}"

        return json.dumps(
            {"entries": [format_entry(record) for record in records]},
            indent=2,
            default=str,
        )

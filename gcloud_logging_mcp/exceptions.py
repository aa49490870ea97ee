"""Exceptions raised by the Cloud Logging MCP server."""

from pydantic import ValidationError


class GCloudLoggingMCPError(Exception):
    """Base class for server errors."""


class CredentialAcquisitionError(GCloudLoggingMCPError):
    """Raised when credentials could not be obtained after all retries."""

    def __init__(self, attempts: int, cause: BaseException | None = None):
        self.attempts = attempts
        self.cause = cause
        reason = str(cause) if cause else "unknown error"
        super().__init__(
            f"Could not acquire credentials after {attempts} attempt(s): {reason}"
        )


class ToolArgumentsError(GCloudLoggingMCPError):
    """Raised when tool arguments do not match the tool's input schema."""

    def __init__(self, tool_name: str, error: ValidationError):
        self.tool_name = tool_name
        self.error = error
        super().__init__(
            f"Invalid arguments for {tool_name}: {format_validation_error(error)}"
        )


def format_validation_error(error: ValidationError) -> str:
    """Render a pydantic ValidationError as a single readable line."""
    parts = []
    for item in error.errors():
        location = ".".join(str(part) for part in item.get("loc", ())) or "arguments"
        parts.append(f"{location}: {item.get('msg', 'invalid value')}")
    return "; ".join(parts)

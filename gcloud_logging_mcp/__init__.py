"""gcloud-logging-mcp - Google Cloud project listing and Cloud Logging queries as MCP tools."""

__version__ = "1.0.0"

from gcloud_logging_mcp.dispatcher import Dispatcher, text_response  # noqa: E402
from gcloud_logging_mcp.models import ServerConfig  # noqa: E402
from gcloud_logging_mcp.session import SessionState  # noqa: E402
from gcloud_logging_mcp.tools import list_tools  # noqa: E402

__all__ = [
    "Dispatcher",
    "ServerConfig",
    "SessionState",
    "__version__",
    "list_tools",
    "text_response",
]

"""Configuration models for the Cloud Logging MCP server."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

CLOUD_PLATFORM_SCOPE = "https://www.googleapis.com/auth/cloud-platform"
DEFAULT_PAGE_SIZE = 10
DEFAULT_PORT = 3000


class ServerConfig(BaseModel):
    """Root configuration for the server.

    Values come from (highest precedence first) environment variables,
    command-line flags, the YAML config file, and these defaults.
    """

    model_config = ConfigDict(extra="forbid")

    transport: Literal["stdio", "sse"] = "stdio"
    host: str = "127.0.0.1"
    port: int = Field(default=DEFAULT_PORT, ge=0, le=65535)
    scopes: list[str] = [CLOUD_PLATFORM_SCOPE]
    credential_retries: int = Field(default=3, ge=0)
    retry_delay: float = Field(default=1.0, ge=0)
    default_page_size: int = Field(default=DEFAULT_PAGE_SIZE, gt=0)
    # When False, a failed project search is reported as an empty list.
    strict_project_listing: bool = False
    keepalive_interval: float = Field(default=30.0, gt=0)

"""Transports for the Cloud Logging MCP server.

Exactly one runs per process:
  - stdio: newline-delimited JSON-RPC over stdin/stdout, one session
  - sse: HTTP with a server-sent event stream per session
"""

from gcloud_logging_mcp.transports.sse import SessionRegistry, SseTransport, TransportSession
from gcloud_logging_mcp.transports.stdio import StdioTransport

__all__ = [
    "SessionRegistry",
    "SseTransport",
    "StdioTransport",
    "TransportSession",
]

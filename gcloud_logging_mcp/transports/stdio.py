"""MCP over stdin/stdout.

One message per line in both directions. The process has a single
connection for its whole lifetime, so it also has a single SessionState.
"""

from __future__ import annotations

import logging

import anyio
from mcp.server.stdio import stdio_server

from gcloud_logging_mcp.connection import ServerFactory
from gcloud_logging_mcp.session import SessionState

logger = logging.getLogger(__name__)


class StdioTransport:
    """Serves one MCP client over the process's standard streams.

    ``stdin`` and ``stdout`` default to the real standard streams; tests pass
    their own async line sources and sinks.
    """

    def __init__(
        self,
        server_factory: ServerFactory,
        stdin: anyio.AsyncFile[str] | None = None,
        stdout: anyio.AsyncFile[str] | None = None,
    ):
        self.server_factory = server_factory
        self.state = SessionState()
        self._stdin = stdin
        self._stdout = stdout

    async def serve(self) -> None:
        """Serve until stdin reaches EOF.

        I/O errors on either stream propagate to the caller.
        """
        server = self.server_factory(self.state)
        logger.info("Cloud Logging MCP server running on stdio")

        async with stdio_server(self._stdin, self._stdout) as (read_stream, write_stream):
            await server.run(read_stream, write_stream, server.create_initialization_options())

        logger.info("stdin closed, shutting down")

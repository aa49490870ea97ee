"""One MCP server per client connection.

The MCP SDK's lowlevel ``Server`` handles the protocol itself (handshake,
``ping``, JSON-RPC framing and error codes). Every connection gets its own
``Server`` whose handlers close over that connection's SessionState, so a
project selected by one client is never visible to another.
"""

import functools
from typing import Any, Callable

from mcp import types
from mcp.server.lowlevel import Server

from gcloud_logging_mcp import __version__
from gcloud_logging_mcp.debug import DebugContext
from gcloud_logging_mcp.dispatcher import Dispatcher
from gcloud_logging_mcp.session import SessionState
from gcloud_logging_mcp.tools import list_tools

SERVER_NAME = "gcloud-logging-mcp"

ServerFactory = Callable[[SessionState], Server]


def build_server(dispatcher: Dispatcher, state: SessionState) -> Server:
    """Create the MCP server for one connection.

    Args:
        dispatcher: Shared dispatcher that runs the tools
        state: The connection's own project selection
    """

    async def on_list_tools(
        ctx: Any, params: types.PaginatedRequestParams | None
    ) -> types.ListToolsResult:
        return types.ListToolsResult(tools=list_tools())

    async def on_call_tool(ctx: Any, params: types.CallToolRequestParams) -> types.CallToolResult:
        async with DebugContext():
            return await dispatcher.invoke(params.name, params.arguments, state)

    return Server(
        SERVER_NAME,
        version=__version__,
        on_list_tools=on_list_tools,
        on_call_tool=on_call_tool,
    )


def server_factory(dispatcher: Dispatcher) -> ServerFactory:
    """Bind a dispatcher so transports only need to supply session state."""
    return functools.partial(build_server, dispatcher)

"""Server assembly and process entry points.

Provides the main entry point for wiring the Google collaborators and the
dispatcher into per-connection MCP servers, and for running either transport.
"""

import asyncio
import logging
import os
from typing import Any

from gcloud_logging_mcp.connection import ServerFactory, server_factory
from gcloud_logging_mcp.debug import instrument_dispatcher
from gcloud_logging_mcp.dispatcher import Dispatcher
from gcloud_logging_mcp.gcp import (
    CloudLoggingStore,
    CredentialProvider,
    DirectoryService,
    GoogleCredentialProvider,
    LogStore,
    ResourceManagerDirectory,
)
from gcloud_logging_mcp.models import ServerConfig
from gcloud_logging_mcp.transports.sse import SseTransport
from gcloud_logging_mcp.transports.stdio import StdioTransport

logger = logging.getLogger(__name__)


def create_server(
    config: ServerConfig | None = None,
    credentials: CredentialProvider | None = None,
    directory: DirectoryService | None = None,
    logs: LogStore | None = None,
) -> ServerFactory:
    """Create the factory that builds one MCP server per connection.

    All connections share a single dispatcher.

    Args:
        config: Server settings (defaults if not provided)
        credentials: Credential provider (Application Default Credentials if not provided)
        directory: Project directory (Resource Manager if not provided)
        logs: Log store (Cloud Logging if not provided)
    """
    config = config or ServerConfig()
    dispatcher = Dispatcher(
        credentials=credentials or GoogleCredentialProvider(),
        directory=directory or ResourceManagerDirectory(),
        logs=logs or CloudLoggingStore(),
        config=config,
    )
    instrument_dispatcher(dispatcher)
    return server_factory(dispatcher)


def _fatal_exception_handler(loop: asyncio.AbstractEventLoop, context: dict[str, Any]) -> None:
    """Log an exception nobody awaited and terminate the process."""
    logger.critical(
        f"Unhandled error in event loop: {context.get('message', 'unknown')}",
        exc_info=context.get("exception"),
    )
    logging.shutdown()
    os._exit(1)


async def _serve_stdio(factory: ServerFactory) -> None:
    asyncio.get_running_loop().set_exception_handler(_fatal_exception_handler)
    await StdioTransport(factory).serve()


def run_stdio(factory: ServerFactory) -> None:
    """Serve one client on stdin/stdout until EOF (blocks)."""
    asyncio.run(_serve_stdio(factory))


def run_sse(factory: ServerFactory, config: ServerConfig) -> None:
    """Serve HTTP/SSE clients until interrupted (blocks).

    The fatal loop exception handler is installed from the app's lifespan,
    on the loop uvicorn creates.
    """
    transport = SseTransport(
        factory,
        keepalive_interval=config.keepalive_interval,
        exception_handler=_fatal_exception_handler,
    )
    transport.run(host=config.host, port=config.port)


def run(config: ServerConfig) -> None:
    """Run the transport selected by the configuration."""
    factory = create_server(config)
    if config.transport == "sse":
        run_sse(factory, config)
    else:
        run_stdio(factory)

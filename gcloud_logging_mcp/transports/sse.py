"""HTTP transport with a server-sent event stream per session.

The client connects via:
  GET  /sse                          -> event stream (endpoint event, then message events)
  POST /messages?sessionId=<id>      -> JSON-RPC messages for that session

Each session runs its own MCP server over a pair of in-memory streams.
POSTed messages are fed into the server's read stream; whatever the server
writes is delivered on the session's event stream. The POST itself only
acknowledges receipt.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Callable

import anyio
from mcp import types
from mcp.shared.message import SessionMessage
from pydantic import ValidationError
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response, StreamingResponse
from starlette.routing import Route

from gcloud_logging_mcp.connection import ServerFactory
from gcloud_logging_mcp.session import SessionState

logger = logging.getLogger(__name__)

SSE_PATH = "/sse"
MESSAGES_PATH = "/messages"

# Inbound messages a session buffers before a POST has to wait for the server.
INBOX_SIZE = 32

ExceptionHandler = Callable[[asyncio.AbstractEventLoop, dict[str, Any]], None]


@dataclass
class TransportSession:
    """One event-stream connection and the state it carries.

    ``inbox`` feeds the session's MCP server; ``queue`` holds what the server
    wrote until the event stream sends it. A ``None`` on the queue ends the
    stream.
    """

    session_id: str
    queue: asyncio.Queue = field(default_factory=asyncio.Queue)
    state: SessionState = field(default_factory=SessionState)
    closed: bool = False

    def __post_init__(self) -> None:
        self.inbox, self.read_stream = anyio.create_memory_object_stream[
            SessionMessage | Exception
        ](INBOX_SIZE)
        self.write_stream, self.outbox = anyio.create_memory_object_stream[SessionMessage](0)

    async def deliver(self, message: SessionMessage) -> None:
        """Hand a client message to the session's server.

        Raises:
            anyio.ClosedResourceError: if the session has been closed
        """
        await self.inbox.send(message)

    async def forward_replies(self) -> None:
        """Move server output onto the event-stream queue until the server stops."""
        async with self.outbox:
            async for message in self.outbox:
                self.queue.put_nowait(message)

    def close(self) -> None:
        self.closed = True
        self.inbox.close()
        self.queue.put_nowait(None)


class SessionRegistry:
    """Live event-stream sessions keyed by session ID."""

    def __init__(self) -> None:
        self._sessions: dict[str, TransportSession] = {}

    def open(self) -> TransportSession:
        session = TransportSession(session_id=uuid.uuid4().hex)
        self._sessions[session.session_id] = session
        logger.info(f"SSE session {session.session_id[:8]} connected")
        return session

    def get(self, session_id: str) -> TransportSession | None:
        return self._sessions.get(session_id)

    def close(self, session_id: str) -> bool:
        """Remove a session. Returns False if it was already gone."""
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        session.close()
        logger.info(f"SSE session {session_id[:8]} disconnected")
        return True

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)


def format_event(event: str, data: str) -> str:
    return f"event: {event}\ndata: {data}\n\n"


class SseTransport:
    """Starlette application serving MCP over server-sent events.

    Example:
        transport = SseTransport(server_factory(dispatcher))
        transport.run(host="127.0.0.1", port=3000)  # Blocks
    """

    def __init__(
        self,
        server_factory: ServerFactory,
        keepalive_interval: float = 30.0,
        registry: SessionRegistry | None = None,
        exception_handler: ExceptionHandler | None = None,
    ):
        self.server_factory = server_factory
        self.keepalive_interval = keepalive_interval
        self.registry = registry if registry is not None else SessionRegistry()
        self.exception_handler = exception_handler
        self.app = self._create_app()

    def _create_app(self) -> Starlette:
        routes = [
            Route(SSE_PATH, endpoint=self._handle_sse, methods=["GET"]),
            Route(MESSAGES_PATH, endpoint=self._handle_message, methods=["POST"]),
        ]
        return Starlette(routes=routes, lifespan=self._lifespan)

    @asynccontextmanager
    async def _lifespan(self, app: Starlette) -> AsyncIterator[None]:
        if self.exception_handler is not None:
            asyncio.get_running_loop().set_exception_handler(self.exception_handler)
        yield

    async def serve_session(self, session: TransportSession) -> None:
        """Run an MCP server for the session until its inbox is closed."""
        server = self.server_factory(session.state)
        async with anyio.create_task_group() as tg:
            tg.start_soon(session.forward_replies)
            await server.run(
                session.read_stream,
                session.write_stream,
                server.create_initialization_options(),
            )

    async def event_stream(self) -> AsyncIterator[str]:
        """Open a session and yield its events until it is closed.

        The session is registered and removed inside this generator, so it is
        cleaned up however the stream ends: client disconnect, cancellation,
        or ``registry.close``.
        """
        session = self.registry.open()
        serving = asyncio.create_task(self.serve_session(session))
        try:
            yield format_event(
                "endpoint", f"{MESSAGES_PATH}?sessionId={session.session_id}"
            )
            while True:
                try:
                    message = await asyncio.wait_for(
                        session.queue.get(), timeout=self.keepalive_interval
                    )
                except asyncio.TimeoutError:
                    yield ": keepalive\n\n"
                    continue
                if message is None:
                    break
                yield format_event(
                    "message",
                    message.message.model_dump_json(by_alias=True, exclude_unset=True),
                )
        finally:
            self.registry.close(session.session_id)
            serving.cancel()

    async def _handle_sse(self, request: Request) -> Response:
        logger.debug(f"SSE connection from {request.client}")
        return StreamingResponse(
            self.event_stream(),
            media_type="text/event-stream",
            headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
        )

    async def _handle_message(self, request: Request) -> Response:
        return await self.post_message(request.query_params.get("sessionId"), await request.body())

    async def post_message(self, session_id: str | None, body: bytes) -> Response:
        """Route one POSTed JSON-RPC message to its session."""
        if not session_id:
            return PlainTextResponse("Missing sessionId", status_code=400)

        session = self.registry.get(session_id)
        if session is None:
            return PlainTextResponse("Session not found", status_code=404)

        try:
            message = types.jsonrpc_message_adapter.validate_json(body, by_name=False)
        except ValidationError as e:
            logger.warning(f"SSE session {session_id[:8]} sent a malformed message: {e}")
            return PlainTextResponse("Invalid JSON", status_code=400)

        try:
            await session.deliver(SessionMessage(message))
        except anyio.ClosedResourceError:
            logger.warning(f"SSE session {session_id[:8]} closed before the message was delivered")
            return PlainTextResponse("Session not found", status_code=404)

        return PlainTextResponse("Accepted", status_code=202)

    def run(self, host: str = "127.0.0.1", port: int = 3000) -> None:
        """Serve the app with uvicorn (blocks)."""
        import uvicorn

        logger.info(f"Cloud Logging MCP server listening on http://{host}:{port}{SSE_PATH}")
        uvicorn.run(self.app, host=host, port=port, log_level="info")

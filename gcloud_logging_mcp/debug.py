"""Debug instrumentation for the Cloud Logging MCP server.

Logs every dispatched tool call with its arguments, duration and a short
summary of the result, tagged with a per-call request ID. Enable via the
GCLOUD_LOGGING_MCP_DEBUG=1 environment variable or enable_debug().
"""

import contextvars
import functools
import logging
import os
import reprlib
import sys
import time
import uuid
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger("gcloud_logging_mcp.debug")

DEBUG_ENV_VAR = "GCLOUD_LOGGING_MCP_DEBUG"

# Milliseconds; log store queries routinely take a few hundred.
SLOW_TOOL_THRESHOLD_MS = 1000

_request_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "request_id", default=None
)

_enabled = False

_arg_repr = reprlib.Repr()
_arg_repr.maxstring = 60
_arg_repr.maxother = 60
_arg_repr.maxdict = 6
_arg_repr.maxlist = 6


def is_debug_enabled() -> bool:
    """True after enable_debug(), or when GCLOUD_LOGGING_MCP_DEBUG is 1/true/yes."""
    return _enabled or os.environ.get(DEBUG_ENV_VAR, "").lower() in ("1", "true", "yes")


def enable_debug(enabled: bool = True) -> None:
    global _enabled
    _enabled = enabled


@dataclass
class CallMetrics:
    """Timing for one tool call."""

    tool_name: str
    start_time: float = field(default_factory=time.perf_counter)
    end_time: float | None = None

    @property
    def elapsed_ms(self) -> float:
        end = self.end_time if self.end_time is not None else time.perf_counter()
        return (end - self.start_time) * 1000

    def complete(self) -> None:
        self.end_time = time.perf_counter()


def _format_args(args: Any) -> str:
    if not isinstance(args, dict) or not args:
        return "{}"
    return "{" + ", ".join(f"{key}={_arg_repr.repr(value)}" for key, value in args.items()) + "}"


def _describe_result(result: Any) -> str:
    content = getattr(result, "content", None)
    if content is None:
        return type(result).__name__
    chars = sum(len(getattr(item, "text", "")) for item in content)
    return f"{len(content)} item(s), {chars} chars"


def instrument_dispatcher(dispatcher: Any) -> None:
    """Wrap a Dispatcher's invoke method with debug logging.

    The wrapper checks is_debug_enabled() on every call, so it costs nothing
    when debugging is off. Instrumenting the same dispatcher twice is a no-op.
    """
    if getattr(dispatcher, "_debug_instrumented", False):
        return

    original_invoke = dispatcher.invoke

    @functools.wraps(original_invoke)
    async def instrumented_invoke(tool_name: str, raw_args: Any, state: Any) -> Any:
        if not is_debug_enabled():
            return await original_invoke(tool_name, raw_args, state)

        req_id = _request_id.get() or "-"
        metrics = CallMetrics(tool_name=tool_name)
        logger.debug(f"CALL [req={req_id}] {tool_name}({_format_args(raw_args)})")

        try:
            result = await original_invoke(tool_name, raw_args, state)
        except Exception as e:
            metrics.complete()
            logger.error(
                f"FAIL [req={req_id}] {tool_name} failed in {metrics.elapsed_ms:.1f}ms: "
                f"{type(e).__name__}: {e}"
            )
            raise

        metrics.complete()
        elapsed = metrics.elapsed_ms
        summary = _describe_result(result)
        if elapsed > SLOW_TOOL_THRESHOLD_MS:
            logger.warning(
                f"SLOW [req={req_id}] {tool_name} completed in {elapsed:.1f}ms -> {summary}"
            )
        else:
            logger.debug(
                f"DONE [req={req_id}] {tool_name} completed in {elapsed:.1f}ms -> {summary}"
            )
        return result

    dispatcher.invoke = instrumented_invoke
    dispatcher._debug_instrumented = True


class DebugContext:
    """Scopes a request ID to one tool call.

    Usage:
        async with DebugContext():
            await dispatcher.invoke(name, arguments, state)
    """

    def __init__(self, request_id: str | None = None):
        self.request_id = request_id or uuid.uuid4().hex[:8]
        self._token: contextvars.Token | None = None

    async def __aenter__(self) -> "DebugContext":
        self._token = _request_id.set(self.request_id)
        return self

    async def __aexit__(self, *args: Any) -> None:
        if self._token is not None:
            _request_id.reset(self._token)


def configure_logging(level: int = logging.INFO) -> None:
    """Send package logs to stderr.

    stdout is reserved for the stdio transport, so nothing may log there.
    When debug mode is on, the debug logger is lowered to DEBUG.
    """
    root = logging.getLogger("gcloud_logging_mcp")
    root.setLevel(level)

    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(
            logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
        )
        root.addHandler(handler)

    if is_debug_enabled():
        logger.setLevel(logging.DEBUG)
        root.setLevel(min(level, logging.DEBUG))

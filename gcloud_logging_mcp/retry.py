"""Bounded retry for async operations."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RetryResult(Generic[T]):
    """Outcome of a retried operation."""

    value: T | None = None
    error: BaseException | None = None
    attempts: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None


async def retry_async(
    fn: Callable[[], Awaitable[T]],
    retries: int = 3,
    delay: float = 1.0,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> RetryResult[T]:
    """Call ``fn`` until it succeeds, at most ``retries + 1`` times.

    Waits ``delay`` seconds between attempts. Never raises for a failure of
    ``fn``; the last exception is returned in the result instead.

    Args:
        fn: Zero-argument coroutine function to call
        retries: Number of retries after the first attempt
        delay: Fixed wait between attempts, in seconds
        sleep: Awaitable sleep function (replaceable in tests)
    """
    total = retries + 1
    last_error: BaseException | None = None

    for attempt in range(1, total + 1):
        try:
            value = await fn()
        except Exception as e:
            last_error = e
            remaining = total - attempt
            if remaining:
                logger.warning(
                    f"Operation failed, retrying... ({remaining} attempts left): {e}"
                )
                await sleep(delay)
            continue
        return RetryResult(value=value, attempts=attempt)

    return RetryResult(error=last_error, attempts=total)

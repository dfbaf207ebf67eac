"""Polling wait shared by element lookup, visibility checks and pause handling."""

import asyncio
import inspect
import logging
import time
from typing import Any, Awaitable, Callable, Optional, Union

logger = logging.getLogger(__name__)

Predicate = Callable[[], Union[Any, Awaitable[Any]]]


class WaitTimeoutError(Exception):
    """Raised when a polled condition did not hold before the timeout."""
    def __init__(self, description: str, timeout_ms: int):
        super().__init__(f"Timed out after {timeout_ms}ms waiting for {description}")
        self.description = description
        self.timeout_ms = timeout_ms


async def wait_until(
    predicate: Predicate,
    timeout_ms: Optional[int] = None,
    interval_ms: int = 16,
    description: str = "condition",
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> Any:
    """
    Polls `predicate` at a fixed cadence until it returns a truthy value.

    The predicate may be a plain or async callable; its first truthy result is
    returned. With `timeout_ms=None` the wait is unbounded.

    Raises:
        WaitTimeoutError: If the predicate stays falsy past `timeout_ms`.
    """
    started = clock()
    while True:
        result = predicate()
        if inspect.isawaitable(result):
            result = await result
        if result:
            return result
        if timeout_ms is not None and (clock() - started) * 1000 >= timeout_ms:
            logger.debug(f"wait_until gave up on {description} after {timeout_ms}ms")
            raise WaitTimeoutError(description, timeout_ms)
        await sleep(interval_ms / 1000)

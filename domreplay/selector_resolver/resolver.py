import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Optional

from . import config as sr_config
from .exceptions import ElementNotFoundError, InvalidSelectorError, VisibilityTimeoutError
from .generator import generate_descriptor
from .types import SelectorDescriptor
from ..waiting import WaitTimeoutError, wait_until

logger = logging.getLogger(__name__)


class SelectorResolver:
    """Generates selector descriptors for elements and locates elements from descriptors.

    The resolver holds no state between calls. It talks to the page only through
    `document`, an adapter exposing `snapshot(element)`, `query(selector)` and
    `is_visible(element)` (see `domreplay.page_driver.PageDocument`).
    """

    def __init__(
        self,
        document: Any,
        find_timeout_ms: Optional[int] = None,
        visibility_timeout_ms: Optional[int] = None,
        poll_interval_ms: int = sr_config.FRAME_INTERVAL_MS,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.document = document
        self.find_timeout_ms = sr_config.get_find_timeout_ms(find_timeout_ms)
        self.visibility_timeout_ms = sr_config.get_visibility_timeout_ms(visibility_timeout_ms)
        self.poll_interval_ms = poll_interval_ms
        self._sleep = sleep
        self._clock = clock

    async def generate(self, element: Any) -> SelectorDescriptor:
        """Snapshots `element` in the page and ranks its selector candidates."""
        snapshot = await self.document.snapshot(element)
        return generate_descriptor(snapshot)

    async def find_once(self, descriptor: SelectorDescriptor) -> Optional[Any]:
        """Tries every candidate once, in order. Invalid candidates are logged and skipped."""
        for candidate in descriptor.candidates:
            try:
                element = await self.document.query(candidate)
            except InvalidSelectorError as e:
                logger.warning(f"Skipping invalid selector candidate: {e}")
                continue
            if element is not None:
                logger.debug(f"Resolved element with candidate '{candidate}'")
                return element
        return None

    async def resolve(self, descriptor: SelectorDescriptor, timeout_ms: Optional[int] = None) -> Any:
        """
        Locates the live element for `descriptor`, polling once per frame.

        Raises:
            ElementNotFoundError: If no candidate matches before the timeout.
        """
        effective_timeout = self.find_timeout_ms if timeout_ms is None else timeout_ms
        try:
            return await wait_until(
                lambda: self.find_once(descriptor),
                timeout_ms=effective_timeout,
                interval_ms=self.poll_interval_ms,
                description=f"element {descriptor.primary}",
                sleep=self._sleep,
                clock=self._clock,
            )
        except WaitTimeoutError as e:
            logger.info(f"No candidate matched within {effective_timeout}ms: {descriptor.candidates}")
            raise ElementNotFoundError(descriptor.candidates, effective_timeout) from e

    async def wait_visible(self, element: Any, timeout_ms: Optional[int] = None) -> Any:
        """
        Waits until `element` is rendered, non-empty and not covered by another element.

        Raises:
            VisibilityTimeoutError: If the element is still not visible at the timeout.
        """
        effective_timeout = self.visibility_timeout_ms if timeout_ms is None else timeout_ms
        try:
            await wait_until(
                lambda: self.document.is_visible(element),
                timeout_ms=effective_timeout,
                interval_ms=self.poll_interval_ms,
                description="element visibility",
                sleep=self._sleep,
                clock=self._clock,
            )
        except WaitTimeoutError as e:
            raise VisibilityTimeoutError(effective_timeout) from e
        return element

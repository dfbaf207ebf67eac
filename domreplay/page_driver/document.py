import logging
from typing import Any, Dict, Optional
from urllib.parse import urlsplit

from playwright.async_api import ElementHandle, Error as PlaywrightError, Page

from . import scripts
from .exceptions import DispatchError
from ..selector_resolver.exceptions import InvalidSelectorError
from ..selector_resolver.types import ElementSnapshot, is_xpath

logger = logging.getLogger(__name__)


def origin_of(url: str) -> str:
    """Returns the scheme://host[:port] origin of a URL ('null' for opaque URLs like about:blank)."""
    parts = urlsplit(url)
    if not parts.scheme or not parts.netloc:
        return "null"
    return f"{parts.scheme}://{parts.netloc}".lower()


def same_location(a: str, b: str) -> bool:
    """Compares two URLs, treating an empty path and '/' as equal."""
    def normalize(url: str) -> str:
        parts = urlsplit(url)
        path = parts.path if parts.path not in ("", "/") else "/"
        return parts._replace(path=path).geturl()
    return normalize(a) == normalize(b)


class PageDocument:
    """Adapter between the recorder/player and a live Playwright page.

    All DOM access of the core goes through this class. Reads return plain
    values or element handles; writes raise `DispatchError` when the page
    rejects them (detached element, destroyed execution context, ...).
    """

    def __init__(self, page: Page):
        self.page = page

    @property
    def url(self) -> str:
        return self.page.url

    @property
    def origin(self) -> str:
        return origin_of(self.page.url)

    async def query(self, selector: str) -> Optional[ElementHandle]:
        """
        Evaluates a single selector candidate (XPath when prefixed with '//', CSS otherwise).

        Raises:
            InvalidSelectorError: If the page rejected the selector syntax.
        """
        handle = await self.page.evaluate_handle(scripts.QUERY_SELECTOR_JS, selector)
        element = handle.as_element()
        if element is not None:
            return element
        try:
            value = await handle.json_value()
        finally:
            await handle.dispose()
        if isinstance(value, dict) and "invalidSelector" in value:
            kind = "xpath" if is_xpath(selector) else "css"
            raise InvalidSelectorError(selector, f"{kind}: {value['invalidSelector']}")
        return None

    async def snapshot(self, element: ElementHandle) -> ElementSnapshot:
        data = await element.evaluate(scripts.SNAPSHOT_ELEMENT_JS)
        return ElementSnapshot.model_validate(data)

    async def is_visible(self, element: ElementHandle) -> bool:
        try:
            return bool(await element.evaluate(scripts.IS_VISIBLE_JS))
        except PlaywrightError as e:
            logger.debug(f"Visibility check failed, treating element as hidden: {e}")
            return False

    async def _run(self, operation: str, coro) -> Any:
        try:
            return await coro
        except PlaywrightError as e:
            logger.error(f"Page operation '{operation}' failed: {e}", exc_info=True)
            raise DispatchError(f"Page operation '{operation}' failed", operation=operation, original_exception=e) from e

    async def dispatch(self, element: ElementHandle, event: Any) -> bool:
        """Dispatches a synthetic event built by `domreplay.playback.actions`."""
        spec = {"eventClass": event.event_class, "type": event.type, "init": event.init}
        return await self._run(f"dispatch:{event.type}", element.evaluate(scripts.DISPATCH_EVENT_JS, spec))

    async def focus(self, element: ElementHandle) -> None:
        await self._run("focus", element.evaluate(scripts.FOCUS_JS))

    async def blur(self, element: ElementHandle) -> None:
        await self._run("blur", element.evaluate(scripts.BLUR_JS))

    async def set_value(self, element: ElementHandle, value: str) -> None:
        await self._run("set_value", element.evaluate(scripts.SET_VALUE_JS, value))

    async def append_value(self, element: ElementHandle, chunk: str) -> None:
        await self._run("append_value", element.evaluate(scripts.APPEND_VALUE_JS, chunk))

    async def set_checked(self, element: ElementHandle, checked: bool) -> None:
        await self._run("set_checked", element.evaluate(scripts.SET_CHECKED_JS, checked))

    async def tag_name(self, element: ElementHandle) -> str:
        return await self._run("tag_name", element.evaluate("(el) => el.nodeName.toLowerCase()"))

    async def input_type(self, element: ElementHandle) -> Optional[str]:
        return await self._run("input_type", element.evaluate("(el) => typeof el.type === 'string' ? el.type : null"))

    async def active_element(self) -> ElementHandle:
        handle = await self._run("active_element", self.page.evaluate_handle(scripts.ACTIVE_ELEMENT_JS))
        element = handle.as_element()
        if element is None:
            raise DispatchError("Document has no active element", operation="active_element")
        return element

    async def scroll_to(self, x: float, y: float, behavior: str = "smooth") -> None:
        await self._run("scroll_to", self.page.evaluate(scripts.SCROLL_TO_JS, {"x": x, "y": y, "behavior": behavior}))

    async def move_pointer(self, x: float, y: float) -> None:
        await self._run("move_pointer", self.page.mouse.move(x, y))

    async def environment(self) -> Dict[str, Any]:
        return await self._run("environment", self.page.evaluate(scripts.ENVIRONMENT_JS))

    async def navigate(self, url: str) -> None:
        """Issues a navigation and returns once it has committed; the old document is gone afterwards."""
        logger.info(f"Navigating page to {url}")
        await self._run("navigate", self.page.goto(url, wait_until="commit"))

import asyncio
from typing import Any, Dict, List, Optional, Set

import pytest

from domreplay.page_driver import DispatchError, origin_of
from domreplay.selector_resolver import InvalidSelectorError


class FakeElement:
    """Stand-in for an element handle. Records every synthetic event dispatched to it."""

    def __init__(self, name: str, tag: str = "div", input_type: Optional[str] = None, visible: bool = True):
        self.name = name
        self.tag = tag
        self.input_type = input_type
        self.visible = visible
        self.value = ""
        self.checked = False
        self.focused = False
        self.fail_dispatch = False
        self.events: List[Any] = []

    def __repr__(self):
        return f"<FakeElement {self.name}>"


class FakeDocument:
    """
    In-memory page adapter with the same async surface as PageDocument.

    Selectors are looked up in a plain dict; every mutation and dispatch is
    appended to `actions` so tests can assert on the exact replay order.
    """

    def __init__(self, url: str = "https://a.test/"):
        self.url = url
        self.elements: Dict[str, FakeElement] = {}
        self.invalid_selectors: Set[str] = set()
        self.queries: List[str] = []
        self.actions: List[tuple] = []
        self.navigations: List[str] = []
        self.fail_navigation = False
        self.redirects: Dict[str, str] = {}
        self.body = FakeElement("body", tag="body")
        self.focused: Optional[FakeElement] = None

    @property
    def origin(self) -> str:
        return origin_of(self.url)

    def add(self, element: FakeElement, *selectors: str) -> FakeElement:
        for selector in selectors:
            self.elements[selector] = element
        return element

    async def query(self, selector: str) -> Optional[FakeElement]:
        self.queries.append(selector)
        if selector in self.invalid_selectors:
            raise InvalidSelectorError(selector, "unparseable")
        return self.elements.get(selector)

    async def is_visible(self, element: FakeElement) -> bool:
        return element.visible

    async def dispatch(self, element: FakeElement, event: Any) -> bool:
        if element.fail_dispatch:
            raise DispatchError("Element is detached", operation="dispatch")
        element.events.append(event)
        self.actions.append(("dispatch", element.name, event.type))
        return True

    async def focus(self, element: FakeElement) -> None:
        element.focused = True
        self.focused = element
        self.actions.append(("focus", element.name))

    async def blur(self, element: FakeElement) -> None:
        element.focused = False
        if self.focused is element:
            self.focused = None
        self.actions.append(("blur", element.name))

    async def set_value(self, element: FakeElement, value: str) -> None:
        element.value = value
        self.actions.append(("set_value", element.name, value))

    async def append_value(self, element: FakeElement, chunk: str) -> None:
        element.value += chunk
        self.actions.append(("append_value", element.name, chunk))

    async def set_checked(self, element: FakeElement, checked: bool) -> None:
        element.checked = checked
        self.actions.append(("set_checked", element.name, checked))

    async def tag_name(self, element: FakeElement) -> str:
        return element.tag

    async def input_type(self, element: FakeElement) -> Optional[str]:
        return element.input_type

    async def active_element(self) -> FakeElement:
        return self.focused or self.body

    async def scroll_to(self, x: float, y: float, behavior: str = "smooth") -> None:
        self.actions.append(("scroll_to", x, y, behavior))

    async def move_pointer(self, x: float, y: float) -> None:
        self.actions.append(("move_pointer", x, y))

    async def environment(self) -> Dict[str, Any]:
        return {"userAgent": "FakeAgent/1.0", "viewport": {"width": 1280, "height": 720}}

    async def navigate(self, url: str) -> None:
        if self.fail_navigation:
            raise DispatchError("Navigation failed", operation="navigate")
        self.navigations.append(url)
        self.actions.append(("navigate", url))
        self.url = self.redirects.get(url, url)


class FakeClock:
    """Millisecond clock advanced by hand."""

    def __init__(self, start: float = 1_000_000):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


class FakeTimerHandle:
    def __init__(self, scheduler: "FakeScheduler", due: float, fn):
        self.scheduler = scheduler
        self.due = due
        self.fn = fn
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeScheduler:
    """`call_later` replacement driven by a FakeClock."""

    def __init__(self, clock: FakeClock):
        self.clock = clock
        self.handles: List[FakeTimerHandle] = []

    def __call__(self, delay_seconds: float, fn) -> FakeTimerHandle:
        handle = FakeTimerHandle(self, self.clock() + delay_seconds * 1000, fn)
        self.handles.append(handle)
        return handle

    def advance(self, ms: float) -> None:
        """Moves the clock forward, firing due timers in order."""
        target = self.clock() + ms
        while True:
            due = [h for h in self.handles if not h.cancelled and h.due <= target]
            if not due:
                break
            handle = min(due, key=lambda h: h.due)
            self.handles.remove(handle)
            self.clock.now = max(self.clock.now, handle.due)
            handle.fn()
        self.clock.now = target


class RecordingSleep:
    """Async sleep that only yields to the loop and remembers the requested delays."""

    def __init__(self):
        self.calls: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)
        await asyncio.sleep(0)


@pytest.fixture
def fake_document():
    return FakeDocument()


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def fake_scheduler(fake_clock):
    return FakeScheduler(fake_clock)


@pytest.fixture
def fake_sleep():
    return RecordingSleep()


@pytest.fixture
def make_element():
    return FakeElement


@pytest.fixture
def make_document():
    return FakeDocument

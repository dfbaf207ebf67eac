import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from domreplay.selector_resolver import config as sr_config
from domreplay.selector_resolver.exceptions import ElementNotFoundError, VisibilityTimeoutError
from domreplay.selector_resolver.resolver import SelectorResolver
from domreplay.selector_resolver.types import ElementSnapshot, PathSegment, SelectorDescriptor


class SteppedTime:
    """Monotonic clock in seconds that only moves when the resolver sleeps."""

    def __init__(self):
        self.now = 0.0
        self.sleeps = 0
        self.on_sleep = None

    def clock(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.now += seconds
        self.sleeps += 1
        if self.on_sleep is not None:
            self.on_sleep(self.sleeps)
        await asyncio.sleep(0)


@pytest.fixture
def stepped_time():
    return SteppedTime()


@pytest.fixture
def resolver(fake_document, stepped_time):
    return SelectorResolver(
        fake_document,
        find_timeout_ms=100,
        visibility_timeout_ms=100,
        sleep=stepped_time.sleep,
        clock=stepped_time.clock,
    )


@pytest.fixture
def descriptor():
    return SelectorDescriptor(primary="#submit", fallbacks=[".btn", "//html[1]/body[1]/button[1]"])


@pytest.mark.asyncio
async def test_resolve_primary_match(resolver, fake_document, make_element, descriptor):
    button = fake_document.add(make_element("button", tag="button"), "#submit", ".btn")

    assert await resolver.resolve(descriptor) is button
    assert fake_document.queries == ["#submit"]


@pytest.mark.asyncio
async def test_resolve_uses_fallbacks_in_order(resolver, fake_document, make_element, descriptor):
    button = fake_document.add(make_element("button", tag="button"), "//html[1]/body[1]/button[1]")

    assert await resolver.resolve(descriptor) is button
    assert fake_document.queries == ["#submit", ".btn", "//html[1]/body[1]/button[1]"]


@pytest.mark.asyncio
async def test_resolving_twice_returns_the_same_element(resolver, fake_document, make_element, descriptor):
    fake_document.add(make_element("decoy", tag="button"), "//html[1]/body[1]/button[1]")
    button = fake_document.add(make_element("button", tag="button"), ".btn")

    first = await resolver.resolve(descriptor)
    second = await resolver.resolve(descriptor)

    assert first is button
    assert second is first
    assert fake_document.queries == ["#submit", ".btn", "#submit", ".btn"]


@pytest.mark.asyncio
async def test_invalid_candidate_is_skipped(resolver, fake_document, make_element):
    descriptor = SelectorDescriptor(primary="#1bad", fallbacks=["[data-testid=\"ok\"]"])
    fake_document.invalid_selectors.add("#1bad")
    target = fake_document.add(make_element("ok"), "[data-testid=\"ok\"]")

    assert await resolver.resolve(descriptor) is target


@pytest.mark.asyncio
async def test_resolve_waits_for_late_element(resolver, fake_document, make_element, descriptor, stepped_time):
    late = make_element("late")

    def appear(sleeps):
        if sleeps == 3:
            fake_document.add(late, ".btn")

    stepped_time.on_sleep = appear

    assert await resolver.resolve(descriptor) is late
    assert stepped_time.sleeps == 3


@pytest.mark.asyncio
async def test_resolve_times_out(resolver, fake_document, descriptor, stepped_time):
    with pytest.raises(ElementNotFoundError) as exc_info:
        await resolver.resolve(descriptor)

    assert exc_info.value.candidates == descriptor.candidates
    assert exc_info.value.timeout_ms == 100
    # polled once per frame until the timeout elapsed
    assert stepped_time.now == pytest.approx(0.112)


@pytest.mark.asyncio
async def test_resolve_timeout_override(resolver, descriptor):
    with pytest.raises(ElementNotFoundError) as exc_info:
        await resolver.resolve(descriptor, timeout_ms=20)
    assert exc_info.value.timeout_ms == 20


@pytest.mark.asyncio
async def test_wait_visible(resolver, make_element):
    element = make_element("shown")
    assert await resolver.wait_visible(element) is element


@pytest.mark.asyncio
async def test_wait_visible_times_out(resolver, make_element):
    with pytest.raises(VisibilityTimeoutError):
        await resolver.wait_visible(make_element("hidden", visible=False))


@pytest.mark.asyncio
async def test_wait_visible_once_element_shows(resolver, make_element, stepped_time):
    element = make_element("fading-in", visible=False)

    def show(sleeps):
        if sleeps == 2:
            element.visible = True

    stepped_time.on_sleep = show
    assert await resolver.wait_visible(element) is element


@pytest.mark.asyncio
async def test_generate_snapshots_through_document():
    document = MagicMock()
    document.snapshot = AsyncMock(return_value=ElementSnapshot(
        tag="a", id="home", id_resolves=True, path=[PathSegment(tag="body"), PathSegment(tag="a")],
    ))
    resolver = SelectorResolver(document)
    element = object()

    descriptor = await resolver.generate(element)

    document.snapshot.assert_awaited_once_with(element)
    assert descriptor.candidates == ["#home", "body > a", "//body[1]/a[1]"]


def test_timeouts_from_environment(monkeypatch):
    monkeypatch.setenv(sr_config.FIND_TIMEOUT_ENV_VAR, "1500")
    monkeypatch.setenv(sr_config.VISIBILITY_TIMEOUT_ENV_VAR, "not-a-number")

    resolver = SelectorResolver(MagicMock())

    assert resolver.find_timeout_ms == 1500
    assert resolver.visibility_timeout_ms == sr_config.DEFAULT_VISIBILITY_TIMEOUT_MS


def test_timeout_override_beats_environment(monkeypatch):
    monkeypatch.setenv(sr_config.FIND_TIMEOUT_ENV_VAR, "1500")
    assert SelectorResolver(MagicMock(), find_timeout_ms=10).find_timeout_ms == 10

"""
Runs the in-page scripts against a real Chromium page.

These tests need an installed browser (`playwright install chromium`) and are
skipped unless DOMREPLAY_BROWSER_TESTS is set. Select them with `-m browser`.
"""
import contextlib
import os

import pytest
from playwright.async_api import async_playwright

from domreplay.event_capture.recorder import Recorder
from domreplay.page_driver.document import PageDocument
from domreplay.schemas.events import ClickEvent
from domreplay.selector_resolver.exceptions import InvalidSelectorError
from domreplay.selector_resolver.resolver import SelectorResolver
from domreplay.selector_resolver.types import SelectorDescriptor
from domreplay.waiting import wait_until

pytestmark = [
    pytest.mark.browser,
    pytest.mark.skipif(not os.getenv("DOMREPLAY_BROWSER_TESTS"), reason="DOMREPLAY_BROWSER_TESTS not set"),
]

CHECKOUT_HTML = """
<html><body>
  <form id="checkout">
    <ul>
      <li><button type="button" class="qty">-</button></li>
      <li><button type="button" class="qty">+</button></li>
    </ul>
    <input name="email" data-testid="email">
    <button type="button" class="primary buy">Buy now</button>
  </form>
  <div id="hidden" style="display:none">secret</div>
</body></html>
"""


@contextlib.asynccontextmanager
async def checkout_page():
    async with async_playwright() as p:
        browser = await p.chromium.launch(headless=True)
        try:
            page = await browser.new_page()
            await page.set_content(CHECKOUT_HTML)
            yield page
        finally:
            await browser.close()


async def same_node(a, b) -> bool:
    return await a.evaluate("(a, b) => a === b", b)


@pytest.mark.asyncio
async def test_every_generated_candidate_resolves_to_the_element():
    async with checkout_page() as page:
        document = PageDocument(page)
        resolver = SelectorResolver(document, find_timeout_ms=500, visibility_timeout_ms=500)

        for selector in ("li:nth-of-type(2) > button", "input[name=email]", "button.buy"):
            element = await page.query_selector(selector)
            descriptor = await resolver.generate(element)

            assert descriptor.fallbacks[-1].startswith("//html[1]/body[1]/")
            for candidate in descriptor.candidates:
                found = await document.query(candidate)
                assert found is not None, candidate
                assert await same_node(found, element), candidate


@pytest.mark.asyncio
async def test_snapshot_ranks_test_id_and_classes():
    async with checkout_page() as page:
        resolver = SelectorResolver(PageDocument(page))

        email = await resolver.generate(await page.query_selector("input[name=email]"))
        buy = await resolver.generate(await page.query_selector("button.buy"))

        assert email.primary == '[data-testid="email"]'
        assert buy.primary == ".primary.buy"


@pytest.mark.asyncio
async def test_query_reports_invalid_selectors():
    async with checkout_page() as page:
        document = PageDocument(page)

        with pytest.raises(InvalidSelectorError):
            await document.query("#1bad[")
        with pytest.raises(InvalidSelectorError):
            await document.query("//div[")
        assert await document.query("#missing") is None


@pytest.mark.asyncio
async def test_visibility():
    async with checkout_page() as page:
        document = PageDocument(page)
        resolver = SelectorResolver(document, find_timeout_ms=200, visibility_timeout_ms=200)

        assert await document.is_visible(await page.query_selector("button.buy")) is True
        assert await document.is_visible(await page.query_selector("#hidden")) is False
        hidden = await resolver.resolve(SelectorDescriptor(primary="#hidden"))
        assert await same_node(hidden, await page.query_selector("#hidden"))


@pytest.mark.asyncio
async def test_capture_script_reports_clicks():
    async with checkout_page() as page:
        emitted = []
        recorder = Recorder(PageDocument(page), emitted.append)
        await recorder.start()
        await page.wait_for_timeout(100)

        await page.click("button.buy")
        await wait_until(lambda: len(emitted) >= 2, timeout_ms=2000, interval_ms=20, description="click report")
        await recorder.stop()

        click = emitted[1]
        assert isinstance(click, ClickEvent)
        assert click.selector == ".primary.buy"
        assert click.target_text == "Buy now"

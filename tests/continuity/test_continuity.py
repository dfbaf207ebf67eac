import asyncio
import json
import os

import pytest

from domreplay.continuity.exceptions import PendingRecordError
from domreplay.continuity.handoff import NavigationContinuity
from domreplay.continuity.store import PendingPlaybackStore, pending_key
from domreplay.page_driver.exceptions import DispatchError
from domreplay.playback.engine import PlaybackEngine
from domreplay.playback.types import PlaybackState
from domreplay.schemas.events import ClickEvent, NavigateEvent
from domreplay.schemas.recording import PendingPlayback
from domreplay.selector_resolver.resolver import SelectorResolver
from domreplay.storage_manager.storage import StorageManager


async def _yield(seconds):
    await asyncio.sleep(0)


@pytest.fixture
def storage_manager(tmp_path):
    return StorageManager(local_base_path=str(tmp_path), prefer_s3=False)


@pytest.fixture
def pending_store(storage_manager):
    return PendingPlaybackStore(storage_manager)


@pytest.fixture
def continuity(pending_store):
    return NavigationContinuity(pending_store)


@pytest.fixture
def engine_factory(continuity):
    def factory(document):
        resolver = SelectorResolver(document, find_timeout_ms=20, visibility_timeout_ms=20, sleep=_yield)
        return PlaybackEngine(document, resolver=resolver, continuity=continuity, sleep=_yield)
    return factory


def test_pending_key_quotes_origin():
    assert pending_key("https://a.test") == "pending/https%3A%2F%2Fa.test"
    assert pending_key("http://localhost:8080") == "pending/http%3A%2F%2Flocalhost%3A8080"


class TestPendingPlaybackStore:

    @pytest.mark.asyncio
    async def test_take_returns_record_once(self, pending_store):
        pending = PendingPlayback(events_tail=[ClickEvent(timestamp=1, selector="#ok")], resume_index=0)
        await pending_store.put("https://a.test", pending)

        taken = await pending_store.take("https://a.test")
        assert taken.to_dict() == pending.to_dict()
        assert await pending_store.take("https://a.test") is None

    @pytest.mark.asyncio
    async def test_records_are_per_origin(self, pending_store):
        await pending_store.put("https://a.test", PendingPlayback())

        assert await pending_store.take("https://b.test") is None
        assert await pending_store.take("https://a.test") is not None

    @pytest.mark.asyncio
    async def test_record_is_stored_in_export_field_names(self, pending_store, tmp_path):
        await pending_store.put("https://a.test", PendingPlayback(events_tail=[ClickEvent(timestamp=1, selector="#ok")]))

        path = tmp_path / "pending" / "https%3A%2F%2Fa.test.json"
        stored = json.loads(path.read_text(encoding="utf-8"))
        assert stored["resumeIndex"] == 0
        assert stored["eventsTail"][0]["type"] == "click"
        assert stored["eventsTail"][0]["fallbackSelectors"] == []

    @pytest.mark.asyncio
    async def test_malformed_record_is_discarded(self, storage_manager, pending_store):
        await storage_manager.write_document(pending_key("https://a.test"), {"eventsTail": [{"type": "teleport"}]})

        with pytest.raises(PendingRecordError) as exc_info:
            await pending_store.take("https://a.test")
        assert exc_info.value.origin == "https://a.test"
        assert await pending_store.take("https://a.test") is None

    @pytest.mark.asyncio
    async def test_clear(self, pending_store):
        await pending_store.put("https://a.test", PendingPlayback())
        await pending_store.clear("https://a.test")
        await pending_store.clear("https://a.test")
        assert await pending_store.take("https://a.test") is None


class TestNavigationContinuity:

    @pytest.mark.asyncio
    async def test_resume_replays_only_the_tail(self, make_document, make_element, pending_store, continuity, engine_factory):
        await pending_store.put("https://a.test", PendingPlayback.model_validate({
            "eventsTail": [{"type": "click", "timestamp": 5, "selector": "#ok"}],
            "resumeIndex": 0,
        }))
        document = make_document("https://a.test/next")
        document.add(make_element("ok", tag="button"), "#ok")

        engine = await continuity.resume_pending(document, engine_factory)

        assert engine.state is PlaybackState.COMPLETED
        assert document.actions == [("dispatch", "ok", "click")]
        assert await pending_store.take("https://a.test") is None
        assert await continuity.resume_pending(document, engine_factory) is None

    @pytest.mark.asyncio
    async def test_resume_honors_resume_index(self, make_document, make_element, pending_store, continuity, engine_factory):
        await pending_store.put("https://a.test", PendingPlayback(
            events_tail=[ClickEvent(timestamp=1, selector="#skipped"), ClickEvent(timestamp=2, selector="#ok")],
            resume_index=1,
        ))
        document = make_document("https://a.test/")
        document.add(make_element("ok"), "#ok")

        await continuity.resume_pending(document, engine_factory)

        assert document.actions == [("dispatch", "ok", "click")]

    @pytest.mark.asyncio
    async def test_hand_off_stores_tail_under_target_origin(self, fake_document, pending_store, continuity):
        events = [
            ClickEvent(timestamp=1, selector="#go"),
            NavigateEvent(timestamp=2, url="https://b.test/welcome"),
            ClickEvent(timestamp=3, selector="#ok"),
        ]

        pending = await continuity.hand_off(fake_document, events, 1, "https://b.test/welcome")

        assert fake_document.navigations == ["https://b.test/welcome"]
        assert [e.selector for e in pending.events_tail] == ["#ok"]
        stored = await pending_store.take("https://b.test")
        assert stored.resume_index == 0
        assert [e.selector for e in stored.events_tail] == ["#ok"]

    @pytest.mark.asyncio
    async def test_failed_navigation_clears_record(self, fake_document, pending_store, continuity):
        fake_document.fail_navigation = True
        events = [NavigateEvent(timestamp=1, url="https://b.test/"), ClickEvent(timestamp=2, selector="#ok")]

        with pytest.raises(DispatchError):
            await continuity.hand_off(fake_document, events, 0, "https://b.test/")

        assert await pending_store.take("https://b.test") is None

    @pytest.mark.asyncio
    async def test_playback_continues_across_navigation(self, make_document, make_element, pending_store, engine_factory, tmp_path):
        first = make_document("https://a.test/")
        first.add(make_element("go"), "#go")
        events = [
            ClickEvent(timestamp=1, selector="#go"),
            NavigateEvent(timestamp=2, url="https://b.test/done"),
            ClickEvent(timestamp=3, selector="#ok"),
            ClickEvent(timestamp=4, selector="#ok"),
        ]

        engine = engine_factory(first)
        assert await engine.play(events) is PlaybackState.PLAYING
        assert engine.handed_off
        assert first.actions == [("dispatch", "go", "click"), ("navigate", "https://b.test/done")]
        assert os.path.exists(tmp_path / "pending" / "https%3A%2F%2Fb.test.json")

        second = make_document("https://b.test/done")
        second.add(make_element("ok"), "#ok")
        resumed = await NavigationContinuity(pending_store).resume_pending(second, engine_factory)

        assert resumed.state is PlaybackState.COMPLETED
        assert second.actions == [("dispatch", "ok", "click"), ("dispatch", "ok", "click")]

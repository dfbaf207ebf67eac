import json

import pytest

from domreplay.schemas.events import ClickEvent, NavigateEvent
from domreplay.schemas.recording import EXPORT_FORMAT_VERSION, PlaybackSpeed, Recording
from domreplay.storage_manager.exceptions import ImportFormatError, StorageManagerError
from domreplay.storage_manager.recordings import (
    DATA_DOCUMENT_KEY,
    RecordingStore,
    format_bytes,
    validate_import_data,
)
from domreplay.storage_manager.storage import StorageManager


def make_recording(recording_id="rec_1", name="Checkout", events=None):
    return Recording(
        id=recording_id,
        name=name,
        created=1_700_000_000_000,
        duration=1_500,
        url="https://shop.test/",
        events=events if events is not None else [
            NavigateEvent(timestamp=1_700_000_000_000, url="https://shop.test/"),
            ClickEvent(timestamp=1_700_000_001_000, url="https://shop.test/", selector="#buy", fallback_selectors=["//button[1]"]),
        ],
    )


@pytest.fixture
def storage_manager(tmp_path):
    return StorageManager(local_base_path=str(tmp_path), prefer_s3=False)


@pytest.fixture
def store(storage_manager):
    return RecordingStore(storage_manager)


@pytest.mark.parametrize("num_bytes, expected", [
    (0, "0 Bytes"),
    (512, "512 Bytes"),
    (1024, "1 KB"),
    (1536, "1.5 KB"),
    (1_048_576, "1 MB"),
    (5_000_000, "4.77 MB"),
    (3 * 1024 ** 3, "3 GB"),
])
def test_format_bytes(num_bytes, expected):
    assert format_bytes(num_bytes) == expected


class TestValidateImportData:

    @pytest.mark.parametrize("data, message", [
        ([], "must be an object"),
        ({"version": "1.0.0"}, "missing recordings array"),
        ({"recordings": {}}, "missing recordings array"),
        ({"recordings": [{"name": "no id", "events": []}]}, "missing id or name"),
        ({"recordings": [{"id": "rec_1", "events": []}]}, "missing id or name"),
        ({"recordings": [{"id": "rec_1", "name": "x"}]}, "missing events array"),
        ({"recordings": [{"id": "rec_1", "name": "x", "events": [{"type": "teleport", "timestamp": 1}]}]}, "rec_1"),
    ])
    def test_rejects_malformed_payloads(self, data, message):
        with pytest.raises(ImportFormatError, match=message):
            validate_import_data(data)

    def test_rejects_decreasing_timestamps(self):
        data = {"recordings": [{
            "id": "rec_1",
            "name": "x",
            "events": [
                {"type": "click", "timestamp": 20, "selector": "#a"},
                {"type": "click", "timestamp": 10, "selector": "#b"},
            ],
        }]}
        with pytest.raises(ImportFormatError, match="non-decreasing"):
            validate_import_data(data)

    def test_accepts_export_format(self):
        recordings = validate_import_data({"version": "1.0.0", "recordings": [make_recording().to_dict()]})
        assert recordings[0].events[1].selector == "#buy"


class TestRecordingStore:

    @pytest.mark.asyncio
    async def test_empty_store(self, store):
        assert await store.list() == []
        assert await store.get("rec_1") is None
        settings = await store.get_settings()
        assert settings.hotkey == "Ctrl+Shift+R"
        assert settings.playback_speed is PlaybackSpeed.REAL_TIME
        assert settings.auto_export is False

    @pytest.mark.asyncio
    async def test_save_get_list(self, store):
        await store.save(make_recording("rec_1", "First"))
        await store.save(make_recording("rec_2", "Second"))

        assert [r.id for r in await store.list()] == ["rec_1", "rec_2"]
        loaded = await store.get("rec_2")
        assert loaded.name == "Second"
        assert loaded.events[1].fallback_selectors == ["//button[1]"]

    @pytest.mark.asyncio
    async def test_save_replaces_same_id(self, store):
        await store.save(make_recording("rec_1", "Draft"))
        await store.save(make_recording("rec_1", "Final"))

        recordings = await store.list()
        assert [(r.id, r.name) for r in recordings] == [("rec_1", "Final")]

    @pytest.mark.asyncio
    async def test_persisted_document_uses_export_field_names(self, store, storage_manager):
        await store.save(make_recording())

        data = await storage_manager.read_document(DATA_DOCUMENT_KEY)
        click = data["recordings"][0]["events"][1]
        assert click["fallbackSelectors"] == ["//button[1]"]
        assert click["scrollPosition"] == {"x": 0.0, "y": 0.0}
        assert data["settings"]["playbackSpeed"] == "real-time"

    @pytest.mark.asyncio
    async def test_delete(self, store):
        await store.save(make_recording("rec_1"))

        assert await store.delete("rec_1") is True
        assert await store.delete("rec_1") is False
        assert await store.list() == []

    @pytest.mark.asyncio
    async def test_update_merges_and_keeps_id(self, store):
        await store.save(make_recording("rec_1", "Old"))

        updated = await store.update("rec_1", {"name": "New", "id": "hijack"})

        assert updated.id == "rec_1"
        assert updated.name == "New"
        assert len(updated.events) == 2
        assert (await store.get("rec_1")).name == "New"
        assert await store.get("hijack") is None

    @pytest.mark.asyncio
    async def test_update_missing(self, store):
        assert await store.update("rec_404", {"name": "x"}) is None

    @pytest.mark.asyncio
    async def test_settings_patch(self, store):
        settings = await store.set_settings({"playbackSpeed": "fast", "autoExport": True})

        assert settings.playback_speed is PlaybackSpeed.FAST
        assert settings.auto_export is True
        assert settings.hotkey == "Ctrl+Shift+R"
        assert (await store.get_settings()).playback_speed is PlaybackSpeed.FAST

    @pytest.mark.asyncio
    async def test_invalid_settings_patch(self, store):
        with pytest.raises(StorageManagerError):
            await store.set_settings({"playbackSpeed": "ludicrous"})
        assert (await store.get_settings()).playback_speed is PlaybackSpeed.REAL_TIME

    @pytest.mark.asyncio
    async def test_export(self, store):
        await store.save(make_recording("rec_1"))
        await store.save(make_recording("rec_2"))

        everything = await store.export()
        only_second = await store.export(["rec_2"])

        assert everything.version == EXPORT_FORMAT_VERSION
        assert [r.id for r in everything.recordings] == ["rec_1", "rec_2"]
        assert [r.id for r in only_second.recordings] == ["rec_2"]
        exported = everything.to_dict()
        assert exported["exportDate"].endswith("Z")
        assert exported["recordings"][0]["events"][0]["type"] == "navigate"

    @pytest.mark.asyncio
    async def test_import_skips_existing_ids(self, store):
        await store.save(make_recording("rec_1", "Local copy"))
        bundle = {"version": "1.0.0", "recordings": [make_recording("rec_1", "Imported copy").to_dict()]}

        assert await store.import_bundle(bundle) == {"imported": 0, "skipped": 1}
        assert (await store.get("rec_1")).name == "Local copy"

    @pytest.mark.asyncio
    async def test_import_adds_new_and_skips_duplicates_in_bundle(self, store):
        bundle = {"recordings": [
            make_recording("rec_a").to_dict(),
            make_recording("rec_b").to_dict(),
            make_recording("rec_a", "Again").to_dict(),
        ]}

        assert await store.import_bundle(bundle) == {"imported": 2, "skipped": 1}
        assert [r.id for r in await store.list()] == ["rec_a", "rec_b"]

    @pytest.mark.asyncio
    async def test_import_is_all_or_nothing(self, store):
        bundle = {"recordings": [make_recording("rec_ok").to_dict(), {"id": "rec_bad", "name": "broken"}]}

        with pytest.raises(ImportFormatError):
            await store.import_bundle(bundle)
        assert await store.list() == []

    @pytest.mark.asyncio
    async def test_export_import_round_trip(self, storage_manager, tmp_path):
        source = RecordingStore(storage_manager)
        await source.save(make_recording("rec_1"))
        payload = json.dumps((await source.export()).to_dict())

        target = RecordingStore(StorageManager(local_base_path=str(tmp_path / "other"), prefer_s3=False))
        assert await target.import_bundle(json.loads(payload)) == {"imported": 1, "skipped": 0}
        assert (await target.get("rec_1")).to_dict() == make_recording("rec_1").to_dict()

    @pytest.mark.asyncio
    async def test_storage_usage(self, store):
        empty = await store.get_storage_usage()
        assert empty["recordingCount"] == 0

        await store.save(make_recording())
        usage = await store.get_storage_usage()

        assert usage["recordingCount"] == 1
        assert usage["bytes"] > empty["bytes"]
        assert usage["formatted"] == format_bytes(usage["bytes"])

import asyncio
import json
import logging
from typing import Any, Dict, Iterable, List, Optional

from pydantic import ValidationError

from .exceptions import ImportFormatError, StorageManagerError
from .storage import StorageManager
from ..schemas.recording import ExportBundle, Recording, Settings

logger = logging.getLogger(__name__)

# Single document holding every recording plus the user settings
DATA_DOCUMENT_KEY = "recorder/data"

SIZE_UNITS = ["Bytes", "KB", "MB", "GB"]


def format_bytes(num_bytes: int) -> str:
    """Human readable size, e.g. 0 -> '0 Bytes', 1536 -> '1.5 KB'."""
    if num_bytes == 0:
        return "0 Bytes"
    value = float(num_bytes)
    unit = 0
    while value >= 1024 and unit < len(SIZE_UNITS) - 1:
        value /= 1024
        unit += 1
    return f"{round(value, 2):g} {SIZE_UNITS[unit]}"


def validate_import_data(data: Any) -> List[Recording]:
    """
    Checks a whole import payload before anything is written.

    Raises:
        ImportFormatError: If the payload is not an object with a `recordings`
            array, or any entry lacks an id, a name or an events array, or
            fails schema validation.
    """
    if not isinstance(data, dict):
        raise ImportFormatError("Invalid import data: must be an object")
    raw_recordings = data.get("recordings")
    if not isinstance(raw_recordings, list):
        raise ImportFormatError("Invalid import data: missing recordings array")

    recordings = []
    for position, raw in enumerate(raw_recordings):
        if not isinstance(raw, dict) or not raw.get("id") or not raw.get("name"):
            raise ImportFormatError(f"Invalid recording at position {position}: missing id or name")
        if not isinstance(raw.get("events"), list):
            raise ImportFormatError(f"Invalid recording '{raw['id']}': missing events array")
        try:
            recordings.append(Recording.model_validate(raw))
        except ValidationError as e:
            raise ImportFormatError(f"Invalid recording '{raw['id']}': {e}") from e
    return recordings


class RecordingStore:
    """Recordings and settings persisted through a StorageManager."""

    def __init__(self, storage_manager: StorageManager, document_key: str = DATA_DOCUMENT_KEY):
        self.storage_manager = storage_manager
        self.document_key = document_key
        self._lock = asyncio.Lock()

    async def _load(self) -> Dict[str, Any]:
        data = await self.storage_manager.read_document(self.document_key) or {}
        data.setdefault("recordings", [])
        data.setdefault("settings", Settings().to_dict())
        return data

    async def _store(self, data: Dict[str, Any]) -> None:
        await self.storage_manager.write_document(self.document_key, data)

    @staticmethod
    def _parse(raw: Dict[str, Any]) -> Recording:
        try:
            return Recording.model_validate(raw)
        except ValidationError as e:
            raise StorageManagerError(f"Stored recording '{raw.get('id')}' is invalid: {e}") from e

    async def list(self) -> List[Recording]:
        data = await self._load()
        return [self._parse(raw) for raw in data["recordings"]]

    async def get(self, recording_id: str) -> Optional[Recording]:
        data = await self._load()
        for raw in data["recordings"]:
            if raw.get("id") == recording_id:
                return self._parse(raw)
        return None

    async def save(self, recording: Recording) -> Recording:
        """Persists `recording`, replacing a stored recording with the same id."""
        async with self._lock:
            data = await self._load()
            serialized = recording.to_dict()
            for position, raw in enumerate(data["recordings"]):
                if raw.get("id") == recording.id:
                    data["recordings"][position] = serialized
                    break
            else:
                data["recordings"].append(serialized)
            await self._store(data)
        logger.info(f"Saved recording {recording.id} ({len(recording.events)} events)", extra={"recording_id": recording.id})
        return recording

    async def delete(self, recording_id: str) -> bool:
        async with self._lock:
            data = await self._load()
            remaining = [raw for raw in data["recordings"] if raw.get("id") != recording_id]
            if len(remaining) == len(data["recordings"]):
                logger.info(f"Recording {recording_id} not found, nothing to delete")
                return False
            data["recordings"] = remaining
            await self._store(data)
        logger.info(f"Deleted recording {recording_id}", extra={"recording_id": recording_id})
        return True

    async def update(self, recording_id: str, patch: Dict[str, Any]) -> Optional[Recording]:
        """
        Shallow-merges `patch` (export field names) into a stored recording.

        Returns:
            The updated recording, or None if no recording has that id.
        """
        async with self._lock:
            data = await self._load()
            for position, raw in enumerate(data["recordings"]):
                if raw.get("id") != recording_id:
                    continue
                merged = {**raw, **patch, "id": recording_id}
                updated = self._parse(merged)
                data["recordings"][position] = updated.to_dict()
                await self._store(data)
                logger.info(f"Updated recording {recording_id}: {sorted(patch)}", extra={"recording_id": recording_id})
                return updated
        return None

    async def get_settings(self) -> Settings:
        data = await self._load()
        return Settings.model_validate(data["settings"])

    async def set_settings(self, patch: Dict[str, Any]) -> Settings:
        async with self._lock:
            data = await self._load()
            try:
                settings = Settings.model_validate({**data["settings"], **patch})
            except ValidationError as e:
                raise StorageManagerError(f"Invalid settings: {e}") from e
            data["settings"] = settings.to_dict()
            await self._store(data)
        return settings

    async def export(self, recording_ids: Optional[Iterable[str]] = None) -> ExportBundle:
        recordings = await self.list()
        if recording_ids is not None:
            wanted = set(recording_ids)
            recordings = [r for r in recordings if r.id in wanted]
        return ExportBundle(recordings=recordings)

    async def import_bundle(self, data: Any) -> Dict[str, int]:
        """
        Adds the recordings of an export bundle, skipping ids that already exist.

        The payload is validated in full first; if any part is malformed
        ImportFormatError is raised and nothing is persisted.
        """
        incoming = validate_import_data(data)
        async with self._lock:
            stored = await self._load()
            known_ids = {raw.get("id") for raw in stored["recordings"]}
            imported = 0
            for recording in incoming:
                if recording.id in known_ids:
                    continue
                stored["recordings"].append(recording.to_dict())
                known_ids.add(recording.id)
                imported += 1
            if imported:
                await self._store(stored)
        result = {"imported": imported, "skipped": len(incoming) - imported}
        logger.info(f"Import finished: {result}")
        return result

    async def get_storage_usage(self) -> Dict[str, Any]:
        data = await self._load()
        size = len(json.dumps(data, separators=(",", ":")).encode("utf-8"))
        return {
            "bytes": size,
            "formatted": format_bytes(size),
            "recordingCount": len(data["recordings"]),
        }

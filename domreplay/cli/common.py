from typing import Optional

from .config import AppSettings, get_settings
from ..continuity.store import PendingPlaybackStore
from ..storage_manager.recordings import RecordingStore
from ..storage_manager.storage import StorageManager


def build_storage_manager(app_settings: Optional[AppSettings] = None) -> StorageManager:
    app_settings = app_settings or get_settings()
    return StorageManager(
        s3_bucket_name=app_settings.STORAGE_S3_BUCKET,
        s3_region_name=app_settings.STORAGE_S3_REGION,
        local_base_path=app_settings.STORAGE_LOCAL_BASE_PATH,
    )


def build_recording_store(storage_manager: Optional[StorageManager] = None) -> RecordingStore:
    return RecordingStore(storage_manager or build_storage_manager())


def build_pending_store(storage_manager: Optional[StorageManager] = None) -> PendingPlaybackStore:
    return PendingPlaybackStore(storage_manager or build_storage_manager())

# __init__.py for storage_manager module

from .storage import StorageManager
from .recordings import RecordingStore, format_bytes, validate_import_data
from .exceptions import (
    StorageManagerError,
    InvalidDocumentKeyError,
    S3ConfigError,
    S3OperationError,
    LocalStorageError,
    ImportFormatError,
)

__all__ = [
    "StorageManager",
    "RecordingStore",
    "format_bytes",
    "validate_import_data",
    "StorageManagerError",
    "InvalidDocumentKeyError",
    "S3ConfigError",
    "S3OperationError",
    "LocalStorageError",
    "ImportFormatError",
]

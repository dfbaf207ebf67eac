"""Top-level package for domreplay: record page interactions and replay them against the live DOM."""

__version__ = "0.1.0"

# Import and re-export key components from submodules

# schemas exports
from .schemas import (
    EventType,
    InteractionEvent,
    Recording,
    ExportBundle,
    Settings,
    PendingPlayback,
    PlaybackSpeed,
    parse_event,
)

# selector_resolver exports
from .selector_resolver import (
    SelectorResolver,
    SelectorDescriptor,
    generate_descriptor,
    ElementNotFoundError,
    VisibilityTimeoutError,
    InvalidSelectorError,
)

# page_driver exports
from .page_driver import PageDocument, DispatchError

# event_capture exports
from .event_capture import Recorder, Debouncer, Throttle, MinIntervalGate

# playback exports
from .playback import PlaybackEngine, PlaybackState, RecoveryDecision, PlaybackError

# continuity exports
from .continuity import NavigationContinuity, PendingPlaybackStore

# storage_manager exports
from .storage_manager import StorageManager, RecordingStore, ImportFormatError

# session exports
from .session import SessionCoordinator, RecordingSession

from .waiting import wait_until, WaitTimeoutError


__all__ = [
    "__version__",
    # Schemas
    "EventType",
    "InteractionEvent",
    "Recording",
    "ExportBundle",
    "Settings",
    "PendingPlayback",
    "PlaybackSpeed",
    "parse_event",

    # Selector resolution
    "SelectorResolver",
    "SelectorDescriptor",
    "generate_descriptor",
    "ElementNotFoundError",
    "VisibilityTimeoutError",
    "InvalidSelectorError",

    # Page access
    "PageDocument",
    "DispatchError",

    # Capture
    "Recorder",
    "Debouncer",
    "Throttle",
    "MinIntervalGate",

    # Playback
    "PlaybackEngine",
    "PlaybackState",
    "RecoveryDecision",
    "PlaybackError",

    # Continuity
    "NavigationContinuity",
    "PendingPlaybackStore",

    # Storage
    "StorageManager",
    "RecordingStore",
    "ImportFormatError",

    # Sessions
    "SessionCoordinator",
    "RecordingSession",

    "wait_until",
    "WaitTimeoutError",
]

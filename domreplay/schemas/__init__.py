# __init__.py for schemas module

from .events import (
    EventType,
    Point,
    Viewport,
    BaseEvent,
    TargetedEvent,
    NavigateEvent,
    ClickEvent,
    InputEvent,
    ChangeEvent,
    ScrollEvent,
    KeydownEvent,
    SubmitEvent,
    MousemoveEvent,
    InteractionEvent,
    parse_event,
    parse_events,
)
from .recording import (
    EXPORT_FORMAT_VERSION,
    PlaybackSpeed,
    RecordingMetadata,
    Recording,
    ExportBundle,
    Settings,
    PendingPlayback,
)

__all__ = [
    "EventType",
    "Point",
    "Viewport",
    "BaseEvent",
    "TargetedEvent",
    "NavigateEvent",
    "ClickEvent",
    "InputEvent",
    "ChangeEvent",
    "ScrollEvent",
    "KeydownEvent",
    "SubmitEvent",
    "MousemoveEvent",
    "InteractionEvent",
    "parse_event",
    "parse_events",
    "EXPORT_FORMAT_VERSION",
    "PlaybackSpeed",
    "RecordingMetadata",
    "Recording",
    "ExportBundle",
    "Settings",
    "PendingPlayback",
]

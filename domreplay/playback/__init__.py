# __init__.py for playback module

from .engine import PlaybackEngine, RECOVERABLE_ERRORS
from .types import PlaybackState, RecoveryDecision, PlaybackFailure, Progress
from .actions import (
    SyntheticEvent,
    build_click_event,
    build_input_event,
    build_change_event,
    build_keydown_event,
    build_submit_event,
)
from .timing import compute_delay_ms, delay_between
from .exceptions import PlaybackError, PlaybackStateError, UnhandledEventTypeError

__all__ = [
    "PlaybackEngine",
    "RECOVERABLE_ERRORS",
    "PlaybackState",
    "RecoveryDecision",
    "PlaybackFailure",
    "Progress",
    "SyntheticEvent",
    "build_click_event",
    "build_input_event",
    "build_change_event",
    "build_keydown_event",
    "build_submit_event",
    "compute_delay_ms",
    "delay_between",
    "PlaybackError",
    "PlaybackStateError",
    "UnhandledEventTypeError",
]

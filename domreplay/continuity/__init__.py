# __init__.py for continuity module

from .handoff import NavigationContinuity
from .store import PendingPlaybackStore, pending_key
from .exceptions import ContinuityError, PendingRecordError

__all__ = [
    "NavigationContinuity",
    "PendingPlaybackStore",
    "pending_key",
    "ContinuityError",
    "PendingRecordError",
]

# __init__.py for session module

from .coordinator import SessionCoordinator
from .recording_session import RecordingSession, generate_recording_id, default_recording_name
from .exceptions import SessionError, SessionStateError, RecordingNotFoundError

__all__ = [
    "SessionCoordinator",
    "RecordingSession",
    "generate_recording_id",
    "default_recording_name",
    "SessionError",
    "SessionStateError",
    "RecordingNotFoundError",
]

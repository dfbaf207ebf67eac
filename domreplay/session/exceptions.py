class SessionError(Exception):
    """Base exception for recording/playback session coordination errors."""
    pass


class SessionStateError(SessionError):
    """Raised when a command conflicts with the coordinator's current activity."""
    pass


class RecordingNotFoundError(SessionError):
    """Raised when a recording id is not present in storage."""
    def __init__(self, recording_id: str):
        super().__init__(f"Recording not found: {recording_id}")
        self.recording_id = recording_id

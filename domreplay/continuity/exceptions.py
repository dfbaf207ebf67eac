class ContinuityError(Exception):
    """Base exception for cross-navigation playback handoff errors."""
    pass


class PendingRecordError(ContinuityError):
    """Raised when a stored pending playback record cannot be decoded. The record has already been removed."""
    def __init__(self, origin: str, original_exception=None):
        super().__init__(f"Pending playback record for {origin} is malformed")
        self.origin = origin
        self.original_exception = original_exception

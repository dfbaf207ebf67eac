class PlaybackError(Exception):
    """Base exception for playback errors."""
    pass


class PlaybackStateError(PlaybackError):
    """Raised when a command is not valid in the engine's current state (e.g. play() while playing)."""
    pass


class UnhandledEventTypeError(PlaybackError):
    """Raised at engine construction when some event type has no replay action."""
    def __init__(self, missing):
        self.missing = sorted(t.value for t in missing)
        super().__init__(f"No replay action registered for event type(s): {', '.join(self.missing)}")

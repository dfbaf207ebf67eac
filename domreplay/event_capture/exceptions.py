class EventCaptureError(Exception):
    """Base exception for event capture errors."""
    pass


class CaptureInstallError(EventCaptureError):
    """Raised when the capture binding or script could not be installed in the page."""
    def __init__(self, message: str, original_exception=None):
        super().__init__(message)
        self.original_exception = original_exception

    def __str__(self):
        base_msg = super().__str__()
        return f"{base_msg} Original: {self.original_exception}"


class MalformedPayloadError(EventCaptureError):
    """Raised when a payload reported by the page cannot be classified."""
    pass

# __init__.py for event_capture module

from .recorder import Recorder, RecorderState
from .rate_limit import Debouncer, Throttle, MinIntervalGate
from .exceptions import EventCaptureError, CaptureInstallError, MalformedPayloadError

__all__ = [
    "Recorder",
    "RecorderState",
    "Debouncer",
    "Throttle",
    "MinIntervalGate",
    "EventCaptureError",
    "CaptureInstallError",
    "MalformedPayloadError",
]

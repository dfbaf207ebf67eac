import logging
import secrets
import string
from datetime import datetime
from typing import Callable, Optional

from ..event_capture.rate_limit import epoch_ms
from ..schemas.events import BaseEvent
from ..schemas.recording import Recording

logger = logging.getLogger(__name__)

_BASE36_ALPHABET = string.digits + string.ascii_lowercase


def generate_recording_id(now_ms: Optional[int] = None) -> str:
    """Returns an id like 'rec_1718000000000_k3j9x0a2b'."""
    if now_ms is None:
        now_ms = int(epoch_ms())
    suffix = "".join(secrets.choice(_BASE36_ALPHABET) for _ in range(9))
    return f"rec_{now_ms}_{suffix}"


def default_recording_name(now: Optional[datetime] = None) -> str:
    now = now or datetime.now()
    return f"Recording {now.strftime('%Y-%m-%d %H:%M:%S')}"


class RecordingSession:
    """One in-progress recording, from start until it is stopped and saved."""

    def __init__(self, name: Optional[str] = None, clock: Optional[Callable[[], float]] = None):
        self._clock = clock or epoch_ms
        self.started_at = int(self._clock())
        self.recording = Recording(
            id=generate_recording_id(self.started_at),
            name=name or default_recording_name(),
            created=self.started_at,
        )
        self.paused = False
        self.active = True

    @property
    def event_count(self) -> int:
        return len(self.recording.events)

    def add_event(self, event: BaseEvent) -> bool:
        """Appends an event. Returns False when the session is paused or stopped."""
        if not self.active or self.paused:
            return False

        recording = self.recording
        if recording.events and event.timestamp < recording.events[-1].timestamp:
            event = event.model_copy(update={"timestamp": recording.events[-1].timestamp})
        recording.events.append(event)

        if not recording.url and event.url:
            recording.url = event.url
        user_agent = getattr(event, "user_agent", None)
        if not recording.metadata.user_agent and user_agent:
            recording.metadata.user_agent = user_agent
        viewport = getattr(event, "viewport", None)
        if recording.metadata.viewport is None and viewport is not None:
            recording.metadata.viewport = viewport
        return True

    def pause(self) -> None:
        if self.active:
            self.paused = True

    def resume(self) -> None:
        if self.active:
            self.paused = False

    async def stop(self, store) -> Recording:
        """Finalizes the duration and saves the recording through `store`."""
        self.active = False
        self.paused = False
        self.recording.duration = max(int(self._clock()) - self.started_at, 0)
        await store.save(self.recording)
        logger.info(
            f"Recording '{self.recording.name}' saved with {self.event_count} events",
            extra={"recording_id": self.recording.id, "duration_ms": self.recording.duration},
        )
        return self.recording

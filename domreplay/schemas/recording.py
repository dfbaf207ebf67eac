from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .events import BaseEvent, InteractionEvent, Viewport

EXPORT_FORMAT_VERSION = "1.0.0"


class PlaybackSpeed(str, Enum):
    REAL_TIME = "real-time"
    FAST = "fast"
    INSTANT = "instant"

    @property
    def multiplier(self) -> float:
        return _SPEED_MULTIPLIERS[self]


_SPEED_MULTIPLIERS = {
    PlaybackSpeed.REAL_TIME: 1.0,
    PlaybackSpeed.FAST: 0.5,
    PlaybackSpeed.INSTANT: 0.1,
}


class RecordingMetadata(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    user_agent: Optional[str] = Field(default=None, alias="userAgent")
    viewport: Optional[Viewport] = None


class Recording(BaseModel):
    """A named, persisted sequence of interaction events."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    name: str
    created: int = 0  # epoch milliseconds
    duration: int = 0
    url: str = ""
    events: List[InteractionEvent] = Field(default_factory=list)
    metadata: RecordingMetadata = Field(default_factory=RecordingMetadata)

    @field_validator("events")
    @classmethod
    def _timestamps_non_decreasing(cls, events: List[BaseEvent]) -> List[BaseEvent]:
        for previous, current in zip(events, events[1:]):
            if current.timestamp < previous.timestamp:
                raise ValueError(
                    f"event timestamps must be non-decreasing ({current.timestamp} after {previous.timestamp})"
                )
        return events

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class ExportBundle(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    version: str = EXPORT_FORMAT_VERSION
    export_date: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
        alias="exportDate",
    )
    recordings: List[Recording] = Field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class Settings(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    hotkey: str = "Ctrl+Shift+R"
    playback_speed: PlaybackSpeed = Field(default=PlaybackSpeed.REAL_TIME, alias="playbackSpeed")
    auto_export: bool = Field(default=False, alias="autoExport")

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


class PendingPlayback(BaseModel):
    """Remaining events to replay after a navigation replaced the document."""
    model_config = ConfigDict(populate_by_name=True)

    events_tail: List[InteractionEvent] = Field(default_factory=list, alias="eventsTail")
    resume_index: int = Field(default=0, alias="resumeIndex")

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")

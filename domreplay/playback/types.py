from enum import Enum
from typing import Optional, TypedDict

from pydantic import BaseModel, ConfigDict

from ..schemas.events import BaseEvent


class PlaybackState(str, Enum):
    IDLE = "idle"
    PLAYING = "playing"
    PAUSED = "paused"
    COMPLETED = "completed"
    ABORTED = "aborted"

    @property
    def is_terminal(self) -> bool:
        return self in (PlaybackState.COMPLETED, PlaybackState.ABORTED)


class RecoveryDecision(str, Enum):
    SKIP = "skip"
    ABORT = "abort"


class Progress(TypedDict):
    currentStep: int
    totalSteps: int


class PlaybackFailure(BaseModel):
    """A replay action that failed; handed to the decision callback."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    index: int
    event: BaseEvent
    message: str
    exception: Optional[Exception] = None

from typing import Union

from . import config as pb_config
from ..schemas.events import BaseEvent
from ..schemas.recording import PlaybackSpeed


def compute_delay_ms(gap_ms: float, speed: Union[PlaybackSpeed, str]) -> float:
    """Wait between two events: the recorded gap scaled by the speed multiplier, never below the speed's floor."""
    speed = PlaybackSpeed(speed)
    return max(speed.multiplier * gap_ms, pb_config.DELAY_FLOOR_MS[speed])


def delay_between(current: BaseEvent, following: BaseEvent, speed: Union[PlaybackSpeed, str]) -> float:
    return compute_delay_ms(following.timestamp - current.timestamp, speed)

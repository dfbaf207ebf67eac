"""
Builders for the synthetic DOM events dispatched during replay.

Each builder returns a `SyntheticEvent` describing the constructor, type and
init dictionary; `PageDocument.dispatch` instantiates and dispatches it in
the page with one generic script.
"""
from typing import Any, Dict

from pydantic import BaseModel, Field

from ..schemas.events import KeydownEvent, Point


class SyntheticEvent(BaseModel):
    event_class: str = "Event"
    type: str
    init: Dict[str, Any] = Field(default_factory=dict)


def build_click_event(coordinates: Point) -> SyntheticEvent:
    return SyntheticEvent(
        event_class="MouseEvent",
        type="click",
        init={"bubbles": True, "cancelable": True, "clientX": coordinates.x, "clientY": coordinates.y},
    )


def build_input_event() -> SyntheticEvent:
    return SyntheticEvent(event_class="Event", type="input", init={"bubbles": True})


def build_change_event() -> SyntheticEvent:
    return SyntheticEvent(event_class="Event", type="change", init={"bubbles": True})


def build_keydown_event(event: KeydownEvent) -> SyntheticEvent:
    return SyntheticEvent(
        event_class="KeyboardEvent",
        type="keydown",
        init={
            "key": event.key,
            "ctrlKey": event.ctrl_key,
            "metaKey": event.meta_key,
            "shiftKey": event.shift_key,
            "altKey": event.alt_key,
            "bubbles": True,
            "cancelable": True,
        },
    )


def build_submit_event() -> SyntheticEvent:
    return SyntheticEvent(event_class="Event", type="submit", init={"bubbles": True, "cancelable": True})

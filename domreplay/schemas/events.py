"""
Interaction event schema.

Events form a closed tagged union on `type`. JSON field names follow the
recorder's export format (camelCase); Python attributes are snake_case.
"""
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from ..selector_resolver.types import SelectorDescriptor


class EventType(str, Enum):
    NAVIGATE = "navigate"
    CLICK = "click"
    INPUT = "input"
    CHANGE = "change"
    SCROLL = "scroll"
    KEYDOWN = "keydown"
    SUBMIT = "submit"
    MOUSEMOVE = "mousemove"


class Point(BaseModel):
    x: float = 0
    y: float = 0


class Viewport(BaseModel):
    width: int
    height: int


class BaseEvent(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    timestamp: int  # epoch milliseconds
    url: str = ""

    @property
    def event_type(self) -> EventType:
        return EventType(self.type)  # type: ignore[attr-defined]

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class TargetedEvent(BaseEvent):
    """An event aimed at one element, located again at replay time through its selectors."""
    selector: str
    fallback_selectors: List[str] = Field(default_factory=list, alias="fallbackSelectors")

    @property
    def descriptor(self) -> SelectorDescriptor:
        return SelectorDescriptor(primary=self.selector, fallbacks=list(self.fallback_selectors))

    @classmethod
    def selector_fields(cls, descriptor: SelectorDescriptor) -> Dict[str, Any]:
        return {"selector": descriptor.primary, "fallback_selectors": list(descriptor.fallbacks)}


class NavigateEvent(BaseEvent):
    type: Literal["navigate"] = "navigate"
    user_agent: Optional[str] = Field(default=None, alias="userAgent")
    viewport: Optional[Viewport] = None


class ClickEvent(TargetedEvent):
    type: Literal["click"] = "click"
    coordinates: Point = Field(default_factory=Point)
    scroll_position: Point = Field(default_factory=Point, alias="scrollPosition")
    target_text: str = Field(default="", alias="targetText")
    target_tag: str = Field(default="", alias="targetTag")


class InputEvent(TargetedEvent):
    type: Literal["input"] = "input"
    value: str = ""
    input_type: str = Field(default="text", alias="inputType")


class ChangeEvent(TargetedEvent):
    type: Literal["change"] = "change"
    value: Union[bool, str] = ""
    input_type: str = Field(default="", alias="inputType")


class ScrollEvent(BaseEvent):
    type: Literal["scroll"] = "scroll"
    scroll_position: Point = Field(default_factory=Point, alias="scrollPosition")
    viewport: Optional[Viewport] = None


class KeydownEvent(BaseEvent):
    type: Literal["keydown"] = "keydown"
    key: str
    ctrl_key: bool = Field(default=False, alias="ctrlKey")
    meta_key: bool = Field(default=False, alias="metaKey")
    shift_key: bool = Field(default=False, alias="shiftKey")
    alt_key: bool = Field(default=False, alias="altKey")


class SubmitEvent(TargetedEvent):
    type: Literal["submit"] = "submit"


class MousemoveEvent(BaseEvent):
    type: Literal["mousemove"] = "mousemove"
    coordinates: Point = Field(default_factory=Point)


InteractionEvent = Annotated[
    Union[
        NavigateEvent,
        ClickEvent,
        InputEvent,
        ChangeEvent,
        ScrollEvent,
        KeydownEvent,
        SubmitEvent,
        MousemoveEvent,
    ],
    Field(discriminator="type"),
]

_EVENT_ADAPTER = TypeAdapter(InteractionEvent)
_EVENT_LIST_ADAPTER = TypeAdapter(List[InteractionEvent])


def parse_event(data: Any) -> BaseEvent:
    """Validates one raw event dict into its variant model."""
    if isinstance(data, BaseEvent):
        return data
    return _EVENT_ADAPTER.validate_python(data)


def parse_events(data: Any) -> List[BaseEvent]:
    return _EVENT_LIST_ADAPTER.validate_python(data)

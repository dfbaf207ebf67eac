import logging
import uuid
from enum import Enum
from typing import Any, Callable, Dict, Optional, Type

from playwright.async_api import Error as PlaywrightError
from pydantic import ValidationError

from . import config as ec_config
from .exceptions import CaptureInstallError, MalformedPayloadError
from .rate_limit import Clock, Debouncer, MinIntervalGate, Scheduler, Throttle, epoch_ms
from .scripts import TEARDOWN_JS, build_capture_script
from ..page_driver.document import PageDocument
from ..page_driver.exceptions import DispatchError
from ..schemas.events import (
    BaseEvent,
    ChangeEvent,
    ClickEvent,
    InputEvent,
    KeydownEvent,
    NavigateEvent,
    ScrollEvent,
    SubmitEvent,
    TargetedEvent,
)
from ..selector_resolver.generator import generate_descriptor
from ..selector_resolver.types import ElementSnapshot

logger = logging.getLogger(__name__)


class RecorderState(str, Enum):
    IDLE = "idle"
    RECORDING = "recording"
    PAUSED = "paused"
    STOPPED = "stopped"


class Recorder:
    """
    Turns raw interaction reports from the page into InteractionEvents.

    The in-page capture script reports every candidate interaction through a
    Playwright binding; classification, selector generation, debouncing,
    throttling and the global spacing limit all happen here. Emitted events
    are handed to `emit` in order, with non-decreasing timestamps.
    """

    def __init__(
        self,
        document: PageDocument,
        emit: Callable[[BaseEvent], None],
        exclude_selector: Optional[str] = None,
        clock: Optional[Clock] = None,
        call_later: Optional[Scheduler] = None,
    ):
        self.document = document
        self.emit = emit
        self.exclude_selector = ec_config.get_exclude_selector(exclude_selector)
        self.binding_name = f"{ec_config.BINDING_NAME_PREFIX}_{uuid.uuid4().hex[:12]}"
        self.state = RecorderState.IDLE

        self._clock = clock or epoch_ms
        self._input_debouncer = Debouncer(ec_config.INPUT_DEBOUNCE_MS, self._deliver, call_later=call_later)
        self._scroll_throttle = Throttle(
            ec_config.SCROLL_THROTTLE_MS, self._deliver, clock=self._clock, call_later=call_later
        )
        self._gate = MinIntervalGate(ec_config.MIN_EVENT_INTERVAL_MS, clock=self._clock)
        self._last_url: Optional[str] = None
        self._last_timestamp = 0

        self._classifiers: Dict[str, Callable[[Dict[str, Any]], None]] = {
            "click": self._on_click,
            "input": self._on_input,
            "change": self._on_change,
            "submit": self._on_submit,
            "scroll": self._on_scroll,
            "keydown": self._on_keydown,
            "load": self._on_location,
            "location": self._on_location,
        }

    @property
    def is_recording(self) -> bool:
        return self.state in (RecorderState.RECORDING, RecorderState.PAUSED)

    async def start(self) -> None:
        """Installs the capture script in the current and all future documents and emits the initial navigate."""
        if self.state is not RecorderState.IDLE:
            logger.warning(f"Recorder start ignored in state '{self.state.value}'")
            return

        page = self.document.page
        script = build_capture_script(self.binding_name, self.exclude_selector)
        try:
            await page.expose_binding(self.binding_name, self._on_binding)
            await page.add_init_script(script)
            environment = await self.document.environment()
        except (PlaywrightError, DispatchError) as e:
            logger.error(f"Failed to install capture binding {self.binding_name}: {e}", exc_info=True)
            raise CaptureInstallError("Could not install event capture in the page", original_exception=e) from e

        self.state = RecorderState.RECORDING
        logger.info(f"Recording started on {self.document.url}")
        self._deliver(NavigateEvent, {
            "url": self.document.url,
            "user_agent": environment.get("userAgent"),
            "viewport": environment.get("viewport"),
        })

        try:
            await page.evaluate(script)
        except PlaywrightError as e:
            # The init script still covers every document loaded from now on.
            logger.warning(f"Could not attach capture listeners to the current document: {e}")

    def pause(self) -> None:
        if self.state is RecorderState.RECORDING:
            self.state = RecorderState.PAUSED
            logger.info("Recording paused")

    def resume(self) -> None:
        if self.state is RecorderState.PAUSED:
            self.state = RecorderState.RECORDING
            logger.info("Recording resumed")

    async def stop(self) -> None:
        """Detaches listeners in the page, flushes pending typing and drops a pending scroll. Late reports are ignored."""
        if not self.is_recording:
            return
        self._flush_input()
        self.state = RecorderState.STOPPED
        self._input_debouncer.cancel()
        self._scroll_throttle.cancel()
        try:
            await self.document.page.evaluate(TEARDOWN_JS, self.binding_name)
        except PlaywrightError as e:
            logger.warning(f"Could not detach capture listeners: {e}")
        logger.info("Recording stopped")

    def _on_binding(self, source: Any, payload: Dict[str, Any]) -> None:
        self.handle_raw_event(payload)

    def handle_raw_event(self, payload: Dict[str, Any]) -> None:
        """Classifies one report from the capture script. Malformed reports are logged and dropped."""
        if self.state is not RecorderState.RECORDING:
            logger.debug(f"Ignoring '{payload.get('kind')}' report while {self.state.value}")
            return
        try:
            kind = payload.get("kind")
            classifier = self._classifiers.get(kind)
            if classifier is None:
                raise MalformedPayloadError(f"Unknown report kind: {kind!r}")
            classifier(payload)
        except (MalformedPayloadError, ValidationError, KeyError, TypeError) as e:
            logger.warning(f"Dropping malformed capture report: {e}")

    def _target(self, payload: Dict[str, Any]) -> ElementSnapshot:
        if not payload.get("target"):
            raise MalformedPayloadError(f"'{payload.get('kind')}' report carries no target")
        return ElementSnapshot.model_validate(payload["target"])

    def _targeted_fields(self, payload: Dict[str, Any], snapshot: ElementSnapshot) -> Dict[str, Any]:
        fields = TargetedEvent.selector_fields(generate_descriptor(snapshot))
        fields["url"] = payload.get("url", "")
        return fields

    def _on_click(self, payload: Dict[str, Any]) -> None:
        snapshot = self._target(payload)
        fields = self._targeted_fields(payload, snapshot)
        fields.update({
            "coordinates": {"x": payload.get("clientX", 0), "y": payload.get("clientY", 0)},
            "scroll_position": {"x": payload.get("scrollX", 0), "y": payload.get("scrollY", 0)},
            "target_text": snapshot.text.strip()[:ec_config.MAX_TARGET_TEXT_LENGTH],
            "target_tag": snapshot.tag.lower(),
        })
        self._flush_input()
        self._deliver(ClickEvent, fields)

    def _on_input(self, payload: Dict[str, Any]) -> None:
        snapshot = self._target(payload)
        if snapshot.tag not in ("input", "textarea"):
            return
        fields = self._targeted_fields(payload, snapshot)
        fields.update({"value": payload.get("value") or "", "input_type": snapshot.input_type or "text"})

        # Typing into another field closes the burst for the previous one.
        pending = self._input_debouncer.pending_args
        if pending is not None and pending[1]["selector"] != fields["selector"]:
            self._flush_input()
        self._input_debouncer(InputEvent, fields)

    def _on_change(self, payload: Dict[str, Any]) -> None:
        snapshot = self._target(payload)
        is_select = snapshot.tag == "select"
        is_toggle = snapshot.tag == "input" and snapshot.input_type in ("checkbox", "radio")
        if not (is_select or is_toggle):
            return
        fields = self._targeted_fields(payload, snapshot)
        fields.update({
            "value": (payload.get("value") or "") if is_select else bool(payload.get("checked")),
            "input_type": snapshot.input_type or snapshot.tag,
        })
        self._flush_input()
        self._deliver(ChangeEvent, fields)

    def _on_submit(self, payload: Dict[str, Any]) -> None:
        fields = self._targeted_fields(payload, self._target(payload))
        self._flush_input()
        self._deliver(SubmitEvent, fields)

    def _on_scroll(self, payload: Dict[str, Any]) -> None:
        self._scroll_throttle(ScrollEvent, {
            "url": payload.get("url", ""),
            "scroll_position": {"x": payload.get("scrollX", 0), "y": payload.get("scrollY", 0)},
            "viewport": payload.get("viewport"),
        })

    def _on_keydown(self, payload: Dict[str, Any]) -> None:
        if not (payload.get("ctrlKey") or payload.get("metaKey")):
            return
        key = payload["key"]
        if key.lower() not in ec_config.SHORTCUT_KEYS:
            return
        self._flush_input()
        self._deliver(KeydownEvent, {
            "url": payload.get("url", ""),
            "key": key,
            "ctrl_key": bool(payload.get("ctrlKey")),
            "meta_key": bool(payload.get("metaKey")),
            "shift_key": bool(payload.get("shiftKey")),
            "alt_key": bool(payload.get("altKey")),
        })

    def _on_location(self, payload: Dict[str, Any]) -> None:
        url = payload["url"]
        if url == self._last_url:
            return
        self._deliver(NavigateEvent, {"url": url})

    def _flush_input(self) -> None:
        """Delivers a pending input burst ahead of an event that may depend on its value.

        The flushed input bypasses the minimum-interval gate so the dependent
        event (a submit right after the last keystroke) is not dropped by it.
        """
        pending = self._input_debouncer.pending_args
        if pending is None:
            return
        self._input_debouncer.cancel()
        self._deliver(*pending, gated=False)

    def _deliver(self, event_cls: Type[BaseEvent], fields: Dict[str, Any], gated: bool = True) -> Optional[BaseEvent]:
        if self.state is not RecorderState.RECORDING:
            return None
        if gated and not self._gate.allow():
            return None

        timestamp = max(int(self._clock()), self._last_timestamp)
        self._last_timestamp = timestamp
        event = event_cls(timestamp=timestamp, **fields)
        if isinstance(event, NavigateEvent):
            self._last_url = event.url

        logger.debug(f"Captured {event.type} event at {timestamp}")
        try:
            self.emit(event)
        except Exception as e:
            logger.error(f"Event sink failed for {event.type} event: {e}", exc_info=True)
        return event

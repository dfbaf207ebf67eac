import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Set, Union

from . import config as pb_config
from .actions import (
    build_change_event,
    build_click_event,
    build_input_event,
    build_keydown_event,
    build_submit_event,
)
from .exceptions import PlaybackStateError, UnhandledEventTypeError
from .timing import delay_between
from .types import PlaybackFailure, PlaybackState, Progress, RecoveryDecision
from ..page_driver.document import origin_of, same_location
from ..page_driver.exceptions import DispatchError
from ..schemas.events import (
    BaseEvent,
    ChangeEvent,
    ClickEvent,
    EventType,
    InputEvent,
    KeydownEvent,
    MousemoveEvent,
    NavigateEvent,
    ScrollEvent,
    SubmitEvent,
    parse_event,
)
from ..schemas.recording import PlaybackSpeed, Recording
from ..selector_resolver.exceptions import ElementNotFoundError, VisibilityTimeoutError
from ..selector_resolver.resolver import SelectorResolver
from ..waiting import wait_until

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[Progress], Union[None, Awaitable[None]]]
DecisionCallback = Callable[[PlaybackFailure], Union[RecoveryDecision, str, Awaitable[Union[RecoveryDecision, str]]]]

# Failures of a single replay action that are offered to the decision callback
RECOVERABLE_ERRORS = (ElementNotFoundError, VisibilityTimeoutError, DispatchError)


class PlaybackEngine:
    """
    Replays a sequence of interaction events against a page, one at a time.

    State machine: idle -> playing <-> paused; playing -> completed once every
    event is consumed; playing -> aborted on stop() or an abort decision.
    Commands take effect at the next checkpoint (before each event and after
    each inter-event delay); an action in flight always finishes.
    """

    def __init__(
        self,
        document,
        resolver: Optional[SelectorResolver] = None,
        continuity=None,
        speed: Union[PlaybackSpeed, str] = PlaybackSpeed.REAL_TIME,
        on_progress: Optional[ProgressCallback] = None,
        on_decision: Optional[DecisionCallback] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        pause_poll_interval_ms: int = pb_config.PAUSE_POLL_INTERVAL_MS,
    ):
        self.document = document
        self.resolver = resolver or SelectorResolver(document, sleep=sleep)
        self.continuity = continuity
        self.speed = PlaybackSpeed(speed)
        self.on_progress = on_progress
        self.on_decision = on_decision
        self._sleep = sleep
        self._pause_poll_interval_ms = pause_poll_interval_ms

        self.state = PlaybackState.IDLE
        self.events: List[BaseEvent] = []
        self.current_index = 0
        self.handed_off = False
        self.handoff_origin: Optional[str] = None
        self._stop_requested = False
        self._progress_tasks: Set[asyncio.Task] = set()

        self._handlers: Dict[EventType, Callable[[Any], Awaitable[None]]] = {
            EventType.CLICK: self._play_click,
            EventType.INPUT: self._play_input,
            EventType.CHANGE: self._play_change,
            EventType.SCROLL: self._play_scroll,
            EventType.NAVIGATE: self._play_navigate,
            EventType.KEYDOWN: self._play_keydown,
            EventType.SUBMIT: self._play_submit,
            EventType.MOUSEMOVE: self._play_mousemove,
        }
        missing = set(EventType) - set(self._handlers)
        if missing:
            raise UnhandledEventTypeError(missing)

    @property
    def is_active(self) -> bool:
        return self.state in (PlaybackState.PLAYING, PlaybackState.PAUSED)

    async def play(
        self,
        events: Union[Recording, Sequence[Any]],
        speed: Optional[Union[PlaybackSpeed, str]] = None,
        start_index: int = 0,
    ) -> PlaybackState:
        """
        Replays `events` (or a Recording's events) from `start_index` and returns the final state.

        Raises:
            PlaybackStateError: If this engine is already playing or paused.
        """
        if self.is_active:
            raise PlaybackStateError(f"Cannot start playback while {self.state.value}")

        if isinstance(events, Recording):
            events = events.events
        self.events = [parse_event(e) for e in events]
        if speed is not None:
            self.speed = PlaybackSpeed(speed)
        self.current_index = max(start_index, 0)
        self.handed_off = False
        self.handoff_origin = None
        self._stop_requested = False
        self.state = PlaybackState.PLAYING

        log_extra = {"total_steps": len(self.events), "speed": self.speed.value}
        logger.info(f"Playback started with {len(self.events)} events at '{self.speed.value}' speed", extra=log_extra)
        await self._run()
        logger.info(f"Playback finished in state '{self.state.value}' at step {self.current_index}", extra=log_extra)
        return self.state

    def pause(self) -> None:
        if self.state is PlaybackState.PLAYING:
            self.state = PlaybackState.PAUSED
            logger.info(f"Playback paused before step {self.current_index + 1}")

    def resume(self) -> None:
        if self.state is PlaybackState.PAUSED:
            self.state = PlaybackState.PLAYING
            logger.info("Playback resumed")

    def stop(self) -> None:
        if self.is_active:
            self._stop_requested = True
            logger.info("Playback stop requested")

    def abandon_handoff(self) -> None:
        """Ends a handed-off playback whose remaining events will not be replayed."""
        if self.handed_off and self.is_active:
            self.state = PlaybackState.ABORTED
            logger.warning(
                f"Handed-off playback to {self.handoff_origin} abandoned after step {self.current_index + 1}",
                extra={"handoff_origin": self.handoff_origin},
            )

    async def _checkpoint(self) -> bool:
        """Blocks while paused. Returns False once a stop has been requested."""
        if self.state is PlaybackState.PAUSED and not self._stop_requested:
            await wait_until(
                lambda: self.state is not PlaybackState.PAUSED or self._stop_requested,
                timeout_ms=None,
                interval_ms=self._pause_poll_interval_ms,
                description="playback resume",
                sleep=self._sleep,
            )
        if self._stop_requested:
            self.state = PlaybackState.ABORTED
            logger.info(f"Playback aborted before step {self.current_index + 1}")
            return False
        return True

    async def _run(self) -> None:
        total = len(self.events)
        while self.current_index < total:
            if not await self._checkpoint():
                return

            event = self.events[self.current_index]
            try:
                await self._handlers[event.event_type](event)
            except RECOVERABLE_ERRORS as e:
                logger.warning(f"Step {self.current_index + 1} ({event.type}) failed: {e}")
                decision = await self._decide(PlaybackFailure(
                    index=self.current_index, event=event, message=str(e), exception=e,
                ))
                if decision is RecoveryDecision.ABORT:
                    self.state = PlaybackState.ABORTED
                    logger.info(f"Playback aborted at step {self.current_index + 1}")
                    return
                logger.info(f"Skipping step {self.current_index + 1} ({event.type})")
                self.current_index += 1
                continue

            if self.handed_off:
                # The page is unloading; a fresh engine continues on the next document.
                return

            self._report_progress(Progress(currentStep=self.current_index + 1, totalSteps=total))
            if self.current_index + 1 < total:
                delay_ms = delay_between(event, self.events[self.current_index + 1], self.speed)
                await self._sleep(delay_ms / 1000)
            self.current_index += 1

        if not await self._checkpoint():
            return
        self.state = PlaybackState.COMPLETED

    async def _decide(self, failure: PlaybackFailure) -> RecoveryDecision:
        if self.on_decision is None:
            return RecoveryDecision.ABORT
        try:
            decision = self.on_decision(failure)
            if inspect.isawaitable(decision):
                decision = await decision
            return RecoveryDecision(decision)
        except Exception as e:
            logger.error(f"Recovery decision failed, aborting playback: {e}", exc_info=True)
            return RecoveryDecision.ABORT

    def _report_progress(self, progress: Progress) -> None:
        if self.on_progress is None:
            return
        try:
            result = self.on_progress(progress)
            if inspect.isawaitable(result):
                task = asyncio.ensure_future(result)
                self._progress_tasks.add(task)
                task.add_done_callback(self._progress_done)
        except Exception as e:
            logger.warning(f"Progress listener failed: {e}")

    def _progress_done(self, task: asyncio.Task) -> None:
        self._progress_tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.warning(f"Progress listener failed: {task.exception()}")

    async def _locate(self, event, visible: bool = True):
        element = await self.resolver.resolve(event.descriptor)
        if visible:
            await self.resolver.wait_visible(element)
        return element

    async def _play_click(self, event: ClickEvent) -> None:
        element = await self._locate(event)
        await self.document.dispatch(element, build_click_event(event.coordinates))

    async def _play_input(self, event: InputEvent) -> None:
        element = await self._locate(event)
        await self.document.focus(element)
        await self.document.set_value(element, "")
        for char in event.value:
            await self.document.append_value(element, char)
            await self.document.dispatch(element, build_input_event())
            await self._sleep(pb_config.TYPING_INTERVAL_MS / 1000)
        await self.document.dispatch(element, build_change_event())
        await self.document.blur(element)

    async def _play_change(self, event: ChangeEvent) -> None:
        element = await self._locate(event, visible=False)
        tag = await self.document.tag_name(element)
        if tag == "select":
            await self.document.set_value(element, str(event.value))
        elif await self.document.input_type(element) in ("checkbox", "radio"):
            checked = event.value if isinstance(event.value, bool) else str(event.value).lower() == "true"
            await self.document.set_checked(element, checked)
        await self.document.dispatch(element, build_change_event())

    async def _play_scroll(self, event: ScrollEvent) -> None:
        behavior = "instant" if self.speed is PlaybackSpeed.INSTANT else "smooth"
        await self.document.scroll_to(event.scroll_position.x, event.scroll_position.y, behavior)
        await self._sleep(pb_config.SCROLL_SETTLE_MS / 1000)

    async def _play_navigate(self, event: NavigateEvent) -> None:
        if not event.url or same_location(self.document.url, event.url):
            logger.debug(f"Already on {event.url}, nothing to navigate")
            return
        if self.continuity is None:
            await self.document.navigate(event.url)
            return
        await self.continuity.hand_off(self.document, self.events, self.current_index, event.url)
        self.handed_off = True
        self.handoff_origin = origin_of(event.url)

    async def _play_keydown(self, event: KeydownEvent) -> None:
        element = await self.document.active_element()
        await self.document.dispatch(element, build_keydown_event(event))

    async def _play_submit(self, event: SubmitEvent) -> None:
        element = await self._locate(event, visible=False)
        await self.document.dispatch(element, build_submit_event())

    async def _play_mousemove(self, event: MousemoveEvent) -> None:
        await self.document.move_pointer(event.coordinates.x, event.coordinates.y)

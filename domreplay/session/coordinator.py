import asyncio
import logging
from typing import Any, Callable, Dict, Optional, Set, Union

from .exceptions import RecordingNotFoundError, SessionStateError
from .recording_session import RecordingSession
from ..continuity.exceptions import ContinuityError
from ..continuity.handoff import NavigationContinuity
from ..continuity.store import PendingPlaybackStore
from ..event_capture.rate_limit import Clock
from ..event_capture.recorder import Recorder
from ..page_driver.document import PageDocument
from ..playback.engine import DecisionCallback, PlaybackEngine, ProgressCallback
from ..playback.types import PlaybackState
from ..schemas.recording import PlaybackSpeed, Recording
from ..storage_manager.exceptions import StorageManagerError
from ..storage_manager.recordings import RecordingStore

logger = logging.getLogger(__name__)


class SessionCoordinator:
    """
    Owns the recording and playback activity of one page.

    At most one recording session and one playback exist at a time, and the
    two never overlap. A page `load` handler resumes playbacks that were
    handed off across a navigation.
    """

    def __init__(
        self,
        page,
        recording_store: RecordingStore,
        pending_store: Optional[PendingPlaybackStore] = None,
        on_progress: Optional[ProgressCallback] = None,
        on_decision: Optional[DecisionCallback] = None,
        clock: Optional[Clock] = None,
        engine_options: Optional[Dict[str, Any]] = None,
        document: Optional[PageDocument] = None,
    ):
        self.page = page
        self.document = document or PageDocument(page)
        self.recordings = recording_store
        self.continuity = NavigationContinuity(pending_store) if pending_store is not None else None
        self.on_progress = on_progress
        self.on_decision = on_decision
        self._clock = clock
        self._engine_options = engine_options or {}

        self.recording_session: Optional[RecordingSession] = None
        self.recorder: Optional[Recorder] = None
        self.engine: Optional[PlaybackEngine] = None
        self._speed: Optional[PlaybackSpeed] = None
        self._playback_idle = asyncio.Event()
        self._playback_idle.set()
        self._resume_tasks: Set[asyncio.Task] = set()
        self._attached = False

    @property
    def is_recording(self) -> bool:
        return self.recording_session is not None

    @property
    def is_playing(self) -> bool:
        return not self._playback_idle.is_set()

    def attach(self) -> None:
        """Registers the page load handler that resumes handed-off playbacks."""
        if not self._attached:
            self.page.on("load", self._on_page_load)
            self._attached = True

    def detach(self) -> None:
        if self._attached:
            self.page.remove_listener("load", self._on_page_load)
            self._attached = False

    # Recording

    async def start_recording(self, name: Optional[str] = None) -> RecordingSession:
        if self.is_recording:
            raise SessionStateError("A recording is already in progress")
        if self.is_playing:
            raise SessionStateError("Cannot record while a playback is running")

        session = RecordingSession(name=name, clock=self._clock)
        recorder = Recorder(self.document, session.add_event, clock=self._clock)
        await recorder.start()
        self.recording_session = session
        self.recorder = recorder
        logger.info(f"Started recording '{session.recording.name}'", extra={"recording_id": session.recording.id})
        return session

    def pause_recording(self) -> None:
        if self.recording_session is None:
            return
        self.recording_session.pause()
        self.recorder.pause()

    def resume_recording(self) -> None:
        if self.recording_session is None:
            return
        self.recording_session.resume()
        self.recorder.resume()

    async def stop_recording(self) -> Optional[Recording]:
        """Stops capture and saves the recording. Returns None when nothing was being recorded."""
        if self.recording_session is None:
            return None
        session, recorder = self.recording_session, self.recorder
        self.recording_session = None
        self.recorder = None
        await recorder.stop()
        return await session.stop(self.recordings)

    async def toggle_recording(self) -> Optional[Recording]:
        if self.is_recording:
            return await self.stop_recording()
        await self.start_recording()
        return None

    # Playback

    def _new_engine(self, document) -> PlaybackEngine:
        engine = PlaybackEngine(
            document,
            continuity=self.continuity,
            speed=self._speed or PlaybackSpeed.REAL_TIME,
            on_progress=self.on_progress,
            on_decision=self.on_decision,
            **self._engine_options,
        )
        self.engine = engine
        return engine

    def _finish(self, engine: Optional[PlaybackEngine]) -> None:
        if engine is not None and engine.handed_off:
            logger.info("Playback continues on the next document")
            return
        self._playback_idle.set()

    async def play(
        self,
        recording: Union[Recording, str],
        speed: Optional[Union[PlaybackSpeed, str]] = None,
    ) -> PlaybackState:
        """
        Replays a recording (or the stored recording with that id) on this page.

        Returns the state the engine ended in on this document; a handed-off
        playback keeps running after the next page load, see `wait_for_playback`.
        """
        if self.is_recording:
            raise SessionStateError("Cannot play while a recording is in progress")
        if self.is_playing:
            raise SessionStateError("A playback is already running")

        if isinstance(recording, str):
            recording_id = recording
            recording = await self.recordings.get(recording_id)
            if recording is None:
                raise RecordingNotFoundError(recording_id)
        if speed is None:
            speed = (await self.recordings.get_settings()).playback_speed
        self._speed = PlaybackSpeed(speed)

        self._playback_idle.clear()
        engine = self._new_engine(self.document)
        logger.info(
            f"Playing '{recording.name}' at '{self._speed.value}' speed",
            extra={"recording_id": recording.id, "events": len(recording.events)},
        )
        try:
            state = await engine.play(recording)
        finally:
            self._finish(engine)
        return state

    def pause_playback(self) -> None:
        if self.engine is not None:
            self.engine.pause()

    def resume_playback(self) -> None:
        if self.engine is not None:
            self.engine.resume()

    async def stop_playback(self) -> None:
        """Stops the running engine, or cancels a playback waiting on the other side of a navigation."""
        engine = self.engine
        if engine is None:
            return
        if engine.handed_off:
            if self.continuity is not None:
                await self.continuity.store.clear(engine.handoff_origin)
            engine.abandon_handoff()
            self._playback_idle.set()
            return
        engine.stop()

    async def wait_for_playback(self, timeout_ms: Optional[int] = None) -> Optional[PlaybackState]:
        """Waits until no playback is running on this page, including across handed-off navigations."""
        timeout = None if timeout_ms is None else timeout_ms / 1000
        await asyncio.wait_for(self._playback_idle.wait(), timeout)
        return self.engine.state if self.engine is not None else None

    async def resume_pending(self) -> Optional[PlaybackEngine]:
        """Consumes a pending playback for the current origin and replays it."""
        if self.continuity is None:
            return None
        if self.is_recording:
            logger.info("Page loaded during a recording; pending playback is not resumed")
            return None
        if self.engine is not None and self.engine.is_active and not self.engine.handed_off:
            logger.debug("Playback already running, pending record left for later")
            return None

        previous = self.engine
        awaiting_handoff = previous is not None and previous.handed_off and previous.is_active
        self._playback_idle.clear()
        engine = None
        try:
            engine = await self.continuity.resume_pending(self.document, self._new_engine)
            if engine is None and awaiting_handoff:
                # The navigation ended on another origin than the one the tail was stored under.
                logger.warning(
                    f"Page loaded on {self.document.origin}, expected {previous.handoff_origin}; dropping pending playback",
                )
                await self.continuity.store.clear(previous.handoff_origin)
                previous.abandon_handoff()
        finally:
            self._finish(engine)
        return engine

    def _on_page_load(self, page: Any = None) -> None:
        task = asyncio.ensure_future(self._resume_after_load())
        self._resume_tasks.add(task)
        task.add_done_callback(self._resume_tasks.discard)

    async def _resume_after_load(self) -> None:
        try:
            await self.resume_pending()
        except (ContinuityError, StorageManagerError) as e:
            logger.error(f"Could not resume pending playback on {self.document.url}: {e}", exc_info=True)

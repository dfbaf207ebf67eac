import logging
from typing import Any, Callable, Optional, Sequence

from .store import PendingPlaybackStore
from ..page_driver.document import origin_of
from ..page_driver.exceptions import DispatchError
from ..schemas.events import BaseEvent
from ..schemas.recording import PendingPlayback

logger = logging.getLogger(__name__)


class NavigationContinuity:
    """
    Carries a playback across a page load.

    Before a replayed navigation unloads the document, the remaining events are
    written to the pending store under the target's origin. When the next
    document initializes, `resume_pending` consumes that record and starts a
    fresh engine on the tail.
    """

    def __init__(self, store: PendingPlaybackStore):
        self.store = store

    async def hand_off(self, document, events: Sequence[BaseEvent], current_index: int, target_url: str) -> PendingPlayback:
        """Persists events after `current_index`, then navigates to `target_url`."""
        origin = origin_of(target_url)
        pending = PendingPlayback(events_tail=list(events[current_index + 1:]), resume_index=0)
        await self.store.put(origin, pending)
        logger.info(
            f"Handing off {len(pending.events_tail)} remaining events to {origin}",
            extra={"target_url": target_url, "remaining": len(pending.events_tail)},
        )
        try:
            await document.navigate(target_url)
        except DispatchError:
            # The next document will never come, so the record must not outlive this attempt.
            await self.store.clear(origin)
            raise
        return pending

    async def resume_pending(self, document, engine_factory: Callable[[Any], Any], **play_kwargs) -> Optional[Any]:
        """
        Starts playback of a pending tail for the document's origin, if one exists.

        Returns:
            The engine that replayed the tail (after its play() returned), or None.
        """
        pending = await self.store.take(document.origin)
        if pending is None:
            return None
        logger.info(
            f"Resuming playback on {document.url} with {len(pending.events_tail)} events",
            extra={"origin": document.origin, "resume_index": pending.resume_index},
        )
        engine = engine_factory(document)
        await engine.play(pending.events_tail, start_index=pending.resume_index, **play_kwargs)
        return engine

"""
Rate limiting primitives used to shape captured events.

- Debouncer: trailing edge. Every call restarts the quiet period; only the
  last call's arguments are delivered, once the period elapses.
- Throttle: leading edge plus trailing. The first call in a window is
  delivered immediately; later calls inside the window are coalesced into one
  delivery at window expiry, carrying the newest arguments.
- MinIntervalGate: drops (never queues) anything arriving sooner than the
  minimum interval after the last admitted item.

Timers go through an injectable `call_later(delay_seconds, fn)` returning a
handle with `cancel()`; time is read from an injectable millisecond clock.
"""

import asyncio
import functools
import logging
import time
from typing import Any, Callable, Optional, Tuple

logger = logging.getLogger(__name__)

Clock = Callable[[], float]
Scheduler = Callable[[float, Callable[[], None]], Any]


def epoch_ms() -> float:
    return time.time() * 1000


def loop_call_later(delay_seconds: float, fn: Callable[[], None]) -> asyncio.TimerHandle:
    return asyncio.get_running_loop().call_later(delay_seconds, fn)


class Debouncer:
    def __init__(self, delay_ms: int, callback: Callable[..., None], call_later: Optional[Scheduler] = None):
        self.delay_ms = delay_ms
        self.callback = callback
        self._call_later = call_later or loop_call_later
        self._handle = None
        self._pending_args: Optional[Tuple[Any, ...]] = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    @property
    def pending_args(self) -> Optional[Tuple[Any, ...]]:
        return self._pending_args

    def __call__(self, *args: Any) -> None:
        self.cancel()
        self._pending_args = args
        self._handle = self._call_later(self.delay_ms / 1000, functools.partial(self._fire, args))

    def _fire(self, args: Tuple[Any, ...]) -> None:
        self._handle = None
        self._pending_args = None
        self.callback(*args)

    def flush(self) -> None:
        """Delivers the pending call now instead of at the end of the quiet period."""
        args = self._pending_args
        if args is None:
            return
        self.cancel()
        self.callback(*args)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._pending_args = None


class Throttle:
    def __init__(
        self,
        delay_ms: int,
        callback: Callable[..., None],
        clock: Optional[Clock] = None,
        call_later: Optional[Scheduler] = None,
    ):
        self.delay_ms = delay_ms
        self.callback = callback
        self._clock = clock or epoch_ms
        self._call_later = call_later or loop_call_later
        self._last_run: Optional[float] = None
        self._pending_args: Optional[Tuple[Any, ...]] = None
        self._handle = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def __call__(self, *args: Any) -> None:
        now = self._clock()
        if self._last_run is None or now - self._last_run >= self.delay_ms:
            self.cancel()
            self._last_run = now
            self.callback(*args)
            return

        self._pending_args = args
        if self._handle is None:
            remaining = self.delay_ms - (now - self._last_run)
            self._handle = self._call_later(remaining / 1000, self._fire_trailing)

    def _fire_trailing(self) -> None:
        args = self._pending_args
        self._handle = None
        self._pending_args = None
        if args is None:
            return
        self._last_run = self._clock()
        self.callback(*args)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._pending_args = None


class MinIntervalGate:
    def __init__(self, interval_ms: int, clock: Optional[Clock] = None):
        self.interval_ms = interval_ms
        self._clock = clock or epoch_ms
        self._last_admitted: Optional[float] = None

    def allow(self) -> bool:
        """Admits the caller unless the previous admission was less than `interval_ms` ago."""
        now = self._clock()
        if self._last_admitted is not None and now - self._last_admitted < self.interval_ms:
            logger.debug(f"Dropping event {now - self._last_admitted:.0f}ms after the previous one")
            return False
        self._last_admitted = now
        return True

    def reset(self) -> None:
        self._last_admitted = None

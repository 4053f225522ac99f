"""Scheduled-callback abstraction used by every playback timer.

Playback never sleeps or spawns threads. Timers are callbacks registered on a
:class:`Scheduler`; the scheduler decides when "now" is. Tests and the
``simulate`` command drive a :class:`ManualScheduler` by hand, interactive
hosts run a :class:`RealtimeScheduler` loop.
"""

import heapq
import itertools
import logging
import time
from abc import ABC, abstractmethod
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)

Callback = Callable[[], None]


class TimerHandle:
    """Handle to a pending one-shot or repeating timer."""

    def __init__(
        self,
        due_ms: float,
        callback: Callback,
        interval_ms: Optional[float] = None,
        name: str = "timer",
    ) -> None:
        self.due_ms = due_ms
        self.callback = callback
        self.interval_ms = interval_ms
        self.name = name
        self._cancelled = False
        self._fired = False

    def cancel(self) -> None:
        """Stop the timer. Safe to call more than once."""
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def active(self) -> bool:
        """True while the timer can still fire."""
        if self._cancelled:
            return False
        return self.interval_ms is not None or not self._fired

    def __repr__(self) -> str:
        return f"TimerHandle({self.name!r}, due={self.due_ms:.1f}, interval={self.interval_ms})"


class Scheduler(ABC):
    """Timer queue with a pluggable notion of the current time (milliseconds)."""

    def __init__(self) -> None:
        self._queue: List[tuple[float, int, TimerHandle]] = []
        self._sequence = itertools.count()

    @abstractmethod
    def now(self) -> float:
        """Return the current time in milliseconds."""
        ...

    def call_later(self, delay_ms: float, callback: Callback, name: str = "timeout") -> TimerHandle:
        """Run ``callback`` once, ``delay_ms`` from now."""
        handle = TimerHandle(self.now() + max(0.0, delay_ms), callback, name=name)
        self._push(handle)
        return handle

    def call_every(self, interval_ms: float, callback: Callback, name: str = "interval") -> TimerHandle:
        """Run ``callback`` every ``interval_ms`` until the handle is cancelled."""
        if interval_ms <= 0:
            raise ValueError(f"Interval must be positive, got {interval_ms}")
        handle = TimerHandle(self.now() + interval_ms, callback, interval_ms=interval_ms, name=name)
        self._push(handle)
        return handle

    @property
    def pending_timers(self) -> List[TimerHandle]:
        """Timers that can still fire, in due order."""
        return [handle for _, _, handle in sorted(self._queue) if handle.active]

    def next_due(self) -> Optional[float]:
        """Due time of the earliest live timer, if any."""
        self._drop_cancelled()
        return self._queue[0][0] if self._queue else None

    def _push(self, handle: TimerHandle) -> None:
        heapq.heappush(self._queue, (handle.due_ms, next(self._sequence), handle))

    def _drop_cancelled(self) -> None:
        while self._queue and not self._queue[0][2].active:
            heapq.heappop(self._queue)

    def _pop_due(self, until_ms: float) -> Optional[TimerHandle]:
        self._drop_cancelled()
        if self._queue and self._queue[0][0] <= until_ms:
            return heapq.heappop(self._queue)[2]
        return None

    def _fire(self, handle: TimerHandle) -> None:
        if handle.interval_ms is None:
            handle._fired = True
        else:
            handle.due_ms += handle.interval_ms
            self._push(handle)
        handle.callback()


class ManualScheduler(Scheduler):
    """Deterministic scheduler whose clock only moves when told to."""

    def __init__(self, start_ms: float = 0.0) -> None:
        super().__init__()
        self._now = start_ms

    def now(self) -> float:
        return self._now

    def advance(self, ms: float) -> None:
        """Move the clock forward, firing every timer that comes due on the way.

        Timers fire in due order with the clock set to their due time, so a
        callback that schedules another timer inside the window sees it fire
        too.
        """
        if ms < 0:
            raise ValueError("Cannot move the clock backwards")
        target = self._now + ms
        while True:
            handle = self._pop_due(target)
            if handle is None:
                break
            self._now = max(self._now, handle.due_ms)
            self._fire(handle)
        self._now = target

    def run_until(
        self,
        predicate: Callable[[], bool],
        step_ms: float = 50.0,
        limit_ms: float = 3_600_000.0,
    ) -> bool:
        """Advance in steps until ``predicate`` holds or ``limit_ms`` elapses.

        Returns:
            True if the predicate became true within the limit.
        """
        deadline = self._now + limit_ms
        while not predicate():
            if self._now >= deadline:
                return False
            self.advance(min(step_ms, deadline - self._now))
        return True


class RealtimeScheduler(Scheduler):
    """Wall-clock scheduler driven by a cooperative loop on the calling thread."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        super().__init__()
        self._clock = clock
        self._origin = clock()

    def now(self) -> float:
        return (self._clock() - self._origin) * 1000.0

    def run(
        self,
        until: Callable[[], bool],
        timeout_s: Optional[float] = None,
        idle_sleep_s: float = 0.01,
    ) -> bool:
        """Fire timers as they come due until ``until()`` holds.

        Args:
            until: Stop condition, checked after every batch of timers.
            timeout_s: Give up after this many seconds. None waits forever.
            idle_sleep_s: Sleep used when no timer is pending.

        Returns:
            True if the stop condition was met, False on timeout.
        """
        started = self.now()
        while not until():
            now = self.now()
            if timeout_s is not None and now - started >= timeout_s * 1000.0:
                logger.warning(f"Scheduler loop timed out after {timeout_s:.1f}s")
                return False

            handle = self._pop_due(now)
            while handle is not None:
                self._fire(handle)
                handle = self._pop_due(self.now())

            next_due = self.next_due()
            if next_due is None:
                time.sleep(idle_sleep_s)
            else:
                time.sleep(max(0.0, min(idle_sleep_s * 10, (next_due - self.now()) / 1000.0)))
        return True

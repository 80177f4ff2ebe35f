"""Cancellable scheduled callbacks for single-threaded, event-driven hosts.

Nothing here blocks. A scheduler keeps a queue of due callbacks that fire when
the host advances time: `ManualScheduler.advance` in tests and replays,
`MonotonicScheduler.pump` in a live session. Callbacks run to completion one
at a time, in due order (ties in scheduling order).

`TimerGroup` scopes timers to one owner (a round). Closing the group cancels
everything it scheduled, and a callback belonging to a closed group is dropped
even if it was already due.
"""

from __future__ import annotations

import heapq
import itertools
import logging
import time
from dataclasses import dataclass, field
from typing import Callable

logger = logging.getLogger(__name__)

Callback = Callable[[], None]


@dataclass(eq=False)
class TimerHandle:
    """A scheduled callback that can be cancelled until it fires."""

    due_ms: float
    callback: Callback
    label: str = ""
    cancelled: bool = False
    fired: bool = False

    def cancel(self) -> None:
        self.cancelled = True

    @property
    def pending(self) -> bool:
        return not (self.cancelled or self.fired)


class ManualScheduler:
    """Deterministic scheduler whose clock only moves when told to."""

    def __init__(self, start_ms: float = 0.0):
        self._now = float(start_ms)
        self._queue: list[tuple[float, int, TimerHandle]] = []
        self._sequence = itertools.count()
        self._firing = False

    def now_ms(self) -> float:
        return self._now

    def call_later(self, delay_ms: float, callback: Callback, *, label: str = "") -> TimerHandle:
        """Schedule `callback` to run `delay_ms` after the current time."""
        if delay_ms < 0:
            raise ValueError("delay_ms must be >= 0.")
        handle = TimerHandle(due_ms=self.now_ms() + float(delay_ms), callback=callback, label=label)
        heapq.heappush(self._queue, (handle.due_ms, next(self._sequence), handle))
        return handle

    def advance(self, delta_ms: float) -> int:
        """Move the clock forward by `delta_ms`, firing every callback that comes due."""
        if delta_ms < 0:
            raise ValueError("delta_ms must be >= 0.")
        return self.advance_to(self._now + float(delta_ms))

    def advance_to(self, target_ms: float) -> int:
        """Fire due callbacks up to `target_ms`; returns how many ran.

        A raising callback propagates, but the clock still reaches `target_ms`;
        callbacks queued behind it fire on the next advance or pump.
        """
        fired = 0
        try:
            while self._queue and self._queue[0][0] <= target_ms:
                due_ms, _, handle = heapq.heappop(self._queue)
                if handle.cancelled:
                    continue
                self._now = max(self._now, due_ms)
                handle.fired = True
                self._firing = True
                try:
                    handle.callback()
                finally:
                    self._firing = False
                fired += 1
        finally:
            self._now = max(self._now, float(target_ms))
        return fired

    def pump(self) -> int:
        """Fire callbacks that are already due without moving the clock."""
        return self.advance_to(self._now)

    def pending(self) -> list[TimerHandle]:
        """Return live handles in due order."""
        return [handle for _, _, handle in sorted(self._queue, key=lambda entry: entry[:2]) if handle.pending]


class MonotonicScheduler(ManualScheduler):
    """Wall-clock scheduler; due callbacks fire whenever the host calls `pump`."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._origin = clock()
        super().__init__(start_ms=0.0)

    def _elapsed_ms(self) -> float:
        return (self._clock() - self._origin) * 1000.0

    def now_ms(self) -> float:
        if self._firing:
            return self._now
        return max(self._now, self._elapsed_ms())

    def pump(self) -> int:
        """Fire every callback whose due time has passed."""
        return self.advance_to(self._elapsed_ms())


class RepeatingTimer:
    """Handle for a callback that reschedules itself every `interval_ms`."""

    def __init__(self, group: "TimerGroup", interval_ms: float, callback: Callback, label: str):
        self._group = group
        self.interval_ms = float(interval_ms)
        self._callback = callback
        self.label = label
        self.cancelled = False
        self._current: TimerHandle | None = None

    def start(self, initial_delay_ms: float) -> None:
        self._current = self._group.call_later(initial_delay_ms, self._tick, label=self.label)

    def _tick(self) -> None:
        if self.cancelled:
            return
        self._callback()
        if not self.cancelled and self._group.active:
            self._current = self._group.call_later(self.interval_ms, self._tick, label=self.label)

    def cancel(self) -> None:
        self.cancelled = True
        if self._current is not None:
            self._current.cancel()


@dataclass(eq=False)
class TimerGroup:
    """All timers owned by one round, cancelled together."""

    scheduler: ManualScheduler
    owner: str
    _handles: list[TimerHandle] = field(default_factory=list)
    _closed: bool = False

    @property
    def active(self) -> bool:
        return not self._closed

    def call_later(self, delay_ms: float, callback: Callback, *, label: str = "") -> TimerHandle:
        if self._closed:
            raise RuntimeError(f"Timer group {self.owner!r} is closed.")

        def fire() -> None:
            if self._closed:
                return
            callback()

        handle = self.scheduler.call_later(delay_ms, fire, label=label)
        self._handles = [existing for existing in self._handles if existing.pending]
        self._handles.append(handle)
        return handle

    def call_every(
        self,
        interval_ms: float,
        callback: Callback,
        *,
        label: str = "",
        initial_delay_ms: float | None = None,
    ) -> RepeatingTimer:
        repeating = RepeatingTimer(self, interval_ms, callback, label)
        repeating.start(interval_ms if initial_delay_ms is None else initial_delay_ms)
        return repeating

    def pending_labels(self) -> list[str]:
        return [handle.label for handle in self._handles if handle.pending]

    def close(self) -> None:
        """Cancel every pending timer and refuse new ones."""
        if self._closed:
            return
        self._closed = True
        cancelled = 0
        for handle in self._handles:
            if handle.pending:
                handle.cancel()
                cancelled += 1
        self._handles.clear()
        logger.debug("Closed timer group %s (%d pending timers cancelled)", self.owner, cancelled)

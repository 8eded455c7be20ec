"""
Cooperative timer scheduling.

Every delayed callback in the simulation goes through a TimerScheduler and
comes back as a cancellable TimerHandle. Two implementations:

- VirtualScheduler: heap-ordered virtual time, advanced explicitly. Used by
  tests and by anything that wants deterministic replay.
- AsyncioScheduler: wraps loop.call_later for live runs.

TimerRegistry groups the handles one owner (clock, mood engine, game
session) has armed so they can be swept in one call.
"""

from __future__ import annotations

import asyncio
import heapq
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Callable, Protocol, runtime_checkable

from pond.errors import SchedulerError
from pond.logging_config import log_timer

logger = logging.getLogger(__name__)

TimerCallback = Callable[[], None]


class TimerHandle:
    """A single armed timer. Cancelling guarantees the callback never runs."""

    def __init__(self, label: str, due_time: datetime):
        self.label = label
        self.due_time = due_time
        self._cancelled = False
        self._fired = False
        self._on_cancel: Callable[[], None] | None = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def fired(self) -> bool:
        return self._fired

    @property
    def pending(self) -> bool:
        """Armed and neither fired nor cancelled."""
        return not (self._cancelled or self._fired)

    def cancel(self) -> bool:
        """Cancel the timer. Returns False if it already fired or was cancelled."""
        if not self.pending:
            return False
        self._cancelled = True
        if self._on_cancel is not None:
            self._on_cancel()
        log_timer(logger, "CANCEL", self.label, self.due_time)
        return True

    def _run(self, callback: TimerCallback) -> None:
        if not self.pending:
            return
        self._fired = True
        log_timer(logger, "FIRE", self.label, self.due_time)
        callback()

    def __repr__(self) -> str:
        state = "cancelled" if self._cancelled else "fired" if self._fired else "pending"
        return f"TimerHandle({self.label!r}, due={self.due_time.isoformat()}, {state})"


@runtime_checkable
class TimerScheduler(Protocol):
    """Anything that can tell the time and run a callback later."""

    def now(self) -> datetime:
        ...

    def call_later(
        self,
        delay_ms: float,
        callback: TimerCallback,
        label: str = "timer",
    ) -> TimerHandle:
        ...


@dataclass(order=True)
class ScheduledTimer:
    """Heap entry: ordered by due time (UTC), then by arm order."""
    due_time: datetime
    sequence: int
    handle: TimerHandle = field(compare=False)
    callback: TimerCallback = field(compare=False)


class VirtualScheduler:
    """
    Deterministic scheduler over virtual time.

    Time only moves when advance()/advance_to() is called. Due timers fire
    in (due_time, arm order) order, and now() equals the timer's due time
    while its callback runs. Callbacks may arm further timers; those fire
    within the same advance if they fall due before its target.

    Delays are elapsed time. The queue runs on UTC and now() is reported in
    the start instant's timezone, so a timer armed before a DST change
    still fires after the requested number of real milliseconds.
    """

    def __init__(self, start: datetime):
        if start.tzinfo is None:
            raise SchedulerError("VirtualScheduler needs a timezone-aware start instant")
        self._tz = start.tzinfo
        self._now = start.astimezone(timezone.utc)
        self._queue: list[ScheduledTimer] = []  # heapq
        self._sequence = 0
        self._fired_count = 0
        self._disposed = False

    def now(self) -> datetime:
        return self._now.astimezone(self._tz)

    @property
    def fired_count(self) -> int:
        """Total callbacks delivered so far."""
        return self._fired_count

    @property
    def pending_count(self) -> int:
        return sum(1 for entry in self._queue if entry.handle.pending)

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    def call_later(
        self,
        delay_ms: float,
        callback: TimerCallback,
        label: str = "timer",
    ) -> TimerHandle:
        if self._disposed:
            raise SchedulerError(f"Cannot arm {label!r} on a disposed scheduler")
        due_utc = self._now + timedelta(milliseconds=max(0.0, delay_ms))
        handle = TimerHandle(label, due_utc.astimezone(self._tz))
        self._sequence += 1
        heapq.heappush(self._queue, ScheduledTimer(due_utc, self._sequence, handle, callback))
        log_timer(logger, "ARM", label, handle.due_time)
        return handle

    def get_earliest_due_time(self) -> datetime | None:
        """Earliest due time of a still-pending timer, or None."""
        while self._queue and not self._queue[0].handle.pending:
            heapq.heappop(self._queue)
        if self._queue:
            return self._queue[0].handle.due_time
        return None

    def advance(self, delay_ms: float) -> int:
        """Advance virtual time by delay_ms. Returns callbacks fired."""
        if delay_ms < 0:
            raise SchedulerError("Cannot advance by a negative delay")
        return self.advance_to(self._now + timedelta(milliseconds=delay_ms))

    def advance_to(self, target: datetime) -> int:
        """Fire everything due at or before target, then set now to target."""
        target = target.astimezone(timezone.utc)
        if target < self._now:
            raise SchedulerError(
                f"Cannot move time backwards ({self.now().isoformat()} -> {target.isoformat()})"
            )
        fired = 0
        while self._queue and self._queue[0].due_time <= target:
            entry = heapq.heappop(self._queue)
            if not entry.handle.pending:
                continue
            self._now = entry.due_time
            entry.handle._run(entry.callback)
            fired += 1
        self._now = target
        self._fired_count += fired
        return fired

    def dispose(self) -> int:
        """Cancel everything and refuse new timers. Returns timers cancelled."""
        cancelled = 0
        for entry in self._queue:
            if entry.handle.cancel():
                cancelled += 1
        self._queue.clear()
        self._disposed = True
        return cancelled


class AsyncioScheduler:
    """
    Scheduler backed by an asyncio event loop.

    now() is the only place in pond that reads the wall clock.
    """

    def __init__(
        self,
        tz: tzinfo,
        loop: asyncio.AbstractEventLoop | None = None,
        time_source: Callable[[tzinfo], datetime] | None = None,
    ):
        self._tz = tz
        self._loop = loop
        self._time_source = time_source or (lambda zone: datetime.now(zone))

    def now(self) -> datetime:
        return self._time_source(self._tz)

    def call_later(
        self,
        delay_ms: float,
        callback: TimerCallback,
        label: str = "timer",
    ) -> TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        delay_ms = max(0.0, delay_ms)
        now_utc = self.now().astimezone(timezone.utc)
        handle = TimerHandle(label, (now_utc + timedelta(milliseconds=delay_ms)).astimezone(self._tz))
        loop_handle = loop.call_later(delay_ms / 1000, handle._run, callback)
        handle._on_cancel = loop_handle.cancel
        log_timer(logger, "ARM", label, handle.due_time)
        return handle


class TimerRegistry:
    """
    The set of timers one owner has armed.

    Handles drop out of the registry when they fire; cancel_all() sweeps
    whatever is left.
    """

    def __init__(self, scheduler: TimerScheduler, owner: str):
        self._scheduler = scheduler
        self._owner = owner
        self._handles: set[TimerHandle] = set()

    @property
    def owner(self) -> str:
        return self._owner

    def __len__(self) -> int:
        return len(self._handles)

    def call_later(
        self,
        delay_ms: float,
        callback: TimerCallback,
        label: str,
    ) -> TimerHandle:
        handle: TimerHandle | None = None

        def fire() -> None:
            self._handles.discard(handle)
            callback()

        handle = self._scheduler.call_later(delay_ms, fire, label=f"{self._owner}:{label}")
        self._handles.add(handle)
        return handle

    def cancel(self, handle: TimerHandle | None) -> None:
        if handle is None:
            return
        handle.cancel()
        self._handles.discard(handle)

    def cancel_all(self) -> int:
        """Cancel every pending timer. Returns how many were cancelled."""
        cancelled = sum(1 for handle in self._handles if handle.cancel())
        self._handles.clear()
        if cancelled:
            logger.debug(f"Registry {self._owner} cancelled {cancelled} timers")
        return cancelled

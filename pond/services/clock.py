"""
SimulationClock - owns "now" for the sky simulation.

Ticks are aligned to minute boundaries divisible by the configured
granularity rather than to a fixed interval, so a 5-minute clock ticks at
:00, :05, :10, ... whenever it was started.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable

from pond.config import ClockConfig
from pond.logging_config import log_clock
from pond.services.scheduler import TimerHandle, TimerRegistry, TimerScheduler

logger = logging.getLogger(__name__)

TickListener = Callable[[datetime], None]


def delay_until_next_boundary(
    now: datetime,
    granularity_minutes: int,
    min_delay_ms: int = 1000,
) -> float:
    """Milliseconds from now to the next minute boundary divisible by granularity.

    Never returns less than min_delay_ms.
    """
    floored = now.replace(
        minute=now.minute - now.minute % granularity_minutes,
        second=0,
        microsecond=0,
    )
    # Stepped in UTC: the delay is real elapsed time across DST changes.
    next_boundary = floored.astimezone(timezone.utc) + timedelta(minutes=granularity_minutes)
    delay_ms = (next_boundary - now.astimezone(timezone.utc)).total_seconds() * 1000
    return max(float(min_delay_ms), delay_ms)


class SimulationClock:
    """Publishes "now" on every granularity boundary until stopped."""

    def __init__(self, scheduler: TimerScheduler, config: ClockConfig | None = None):
        self._scheduler = scheduler
        self._config = config or ClockConfig()
        self._timers = TimerRegistry(scheduler, "clock")
        self._pending: TimerHandle | None = None
        self._now = scheduler.now()
        self._running = False
        self._tick_count = 0
        self._listeners: list[TickListener] = []

    @property
    def now(self) -> datetime:
        """Last published instant."""
        return self._now

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def tick_count(self) -> int:
        return self._tick_count

    def on_tick(self, listener: TickListener) -> Callable[[], None]:
        """Register a listener; returns a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def start(self) -> None:
        if self._running:
            return
        self._running = True
        log_clock(logger, self._scheduler.now(), "START", f"granularity={self._config.granularity_minutes}m")
        self._publish()
        if self._running:
            self._arm()

    def stop(self) -> None:
        if not self._running:
            return
        self._running = False
        self._timers.cancel_all()
        self._pending = None
        log_clock(logger, self._now, "STOP", f"ticks={self._tick_count}")

    def _arm(self) -> None:
        delay_ms = delay_until_next_boundary(
            self._scheduler.now(),
            self._config.granularity_minutes,
            self._config.min_delay_ms,
        )
        self._pending = self._timers.call_later(delay_ms, self._on_timer, "tick")

    def _on_timer(self) -> None:
        self._pending = None
        if not self._running:
            return
        self._tick_count += 1
        self._publish()
        if self._running:
            self._arm()

    def _publish(self) -> None:
        self._now = self._scheduler.now()
        log_clock(logger, self._now, "TICK", f"n={self._tick_count}")
        for listener in list(self._listeners):
            try:
                listener(self._now)
            except Exception as e:
                logger.error(f"Clock listener failed: {e}", exc_info=True)

"""
MoodEngine - owns the frog's happiness.

Three independent call sites change happiness: the decay loop, feeding,
and game outcomes. Each change is a single clamp(old + delta) inside one
callback, so interleaved triggers can never push it out of [0, 100].

Decay is suppressed during quiet hours. The check happens both when the
timer is armed (arm for the end of the window instead of a full period)
and when it fires (a timer armed before the window that fires inside it
skips the decrement and re-arms for the window's end). The wake-up at
the window end only starts a fresh period; it never decrements.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone, tzinfo
from typing import Callable, Literal

from pond.config import MoodConfig
from pond.domain import (
    DomainEvent,
    FedEvent,
    HappinessChangedEvent,
    MoodSnapshot,
    WidgetId,
    apply_delta,
    in_quiet_hours,
    quiet_hours_end,
)
from pond.logging_config import log_mood
from pond.services.scheduler import TimerHandle, TimerRegistry, TimerScheduler

logger = logging.getLogger(__name__)

ChangeReason = Literal["decay", "feed", "game_cleared", "game_missed"]
MoodListener = Callable[[MoodSnapshot], None]
EventSink = Callable[[DomainEvent], None]


class MoodEngine:
    """State machine over happiness plus the feed animation flag."""

    def __init__(
        self,
        widget_id: WidgetId,
        scheduler: TimerScheduler,
        tz: tzinfo,
        config: MoodConfig | None = None,
        is_game_active: Callable[[], bool] | None = None,
        emit: EventSink | None = None,
    ):
        self._widget_id = widget_id
        self._scheduler = scheduler
        self._tz = tz
        self._config = config or MoodConfig()
        self._is_game_active = is_game_active or (lambda: False)
        self._emit = emit or (lambda event: None)
        self._timers = TimerRegistry(scheduler, f"{widget_id}:mood")

        self._happiness = self._config.initial_happiness
        self._feeding = False
        self._decay_running = False
        self._decay_handle: TimerHandle | None = None
        self._feed_handle: TimerHandle | None = None
        self._listeners: list[MoodListener] = []

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def happiness(self) -> int:
        return self._happiness

    @property
    def is_feeding(self) -> bool:
        return self._feeding

    @property
    def is_decay_running(self) -> bool:
        return self._decay_running

    @property
    def next_decay_at(self) -> datetime | None:
        """Due time of the armed decay timer, if any."""
        if self._decay_handle is None or not self._decay_handle.pending:
            return None
        return self._decay_handle.due_time

    @property
    def snapshot(self) -> MoodSnapshot:
        return MoodSnapshot(happiness=self._happiness, feeding=self._feeding)

    def on_change(self, listener: MoodListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # =========================================================================
    # Decay loop
    # =========================================================================

    def start(self) -> None:
        """Start the decay loop."""
        if self._decay_running:
            return
        self._decay_running = True
        self._arm_decay()

    def stop(self) -> None:
        """Stop the decay loop. Other timers are left alone."""
        if not self._decay_running:
            return
        self._decay_running = False
        self._timers.cancel(self._decay_handle)
        self._decay_handle = None

    def _arm_decay(self) -> None:
        now = self._scheduler.now()
        local_now = now.astimezone(self._tz)
        if in_quiet_hours(local_now, self._config.quiet_start, self._config.quiet_end):
            resume_at = quiet_hours_end(local_now, self._config.quiet_end)
            delay_ms = _millis_between(now, resume_at)
            self._decay_handle = self._timers.call_later(
                delay_ms, self._resume_after_quiet_hours, "resume-after-quiet-hours"
            )
        else:
            delay_ms = self._config.decay_period_minutes * 60 * 1000
            self._decay_handle = self._timers.call_later(delay_ms, self._on_decay, "decay")

    def _resume_after_quiet_hours(self) -> None:
        # Waking up is not a decay tick: the first decrement comes one period later.
        self._decay_handle = None
        if not self._decay_running:
            return
        self._arm_decay()

    def _on_decay(self) -> None:
        self._decay_handle = None
        if not self._decay_running:
            return
        local_now = self._scheduler.now().astimezone(self._tz)
        if in_quiet_hours(local_now, self._config.quiet_start, self._config.quiet_end):
            logger.debug(f"Decay skipped inside quiet hours at {local_now.isoformat()}")
        elif self._change(-self._config.decay_step, "decay"):
            self._notify()
        self._arm_decay()

    # =========================================================================
    # Actions
    # =========================================================================

    def feed(self) -> bool:
        """
        Feed the frog.

        Ignored while the feed animation or a game session is active.

        Returns:
            True if the feed was accepted
        """
        if self._feeding:
            logger.debug("Feed ignored - animation still running")
            return False
        if self._is_game_active():
            logger.debug("Feed ignored - game session active")
            return False

        self._feeding = True
        self._emit(FedEvent(widget_id=self._widget_id, timestamp=self._scheduler.now()))
        self._change(self._config.feed_bonus, "feed")
        self._feed_handle = self._timers.call_later(
            self._config.feed_animation_ms, self._end_feed, "feed-animation"
        )
        self._notify()
        return True

    def _end_feed(self) -> None:
        self._feed_handle = None
        if not self._feeding:
            return
        self._feeding = False
        self._notify()

    def apply_game_outcome(self, cleared: bool) -> int:
        """Apply the game delta for one obstacle. Returns the new happiness."""
        if cleared:
            changed = self._change(self._config.game_success_delta, "game_cleared")
        else:
            changed = self._change(self._config.game_miss_delta, "game_missed")
        if changed:
            self._notify()
        return self._happiness

    # =========================================================================
    # Teardown
    # =========================================================================

    def dispose(self) -> int:
        """Stop everything. Returns how many timers were cancelled."""
        self._decay_running = False
        self._feeding = False
        self._decay_handle = None
        self._feed_handle = None
        return self._timers.cancel_all()

    # =========================================================================
    # Internals
    # =========================================================================

    def _change(self, delta: int, reason: ChangeReason) -> bool:
        old = self._happiness
        new = apply_delta(old, delta)
        if new == old:
            return False
        self._happiness = new
        log_mood(logger, self._widget_id, reason, old, new)
        self._emit(HappinessChangedEvent(
            widget_id=self._widget_id,
            timestamp=self._scheduler.now(),
            old_happiness=old,
            new_happiness=new,
            reason=reason,
        ))
        return True

    def _notify(self) -> None:
        snapshot = self.snapshot
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:
                logger.error(f"Mood listener failed: {e}", exc_info=True)


def _millis_between(start: datetime, end: datetime) -> float:
    """Elapsed real milliseconds, correct across DST changes."""
    delta = end.astimezone(timezone.utc) - start.astimezone(timezone.utc)
    return delta.total_seconds() * 1000

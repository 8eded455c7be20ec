"""
ObstacleGameEngine - the jump-over-obstacles mini-game.

States: Idle -> Active -> Idle. A session owns a batch of obstacles and a
TimerRegistry holding every timer it arms (collision checks, deferred
miss penalties, jump, hit pulse, session end). Leaving Active sweeps the
registry, and every callback also checks that its session is still the
current one before touching state, so nothing from a finished session can
leak into the next.

Timing, with the default GameConfig:
- obstacle k spawns at k * 3734 ms and travels for 2700 ms
- its collision check runs 0.4 of the way through (1080 ms after spawn)
- the session ends (count - 1) * 3734 + 2700 + 200 ms after start
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from functools import partial
from typing import Callable

from pond.config import GameConfig
from pond.domain import (
    IDLE_SESSION,
    DomainEvent,
    GameEndedEvent,
    GameEndReason,
    GameSession,
    GameStartedEvent,
    JumpedEvent,
    Obstacle,
    ObstacleOutcome,
    ObstacleResolvedEvent,
    SessionId,
    WidgetId,
    build_obstacle_batch,
)
from pond.logging_config import log_game
from pond.services.mood import MoodEngine
from pond.services.scheduler import TimerHandle, TimerRegistry, TimerScheduler

logger = logging.getLogger(__name__)

GameListener = Callable[[GameSession], None]
EventSink = Callable[[DomainEvent], None]


@dataclass
class _ActiveSession:
    """Mutable state of the running session. Never escapes the engine."""
    session_id: SessionId
    started_at: datetime
    timers: TimerRegistry
    obstacles: list[Obstacle]
    jump_active: bool = False
    jump_started_at: datetime | None = None
    hit_hurt_active: bool = False
    jump_handle: TimerHandle | None = field(default=None, repr=False)
    hit_handle: TimerHandle | None = field(default=None, repr=False)


class ObstacleGameEngine:
    """Runs one obstacle game session at a time and reports outcomes to the mood engine."""

    def __init__(
        self,
        widget_id: WidgetId,
        scheduler: TimerScheduler,
        mood: MoodEngine,
        config: GameConfig | None = None,
        emit: EventSink | None = None,
    ):
        self._widget_id = widget_id
        self._scheduler = scheduler
        self._mood = mood
        self._config = config or GameConfig()
        self._emit = emit or (lambda event: None)
        self._session: _ActiveSession | None = None
        self._session_counter = 0
        self._listeners: list[GameListener] = []

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def is_active(self) -> bool:
        return self._session is not None

    @property
    def config(self) -> GameConfig:
        return self._config

    @property
    def pending_timer_count(self) -> int:
        """Timers still armed by the current session (0 when idle)."""
        return len(self._session.timers) if self._session else 0

    @property
    def snapshot(self) -> GameSession:
        s = self._session
        if s is None:
            return IDLE_SESSION
        return GameSession(
            session_id=s.session_id,
            active=True,
            obstacles=tuple(s.obstacles),
            jump_active=s.jump_active,
            jump_started_at=s.jump_started_at,
            hit_hurt_active=s.hit_hurt_active,
        )

    def on_change(self, listener: GameListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # =========================================================================
    # Triggers
    # =========================================================================

    def start(self) -> bool:
        """
        Start a session. No-op if one is already active.

        Returns:
            True if a new session started
        """
        if self._session is not None:
            logger.debug("Start ignored - session already active")
            return False

        self._session_counter += 1
        session_id = SessionId(self._session_counter)
        cfg = self._config
        session = _ActiveSession(
            session_id=session_id,
            started_at=self._scheduler.now(),
            timers=TimerRegistry(self._scheduler, f"{self._widget_id}:game-{session_id:04d}"),
            obstacles=list(build_obstacle_batch(cfg.obstacle_count, cfg.interval_ms)),
        )
        self._session = session

        for obstacle in session.obstacles:
            session.timers.call_later(
                obstacle.scheduled_offset_ms + cfg.collision_delay_ms,
                partial(self._check_collision, session_id, obstacle.sequence_id),
                f"collision-{obstacle.sequence_id:02d}",
            )
        session.timers.call_later(
            cfg.session_duration_ms,
            partial(self._on_session_timeout, session_id),
            "session-end",
        )

        log_game(
            logger, self._widget_id, session_id, "START",
            f"obstacles={cfg.obstacle_count} | duration={cfg.session_duration_ms}ms",
        )
        self._emit(GameStartedEvent(
            widget_id=self._widget_id,
            timestamp=session.started_at,
            session_id=session_id,
            obstacle_count=cfg.obstacle_count,
        ))
        self._notify()
        return True

    def jump(self) -> bool:
        """
        Jump. Ignored unless a session is active and no jump is in progress.

        Returns:
            True if the jump started
        """
        s = self._session
        if s is None:
            logger.debug("Jump ignored - no active session")
            return False
        if s.jump_active:
            logger.debug("Jump ignored - already jumping")
            return False

        s.jump_active = True
        s.jump_started_at = self._scheduler.now()
        s.jump_handle = s.timers.call_later(
            self._config.jump_duration_ms,
            partial(self._end_jump, s.session_id),
            "jump",
        )
        self._emit(JumpedEvent(
            widget_id=self._widget_id,
            timestamp=s.jump_started_at,
            session_id=s.session_id,
        ))
        self._notify()
        return True

    def exit(self) -> bool:
        """
        Leave the current session.

        Returns:
            True if a session was active
        """
        if self._session is None:
            return False
        self._end(GameEndReason.EXITED)
        return True

    def dispose(self) -> None:
        if self._session is not None:
            self._end(GameEndReason.DISPOSED)
        self._listeners.clear()

    # =========================================================================
    # Timer callbacks
    # =========================================================================

    def _current(self, session_id: SessionId) -> _ActiveSession | None:
        s = self._session
        if s is None or s.session_id != session_id:
            return None
        return s

    def _check_collision(self, session_id: SessionId, sequence_id: int) -> None:
        s = self._current(session_id)
        if s is None:
            logger.debug(f"Stale collision check {sequence_id} for session {session_id}")
            return
        index = sequence_id - 1
        if s.obstacles[index].resolved:
            return

        cfg = self._config
        now = self._scheduler.now()

        if s.jump_active and s.jump_started_at is not None:
            elapsed_ms = (now - s.jump_started_at).total_seconds() * 1000
            fraction = elapsed_ms / cfg.jump_duration_ms
            if cfg.jump_band_low < fraction < cfg.jump_band_high:
                self._resolve(s, index, ObstacleOutcome.CLEARED)
                self._mood.apply_game_outcome(cleared=True)
                self._notify()
                return

            # Jumped, but not over the obstacle: the hit lands when the jump does.
            remaining_ms = max(0.0, cfg.jump_duration_ms - elapsed_ms)
            self._resolve(s, index, ObstacleOutcome.MISSED, penalty_deferred=True)
            s.timers.call_later(
                remaining_ms,
                partial(self._apply_deferred_miss, session_id, sequence_id),
                f"deferred-miss-{sequence_id:02d}",
            )
            self._notify()
            return

        self._resolve(s, index, ObstacleOutcome.MISSED)
        self._apply_miss(s)

    def _apply_deferred_miss(self, session_id: SessionId, sequence_id: int) -> None:
        s = self._current(session_id)
        if s is None:
            logger.debug(f"Deferred miss {sequence_id} dropped - session {session_id} gone")
            return
        self._apply_miss(s)

    def _apply_miss(self, s: _ActiveSession) -> None:
        self._mood.apply_game_outcome(cleared=False)
        # A new hit always restarts the pulse.
        s.timers.cancel(s.hit_handle)
        s.hit_hurt_active = True
        s.hit_handle = s.timers.call_later(
            self._config.hit_pulse_ms,
            partial(self._end_hit_pulse, s.session_id),
            "hit-pulse",
        )
        self._notify()

    def _end_hit_pulse(self, session_id: SessionId) -> None:
        s = self._current(session_id)
        if s is None:
            return
        s.hit_hurt_active = False
        s.hit_handle = None
        self._notify()

    def _end_jump(self, session_id: SessionId) -> None:
        s = self._current(session_id)
        if s is None:
            return
        s.jump_active = False
        s.jump_started_at = None
        s.jump_handle = None
        self._notify()

    def _on_session_timeout(self, session_id: SessionId) -> None:
        if self._current(session_id) is None:
            return
        self._end(GameEndReason.COMPLETED)

    # =========================================================================
    # Internals
    # =========================================================================

    def _resolve(
        self,
        s: _ActiveSession,
        index: int,
        outcome: ObstacleOutcome,
        penalty_deferred: bool = False,
    ) -> None:
        obstacle = s.obstacles[index].resolve(outcome)
        s.obstacles[index] = obstacle
        log_game(
            logger, self._widget_id, s.session_id, "OBSTACLE",
            f"#{obstacle.sequence_id:02d} {outcome.value}" + (" (deferred)" if penalty_deferred else ""),
        )
        self._emit(ObstacleResolvedEvent(
            widget_id=self._widget_id,
            timestamp=self._scheduler.now(),
            session_id=s.session_id,
            sequence_id=obstacle.sequence_id,
            outcome=outcome,
            penalty_deferred=penalty_deferred,
        ))

    def _end(self, reason: GameEndReason) -> None:
        s = self._session
        if s is None:
            return
        self._session = None
        cancelled = s.timers.cancel_all()
        cleared = sum(1 for o in s.obstacles if o.outcome == ObstacleOutcome.CLEARED)
        missed = sum(1 for o in s.obstacles if o.outcome == ObstacleOutcome.MISSED)
        log_game(
            logger, self._widget_id, s.session_id, "END",
            f"{reason.value} | cleared={cleared} | missed={missed} | cancelled_timers={cancelled}",
        )
        self._emit(GameEndedEvent(
            widget_id=self._widget_id,
            timestamp=self._scheduler.now(),
            session_id=s.session_id,
            reason=reason,
            cleared=cleared,
            missed=missed,
        ))
        self._notify()

    def _notify(self) -> None:
        snapshot = self.snapshot
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:
                logger.error(f"Game listener failed: {e}", exc_info=True)

"""
FrogSimulation - the main facade for the frog pond widget.

This is the primary entry point. It:
- Wires clock, mood engine, game engine and visual aggregator together
- Exposes the four user triggers (feed, start_game, jump, exit_game)
- Publishes VisualState and domain events to subscribers
- Tears everything down on dispose() so no timer fires afterwards
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable

from pond.config import PondConfig
from pond.domain import (
    ClockTickedEvent,
    DomainEvent,
    GameSession,
    SkyPhase,
    VisualState,
    WidgetId,
)
from pond.services import (
    Ephemeris,
    MoodEngine,
    ObstacleGameEngine,
    PyEphemEphemeris,
    SimulationClock,
    TimerScheduler,
    VisualStateAggregator,
)

logger = logging.getLogger(__name__)


class FrogSimulation:
    """
    One frog widget.

    Everything runs on the supplied scheduler's single event queue. Pass a
    VirtualScheduler for deterministic runs, an AsyncioScheduler for live
    ones.
    """

    def __init__(
        self,
        widget_id: WidgetId | str,
        scheduler: TimerScheduler,
        ephemeris: Ephemeris | None = None,
        config: PondConfig | None = None,
    ):
        """
        Initialize the simulation.

        Args:
            widget_id: Identifier of this widget instance (used in logs/events)
            scheduler: Event queue all timers are armed on
            ephemeris: Sky source (default: PyEphem at config.location)
            config: Settings (default: built-in defaults)
        """
        self.config = config or PondConfig()
        self.widget_id = WidgetId(widget_id)
        self.scheduler = scheduler
        self.ephemeris = ephemeris or PyEphemEphemeris.from_config(self.config.location)
        logger.info(f"Initializing FrogSimulation {self.widget_id}")

        self._event_callbacks: list[Callable[[DomainEvent], None]] = []
        self._started = False
        self._disposed = False

        self.clock = SimulationClock(scheduler, self.config.clock)
        self.mood = MoodEngine(
            self.widget_id,
            scheduler,
            self.config.location.tzinfo,
            self.config.mood,
            is_game_active=lambda: self.game.is_active,
            emit=self._dispatch_event,
        )
        self.game = ObstacleGameEngine(
            self.widget_id,
            scheduler,
            self.mood,
            self.config.game,
            emit=self._dispatch_event,
        )
        self.visuals = VisualStateAggregator(
            self.ephemeris,
            self.clock.now,
            self.mood.snapshot,
            self.game.snapshot,
            frame_size_px=self.config.frame_size_px,
            tz=self.config.location.tzinfo,
        )

        self._unsubscribers = [
            self.clock.on_tick(self._on_clock_tick),
            self.mood.on_change(self.visuals.update_mood),
            self.game.on_change(self.visuals.update_game),
        ]

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def visual_state(self) -> VisualState:
        """Everything the renderer needs, as of the last change."""
        return self.visuals.state

    @property
    def happiness(self) -> int:
        return self.mood.happiness

    @property
    def sky_phase(self) -> SkyPhase:
        return self.visuals.state.sky_phase

    @property
    def game_session(self) -> GameSession:
        return self.game.snapshot

    @property
    def is_started(self) -> bool:
        return self._started

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def start(self) -> None:
        """Start the clock and the decay loop."""
        if self._started or self._disposed:
            return
        self._started = True
        self.clock.start()
        self.mood.start()
        logger.info(f"FrogSimulation {self.widget_id} started")

    def dispose(self) -> None:
        """Cancel every outstanding timer and drop all subscribers."""
        if self._disposed:
            return
        self._disposed = True
        self.game.dispose()
        cancelled = self.mood.dispose()
        self.clock.stop()
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()
        self.visuals.clear_listeners()
        self._event_callbacks.clear()
        logger.info(f"FrogSimulation {self.widget_id} disposed (mood timers cancelled: {cancelled})")

    # =========================================================================
    # Triggers
    # =========================================================================

    def feed(self) -> bool:
        if self._disposed:
            return False
        return self.mood.feed()

    def start_game(self) -> bool:
        if self._disposed:
            return False
        return self.game.start()

    def jump(self) -> bool:
        if self._disposed:
            return False
        return self.game.jump()

    def exit_game(self) -> bool:
        if self._disposed:
            return False
        return self.game.exit()

    # =========================================================================
    # Subscriptions
    # =========================================================================

    def on_visual_state(self, callback: Callable[[VisualState], None]) -> Callable[[], None]:
        """Register for VisualState changes; returns an unsubscribe function."""
        return self.visuals.on_change(callback)

    def on_event(self, callback: Callable[[DomainEvent], None]) -> Callable[[], None]:
        """Register for domain events; returns an unsubscribe function."""
        self._event_callbacks.append(callback)

        def unsubscribe() -> None:
            if callback in self._event_callbacks:
                self._event_callbacks.remove(callback)

        return unsubscribe

    # =========================================================================
    # Internals
    # =========================================================================

    def _on_clock_tick(self, now: datetime) -> None:
        self._dispatch_event(ClockTickedEvent(widget_id=self.widget_id, timestamp=now))
        self.visuals.update_time(now)

    def _dispatch_event(self, event: DomainEvent) -> None:
        for callback in list(self._event_callbacks):
            try:
                callback(event)
            except Exception as e:
                logger.error(f"Event callback error: {e}", exc_info=True)

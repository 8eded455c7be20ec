"""
VisualStateAggregator - derives the rendering state from clock, mood and game.

Owns no timers. It recomputes on every input change and publishes the new
VisualState only when it differs from the previous one.
"""

from __future__ import annotations

import logging
from datetime import datetime, tzinfo
from typing import Callable

from pond.domain import (
    IDLE_SESSION,
    FROG_FRAME_SIZE_PX,
    GameSession,
    MoodSnapshot,
    SkyReading,
    VisualState,
    derive_visual_state,
)
from pond.services.ephemeris import Ephemeris

logger = logging.getLogger(__name__)

VisualListener = Callable[[VisualState], None]


class VisualStateAggregator:
    """Keeps the latest inputs and the VisualState derived from them."""

    def __init__(
        self,
        ephemeris: Ephemeris,
        now: datetime,
        mood: MoodSnapshot,
        game: GameSession = IDLE_SESSION,
        frame_size_px: int = FROG_FRAME_SIZE_PX,
        tz: tzinfo | None = None,
    ):
        self._ephemeris = ephemeris
        self._tz = tz
        self._frame_size_px = frame_size_px
        self._now = now
        self._reading = ephemeris.read(now)
        self._mood = mood
        self._game = game
        self._listeners: list[VisualListener] = []
        self._state = self._derive()

    @property
    def state(self) -> VisualState:
        return self._state

    @property
    def reading(self) -> SkyReading:
        return self._reading

    def on_change(self, listener: VisualListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # --- Inputs ---

    def update_time(self, now: datetime) -> None:
        """A clock tick: re-read the sky, recompute everything."""
        self._now = now
        self._reading = self._ephemeris.read(now)
        self._refresh()

    def update_mood(self, mood: MoodSnapshot) -> None:
        self._mood = mood
        self._refresh()

    def update_game(self, game: GameSession) -> None:
        self._game = game
        self._refresh()

    def clear_listeners(self) -> None:
        self._listeners.clear()

    # --- Internals ---

    def _derive(self) -> VisualState:
        return derive_visual_state(
            self._now,
            self._reading,
            self._mood,
            self._game,
            frame_size_px=self._frame_size_px,
            tz=self._tz,
        )

    def _refresh(self) -> None:
        state = self._derive()
        if state == self._state:
            return
        previous = self._state
        self._state = state
        if previous.sky_phase != state.sky_phase:
            logger.info(f"Sky phase {previous.sky_phase.value} -> {state.sky_phase.value}")
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception as e:
                logger.error(f"Visual state listener failed: {e}", exc_info=True)

"""Tests for pond.simulation module (FrogSimulation facade)."""

import pytest

from pond.config import PondConfig
from pond.domain import (
    ClockTickedEvent,
    FedEvent,
    FrogPose,
    GameEndedEvent,
    GameEndReason,
    GameStartedEvent,
    HappinessChangedEvent,
    SkyPhase,
)
from pond.services import VirtualScheduler
from pond.simulation import FrogSimulation


MINUTE_MS = 60_000


class TestFrogSimulationInit:
    """Tests for FrogSimulation initialization."""

    def test_initial_visual_state(self, simulation, base_datetime):
        state = simulation.visual_state
        assert state.at == base_datetime
        assert state.sky_phase == SkyPhase.DAY
        assert state.happiness == 60
        assert state.pose == FrogPose.IDLE
        assert not simulation.is_started

    def test_nothing_armed_before_start(self, simulation, scheduler):
        assert scheduler.pending_count == 0

    def test_accepts_plain_string_widget_id(self, scheduler, fixed_ephemeris):
        sim = FrogSimulation("pond-7", scheduler, ephemeris=fixed_ephemeris)
        assert sim.widget_id == "pond-7"
        assert sim.happiness == 100
        sim.dispose()


class TestFrogSimulationLifecycle:
    """Tests for start/dispose."""

    def test_start_arms_clock_and_decay(self, simulation, scheduler):
        events = []
        simulation.on_event(events.append)
        simulation.start()

        assert simulation.is_started
        assert scheduler.pending_count == 2
        assert isinstance(events[0], ClockTickedEvent)

    def test_start_twice_is_noop(self, simulation, scheduler):
        simulation.start()
        simulation.start()
        assert scheduler.pending_count == 2

    def test_dispose_cancels_everything(self, simulation, scheduler):
        simulation.start()
        simulation.feed()
        scheduler.advance(2000)
        simulation.start_game()
        simulation.jump()
        assert scheduler.pending_count > 20

        simulation.dispose()
        assert simulation.is_disposed
        assert scheduler.pending_count == 0
        assert not simulation.game_session.active

    def test_nothing_fires_after_dispose(self, simulation, scheduler):
        states, events = [], []
        simulation.on_visual_state(states.append)
        simulation.on_event(events.append)
        simulation.start()
        simulation.start_game()
        simulation.dispose()
        states.clear()
        events.clear()

        scheduler.advance(24 * 60 * MINUTE_MS)
        assert states == []
        assert events == []
        assert simulation.happiness == 60

    def test_triggers_refused_after_dispose(self, simulation):
        simulation.dispose()
        assert not simulation.feed()
        assert not simulation.start_game()
        assert not simulation.jump()
        assert not simulation.exit_game()

    def test_dispose_twice(self, simulation):
        simulation.dispose()
        simulation.dispose()
        assert simulation.is_disposed


class TestFrogSimulationClock:
    """Tests for clock-driven updates."""

    def test_tick_updates_visual_state(self, simulation, scheduler, berlin_at):
        states = []
        simulation.on_visual_state(states.append)
        simulation.start()

        scheduler.advance(MINUTE_MS)
        assert states[-1].at == berlin_at(12, 1)

    def test_sky_phase_follows_time(self, simulation, scheduler, berlin_at):
        simulation.start()
        scheduler.advance_to(berlin_at(19, 10))
        assert simulation.sky_phase == SkyPhase.DUSK

        scheduler.advance_to(berlin_at(21, 0))
        assert simulation.sky_phase == SkyPhase.NIGHT

    def test_decay_over_an_afternoon(self, simulation, scheduler, berlin_at):
        simulation.start()
        scheduler.advance_to(berlin_at(18, 0))
        assert simulation.happiness == 30
        assert simulation.visual_state.hurt
        assert simulation.visual_state.pose == FrogPose.HURT


class TestFrogSimulationTriggers:
    """Tests for feed/game triggers through the facade."""

    def test_feed_shows_feeding_pose(self, simulation, scheduler):
        events = []
        simulation.on_event(events.append)
        simulation.start()

        assert simulation.feed()
        assert simulation.visual_state.pose == FrogPose.FEEDING
        assert simulation.visual_state.happiness == 70
        assert any(isinstance(e, FedEvent) for e in events)

        scheduler.advance(1000)
        assert simulation.visual_state.pose == FrogPose.IDLE

    def test_feed_ignored_during_game(self, simulation):
        simulation.start()
        simulation.start_game()
        assert not simulation.feed()
        assert simulation.happiness == 60

    def test_game_visuals(self, simulation, scheduler):
        simulation.start()
        simulation.start_game()
        state = simulation.visual_state
        assert state.game_active
        assert len(state.obstacles) == 20
        assert "game-mode" in state.css_classes

        simulation.jump()
        assert simulation.visual_state.pose == FrogPose.JUMPING

    def test_game_events_in_order(self, simulation, scheduler):
        events = []
        simulation.on_event(events.append)
        simulation.start()
        simulation.start_game()
        scheduler.advance(1080)
        simulation.exit_game()

        kinds = [type(e) for e in events if not isinstance(e, ClockTickedEvent)]
        assert kinds[0] is GameStartedEvent
        assert HappinessChangedEvent in kinds
        assert kinds[-1] is GameEndedEvent
        assert events[-1].reason == GameEndReason.EXITED

    def test_game_and_decay_share_one_clamp(self, scheduler, fixed_ephemeris):
        """Decay and game misses landing together never push happiness below 0."""
        config = PondConfig(mood={"initial_happiness": 12, "decay_period_minutes": 1})
        sim = FrogSimulation("frog", scheduler, ephemeris=fixed_ephemeris, config=config)
        sim.start()
        sim.start_game()
        scheduler.advance(2 * MINUTE_MS)
        assert sim.happiness == 0
        sim.dispose()


class TestFrogSimulationSubscriptions:
    """Tests for on_event / on_visual_state."""

    def test_unsubscribe(self, simulation, scheduler):
        events = []
        unsubscribe = simulation.on_event(events.append)
        unsubscribe()
        simulation.start()
        assert events == []

    def test_failing_event_callback_is_isolated(self, simulation):
        seen = []

        def broken(event):
            raise RuntimeError("nope")

        simulation.on_event(broken)
        simulation.on_event(seen.append)
        simulation.start()
        assert len(seen) == 1

    @pytest.mark.parametrize("widget", ["a", "b"])
    def test_independent_widgets(self, base_datetime, fixed_ephemeris, widget):
        scheduler = VirtualScheduler(base_datetime)
        first = FrogSimulation(f"{widget}-1", scheduler, ephemeris=fixed_ephemeris)
        second = FrogSimulation(f"{widget}-2", scheduler, ephemeris=fixed_ephemeris)
        first.start()
        second.start()
        first.feed()
        first.dispose()

        assert second.happiness == 100
        assert scheduler.pending_count == 2
        second.dispose()
        assert scheduler.pending_count == 0

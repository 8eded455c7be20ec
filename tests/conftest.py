"""Shared pytest fixtures for pond tests."""

import pytest
from datetime import datetime
from zoneinfo import ZoneInfo

from pond.config import GameConfig, MoodConfig, PondConfig
from pond.domain import (
    GameSession,
    MoodSnapshot,
    SkyReading,
    SunTimes,
    WidgetId,
)
from pond.services import (
    FixedEphemeris,
    MoodEngine,
    ObstacleGameEngine,
    VirtualScheduler,
)
from pond.simulation import FrogSimulation


BERLIN = ZoneInfo("Europe/Berlin")


def at(hour: int, minute: int = 0, day: int = 15, month: int = 6) -> datetime:
    """A Berlin wall-clock instant in 2026."""
    return datetime(2026, month, day, hour, minute, tzinfo=BERLIN)


# =============================================================================
# Basic Types
# =============================================================================

@pytest.fixture
def widget_id() -> WidgetId:
    """A sample widget id."""
    return WidgetId("frog-test")


@pytest.fixture
def berlin() -> ZoneInfo:
    return BERLIN


@pytest.fixture
def berlin_at():
    """Factory for Berlin wall-clock instants: berlin_at(hour, minute, day=15, month=6)."""
    return at


@pytest.fixture
def base_datetime() -> datetime:
    """Midday on a summer date in Berlin."""
    return at(12, 0)


# =============================================================================
# Sky Fixtures
# =============================================================================

@pytest.fixture
def sun_times() -> SunTimes:
    """Round-number solar boundaries for 2026-06-15."""
    return SunTimes(
        nautical_dawn=at(4, 0),
        sunrise=at(6, 0),
        sunrise_end=at(6, 15),
        golden_hour_end=at(7, 0),
        golden_hour=at(18, 0),
        sunset_start=at(18, 30),
        sunset=at(18, 45),
        nautical_dusk=at(20, 0),
    )


@pytest.fixture
def sky_reading(sun_times: SunTimes, base_datetime: datetime) -> SkyReading:
    """Sun high in the south, moon below the horizon at first quarter."""
    return SkyReading(
        at=base_datetime,
        times=sun_times,
        sun_azimuth=0.0,
        sun_altitude=1.0,
        moon_azimuth=-1.2,
        moon_altitude=-0.3,
        moon_phase=0.25,
    )


@pytest.fixture
def fixed_ephemeris(sky_reading: SkyReading) -> FixedEphemeris:
    return FixedEphemeris(sky_reading)


# =============================================================================
# Config Fixtures
# =============================================================================

@pytest.fixture
def mood_config() -> MoodConfig:
    """Mood settings starting mid-range so both deltas are visible."""
    return MoodConfig(initial_happiness=60)


@pytest.fixture
def game_config() -> GameConfig:
    """Default game timing: checks at k*3734 + 1080 ms, end at 73846 ms."""
    return GameConfig()


@pytest.fixture
def pond_config(mood_config: MoodConfig, game_config: GameConfig) -> PondConfig:
    return PondConfig(widget_id="frog-test", mood=mood_config, game=game_config)


# =============================================================================
# Service Fixtures
# =============================================================================

@pytest.fixture
def scheduler(base_datetime: datetime) -> VirtualScheduler:
    """A fresh VirtualScheduler at midday."""
    return VirtualScheduler(base_datetime)


@pytest.fixture
def events() -> list:
    """Collects emitted domain events."""
    return []


@pytest.fixture
def mood_engine(
    widget_id: WidgetId,
    scheduler: VirtualScheduler,
    mood_config: MoodConfig,
    events: list,
) -> MoodEngine:
    return MoodEngine(widget_id, scheduler, BERLIN, mood_config, emit=events.append)


@pytest.fixture
def game_engine(
    widget_id: WidgetId,
    scheduler: VirtualScheduler,
    mood_engine: MoodEngine,
    game_config: GameConfig,
    events: list,
) -> ObstacleGameEngine:
    return ObstacleGameEngine(widget_id, scheduler, mood_engine, game_config, emit=events.append)


@pytest.fixture
def simulation(
    scheduler: VirtualScheduler,
    fixed_ephemeris: FixedEphemeris,
    pond_config: PondConfig,
) -> FrogSimulation:
    """A simulation on virtual time with a fixed sky."""
    sim = FrogSimulation("frog-test", scheduler, ephemeris=fixed_ephemeris, config=pond_config)
    yield sim
    sim.dispose()


@pytest.fixture
def idle_mood() -> MoodSnapshot:
    return MoodSnapshot(happiness=80)


@pytest.fixture
def idle_game() -> GameSession:
    return GameSession()

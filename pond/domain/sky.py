"""Sky phase resolution and celestial projections.

Everything in this module is pure: time always comes in as an argument.
Azimuths use the south-based convention (0 = south, east = -pi/2,
west = +pi/2); altitudes are radians above the horizon.
"""

import math
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict

from .types import clamp

MIN_LEFT_PCT = 4.0
MAX_LEFT_PCT = 96.0
HORIZON_TOP_PCT = 53.0
ZENITH_TOP_PCT = 9.0
MOON_PHASE_FRAME_COUNT = 8
MOON_PHASE_FRAME_COLUMNS = 4

_FRAME_X_POSITIONS = ("0%", "33.3333%", "66.6667%", "100%")


class SkyPhase(Enum):
    NIGHT = "night"
    DAWN = "dawn"
    SUNRISE = "sunrise"
    GOLDEN_HOUR = "goldenHour"
    DAY = "day"
    SUNSET = "sunset"
    DUSK = "dusk"


class SunTimes(BaseModel):
    """Solar boundary instants for one local date, in chronological order."""
    model_config = ConfigDict(frozen=True)

    nautical_dawn: datetime
    sunrise: datetime
    sunrise_end: datetime
    golden_hour_end: datetime
    golden_hour: datetime  # evening golden hour start
    sunset_start: datetime
    sunset: datetime
    nautical_dusk: datetime

    def boundaries(self) -> tuple[datetime, ...]:
        return (
            self.nautical_dawn,
            self.sunrise,
            self.sunrise_end,
            self.golden_hour_end,
            self.golden_hour,
            self.sunset_start,
            self.sunset,
            self.nautical_dusk,
        )


class CelestialPosition(BaseModel):
    """Projection of a body onto the widget panel, in percent."""
    model_config = ConfigDict(frozen=True)

    left_pct: float
    top_pct: float
    is_visible: bool


class SkyReading(BaseModel):
    """One ephemeris evaluation for a given instant and location."""
    model_config = ConfigDict(frozen=True)

    at: datetime
    times: SunTimes
    sun_azimuth: float
    sun_altitude: float
    moon_azimuth: float
    moon_altitude: float
    moon_phase: float  # 0 = new, 0.5 = full


# Phase that begins at each boundary, in SunTimes.boundaries() order.
_PHASE_FROM_BOUNDARY = (
    SkyPhase.DAWN,
    SkyPhase.SUNRISE,
    SkyPhase.GOLDEN_HOUR,
    SkyPhase.DAY,
    SkyPhase.GOLDEN_HOUR,
    SkyPhase.SUNSET,
    SkyPhase.DUSK,
    SkyPhase.NIGHT,
)


def resolve_sky_phase(now: datetime, times: SunTimes) -> SkyPhase:
    """Map an instant to exactly one sky phase.

    Intervals are half-open [b_i, b_i+1). Anything before nautical dawn or
    at/after nautical dusk is night.
    """
    if now < times.nautical_dawn or now >= times.nautical_dusk:
        return SkyPhase.NIGHT

    phase = SkyPhase.NIGHT
    for boundary, starts in zip(times.boundaries(), _PHASE_FROM_BOUNDARY):
        if now < boundary:
            break
        phase = starts
    return phase


def azimuth_to_left_percent(azimuth_rad: float) -> float:
    raw_percent = (0.5 + 0.5 * math.sin(azimuth_rad)) * 100
    return clamp(raw_percent, MIN_LEFT_PCT, MAX_LEFT_PCT)


def altitude_to_top_percent(altitude_rad: float) -> float:
    normalized = clamp(altitude_rad / (math.pi / 2), 0.0, 1.0)
    raw_top = HORIZON_TOP_PCT - normalized * (HORIZON_TOP_PCT - ZENITH_TOP_PCT)
    return clamp(raw_top, ZENITH_TOP_PCT, HORIZON_TOP_PCT)


def moon_phase_to_frame_index(phase: float) -> int:
    normalized = _normalize_unit_interval(phase)
    return math.floor(normalized * MOON_PHASE_FRAME_COUNT) % MOON_PHASE_FRAME_COUNT


def frame_index_to_background_position(index: int) -> str:
    """CSS background-position of a frame in the 4x2 moon sprite."""
    normalized = int(index) % MOON_PHASE_FRAME_COUNT
    column = normalized % MOON_PHASE_FRAME_COLUMNS
    row = normalized // MOON_PHASE_FRAME_COLUMNS
    y_position = "0%" if row == 0 else "100%"
    return f"{_FRAME_X_POSITIONS[column]} {y_position}"


def to_celestial_position(azimuth_rad: float, altitude_rad: float) -> CelestialPosition:
    return CelestialPosition(
        left_pct=azimuth_to_left_percent(azimuth_rad),
        top_pct=altitude_to_top_percent(altitude_rad),
        is_visible=altitude_rad > 0,
    )


def _normalize_unit_interval(value: float) -> float:
    # Python's % already returns a result with the sign of the divisor.
    normalized = value % 1.0
    # -1e-20 % 1.0 rounds to 1.0
    return 0.0 if normalized >= 1.0 else normalized

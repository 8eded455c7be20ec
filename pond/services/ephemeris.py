"""
Ephemeris adapters: sun/moon positions and twilight boundaries.

PyEphemEphemeris computes everything with PyEphem for a fixed location.
Boundary instants are computed once per local calendar date and cached.
"""

from __future__ import annotations

import logging
import math
from datetime import date, datetime, time, timedelta, timezone
from typing import Protocol, runtime_checkable
from zoneinfo import ZoneInfo

import ephem

from pond.config import LocationConfig
from pond.domain import SkyReading, SunTimes

logger = logging.getLogger(__name__)

# Sun-centre altitudes in degrees, refraction disabled.
NAUTICAL_HORIZON = -12.0
SUNRISE_HORIZON = -0.833
SUNRISE_END_HORIZON = -0.3
GOLDEN_HOUR_HORIZON = 6.0


@runtime_checkable
class Ephemeris(Protocol):
    """Computes the sky for an instant at a fixed location."""

    def read(self, now: datetime) -> SkyReading:
        ...


class FixedEphemeris:
    """Returns the same sky for every instant (tests, offline use)."""

    def __init__(self, reading: SkyReading):
        self._reading = reading

    def read(self, now: datetime) -> SkyReading:
        return self._reading.model_copy(update={"at": now})


class PyEphemEphemeris:
    """PyEphem-backed ephemeris for one geo-coordinate."""

    def __init__(self, latitude: float, longitude: float, tz: ZoneInfo):
        self._latitude = latitude
        self._longitude = longitude
        self._tz = tz
        self._times_cache: dict[date, SunTimes] = {}

    @classmethod
    def from_config(cls, location: LocationConfig) -> "PyEphemEphemeris":
        return cls(location.latitude, location.longitude, location.tzinfo)

    def read(self, now: datetime) -> SkyReading:
        local_now = now.astimezone(self._tz)
        observer = self._observer(local_now, horizon_deg=0.0)

        sun = ephem.Sun()
        sun.compute(observer)
        moon = ephem.Moon()
        moon.compute(observer)

        return SkyReading(
            at=now,
            times=self.sun_times(local_now.date()),
            sun_azimuth=_to_south_based(float(sun.az)),
            sun_altitude=float(sun.alt),
            moon_azimuth=_to_south_based(float(moon.az)),
            moon_altitude=float(moon.alt),
            moon_phase=_lunation_fraction(observer.date),
        )

    def sun_times(self, local_date: date) -> SunTimes:
        """Boundary instants for a local calendar date."""
        cached = self._times_cache.get(local_date)
        if cached is not None:
            return cached

        day_start = datetime.combine(local_date, time(0, 0), tzinfo=self._tz)
        day_end = day_start + timedelta(days=1)
        transit = self._solar_transit(day_start)

        nautical_dawn, nautical_dusk = self._crossings(transit, NAUTICAL_HORIZON, day_start, day_end)
        sunrise, sunset = self._crossings(transit, SUNRISE_HORIZON, day_start, day_end)
        sunrise_end, sunset_start = self._crossings(transit, SUNRISE_END_HORIZON, day_start, day_end)
        golden_hour_end, golden_hour = self._crossings(transit, GOLDEN_HOUR_HORIZON, day_start, day_end)

        times = SunTimes(
            nautical_dawn=nautical_dawn,
            sunrise=sunrise,
            sunrise_end=sunrise_end,
            golden_hour_end=golden_hour_end,
            golden_hour=golden_hour,
            sunset_start=sunset_start,
            sunset=sunset,
            nautical_dusk=nautical_dusk,
        )
        # One date is enough; the clock only moves forward.
        self._times_cache = {local_date: times}
        logger.debug(f"Computed sun times for {local_date}: {times}")
        return times

    def _observer(self, moment: datetime, horizon_deg: float) -> ephem.Observer:
        observer = ephem.Observer()
        observer.lat = str(self._latitude)
        observer.lon = str(self._longitude)
        observer.elevation = 0
        observer.pressure = 0  # no refraction; horizons above already include it
        observer.horizon = str(horizon_deg)
        observer.date = ephem.Date(_to_utc_naive(moment))
        return observer

    def _solar_transit(self, day_start: datetime) -> datetime:
        observer = self._observer(day_start, horizon_deg=0.0)
        transit = observer.next_transit(ephem.Sun())
        return self._to_local(transit)

    def _crossings(
        self,
        transit: datetime,
        horizon_deg: float,
        day_start: datetime,
        day_end: datetime,
    ) -> tuple[datetime, datetime]:
        """Morning and evening crossings of horizon_deg around solar noon.

        Sun never reaches the horizon: both collapse onto the transit.
        Sun never drops below it: they span the whole local day.
        """
        observer = self._observer(transit, horizon_deg)
        sun = ephem.Sun()
        try:
            rising = self._to_local(observer.previous_rising(sun, use_center=True))
            setting = self._to_local(observer.next_setting(sun, use_center=True))
        except ephem.NeverUpError:
            return transit, transit
        except ephem.AlwaysUpError:
            return day_start, day_end
        return max(rising, day_start), min(setting, day_end)

    def _to_local(self, value: ephem.Date) -> datetime:
        return value.datetime().replace(tzinfo=timezone.utc).astimezone(self._tz)


def _to_utc_naive(moment: datetime) -> datetime:
    return moment.astimezone(timezone.utc).replace(tzinfo=None)


def _to_south_based(azimuth_north_rad: float) -> float:
    """PyEphem azimuth (north, clockwise) -> radians from south, west positive."""
    shifted = azimuth_north_rad - math.pi
    return math.atan2(math.sin(shifted), math.cos(shifted))


def _lunation_fraction(when: ephem.Date) -> float:
    """Position within the current lunation: 0 new, 0.5 full."""
    previous_new = ephem.previous_new_moon(when)
    next_new = ephem.next_new_moon(when)
    span = float(next_new) - float(previous_new)
    if span <= 0:
        return 0.0
    return (float(when) - float(previous_new)) / span

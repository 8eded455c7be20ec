"""Tests for pond.services.ephemeris module.

These run real PyEphem computations; tolerances are loose enough to stay
stable across library releases.
"""

import math
import pytest
from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import ephem

from pond.config import LocationConfig
from pond.domain import SkyPhase, resolve_sky_phase
from pond.services import Ephemeris, FixedEphemeris, PyEphemEphemeris


TROMSO = ZoneInfo("Europe/Oslo")


@pytest.fixture
def berlin_sky(berlin) -> PyEphemEphemeris:
    return PyEphemEphemeris(52.52, 13.405, berlin)


@pytest.fixture
def tromso_sky() -> PyEphemEphemeris:
    return PyEphemEphemeris(69.65, 18.96, TROMSO)


class TestFixedEphemeris:
    """Tests for FixedEphemeris."""

    def test_restamps_reading(self, fixed_ephemeris, sky_reading, berlin_at):
        reading = fixed_ephemeris.read(berlin_at(15, 0))
        assert reading.at == berlin_at(15, 0)
        assert reading.times == sky_reading.times
        assert reading.moon_phase == sky_reading.moon_phase

    def test_satisfies_protocol(self, fixed_ephemeris):
        assert isinstance(fixed_ephemeris, Ephemeris)


class TestBerlinSunTimes:
    """Boundary instants for Berlin."""

    def test_midsummer(self, berlin_sky, berlin):
        times = berlin_sky.sun_times(date(2026, 6, 21))
        sunrise = times.sunrise.astimezone(berlin)
        sunset = times.sunset.astimezone(berlin)

        assert datetime(2026, 6, 21, 4, 30, tzinfo=berlin) < sunrise < datetime(2026, 6, 21, 5, 0, tzinfo=berlin)
        assert datetime(2026, 6, 21, 21, 20, tzinfo=berlin) < sunset < datetime(2026, 6, 21, 21, 45, tzinfo=berlin)

    @pytest.mark.parametrize("day", [date(2026, 3, 20), date(2026, 6, 21), date(2026, 12, 21)])
    def test_boundaries_are_ordered(self, berlin_sky, day):
        boundaries = berlin_sky.sun_times(day).boundaries()
        assert list(boundaries) == sorted(boundaries)

    def test_cached_per_date(self, berlin_sky):
        first = berlin_sky.sun_times(date(2026, 6, 21))
        assert berlin_sky.sun_times(date(2026, 6, 21)) is first

    def test_from_config(self):
        sky = PyEphemEphemeris.from_config(LocationConfig())
        times = sky.sun_times(date(2026, 6, 21))
        assert times.sunrise.date() == date(2026, 6, 21)


class TestBerlinReadings:
    """Sun and moon readings for Berlin."""

    def test_winter_midday_is_day(self, berlin_sky, berlin):
        now = datetime(2026, 12, 21, 12, 0, tzinfo=berlin)
        reading = berlin_sky.read(now)

        assert resolve_sky_phase(now, reading.times) == SkyPhase.DAY
        assert reading.sun_altitude > 0
        assert abs(reading.sun_azimuth) < 0.2

    def test_winter_small_hours_are_night(self, berlin_sky, berlin):
        now = datetime(2026, 12, 21, 2, 0, tzinfo=berlin)
        reading = berlin_sky.read(now)
        assert resolve_sky_phase(now, reading.times) == SkyPhase.NIGHT
        assert reading.sun_altitude < 0

    def test_morning_sun_is_east(self, berlin_sky, berlin):
        reading = berlin_sky.read(datetime(2026, 6, 21, 7, 0, tzinfo=berlin))
        assert -math.pi < reading.sun_azimuth < -math.pi / 4

    def test_moon_phase_just_after_new_moon(self, berlin_sky):
        new_moon = ephem.next_new_moon("2026/6/1").datetime().replace(tzinfo=timezone.utc)
        reading = berlin_sky.read(new_moon + timedelta(hours=1))
        assert 0 <= reading.moon_phase < 0.01

    def test_moon_phase_near_full_moon(self, berlin_sky):
        full_moon = ephem.next_full_moon("2026/6/1").datetime().replace(tzinfo=timezone.utc)
        reading = berlin_sky.read(full_moon)
        assert 0.45 < reading.moon_phase < 0.55

    def test_reading_keeps_caller_instant(self, berlin_sky, berlin):
        now = datetime(2026, 6, 21, 12, 0, tzinfo=berlin)
        assert berlin_sky.read(now).at == now


class TestCircumpolar:
    """Tromso: midnight sun and polar night."""

    def test_midnight_sun_has_no_night(self, tromso_sky):
        for hour in (0, 6, 12, 18, 23):
            now = datetime(2026, 6, 21, hour, 0, tzinfo=TROMSO)
            phase = resolve_sky_phase(now, tromso_sky.read(now).times)
            assert phase != SkyPhase.NIGHT

    def test_polar_night_never_reaches_day(self, tromso_sky):
        morning = datetime(2026, 12, 21, 11, 0, tzinfo=TROMSO)
        afternoon = datetime(2026, 12, 21, 13, 0, tzinfo=TROMSO)

        assert resolve_sky_phase(morning, tromso_sky.read(morning).times) == SkyPhase.DAWN
        assert resolve_sky_phase(afternoon, tromso_sky.read(afternoon).times) == SkyPhase.DUSK

        times = tromso_sky.sun_times(date(2026, 12, 21))
        assert times.sunrise == times.sunset
        assert list(times.boundaries()) == sorted(times.boundaries())

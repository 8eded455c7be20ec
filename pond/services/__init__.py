"""Stateful services: scheduling, ephemeris, clock, mood, game, visuals."""

from .scheduler import (
    AsyncioScheduler,
    ScheduledTimer,
    TimerHandle,
    TimerRegistry,
    TimerScheduler,
    VirtualScheduler,
)
from .ephemeris import Ephemeris, FixedEphemeris, PyEphemEphemeris
from .clock import SimulationClock, delay_until_next_boundary
from .mood import MoodEngine
from .game import ObstacleGameEngine
from .visuals import VisualStateAggregator

__all__ = [
    "AsyncioScheduler",
    "ScheduledTimer",
    "TimerHandle",
    "TimerRegistry",
    "TimerScheduler",
    "VirtualScheduler",
    "Ephemeris",
    "FixedEphemeris",
    "PyEphemEphemeris",
    "SimulationClock",
    "delay_until_next_boundary",
    "MoodEngine",
    "ObstacleGameEngine",
    "VisualStateAggregator",
]

"""
Frog pond - ambient virtual-pet simulation for a dashboard widget.

- Sky phase, sun/moon positions and moon sprite frame from an ephemeris
- Happiness with quiet-hours-aware decay and feeding
- Obstacle mini-game with timed jumps

Main entry points:
- FrogSimulation: one widget, driven by any TimerScheduler
- SimulationRunner: runs a FrogSimulation on its own asyncio loop

Example usage:
    from datetime import datetime
    from zoneinfo import ZoneInfo
    from pond import FrogSimulation, VirtualScheduler

    scheduler = VirtualScheduler(datetime(2026, 6, 15, 12, tzinfo=ZoneInfo("Europe/Berlin")))
    sim = FrogSimulation("frog-1", scheduler)
    sim.start()
    sim.feed()
    scheduler.advance(60_000)
    print(sim.visual_state.sky_phase)
    sim.dispose()
"""

from .config import PondConfig, load_config
from .errors import ConfigError, PondError, SchedulerError
from .logging_config import setup_logging
from .runner import SimulationRunner
from .services import AsyncioScheduler, VirtualScheduler
from .simulation import FrogSimulation

__all__ = [
    "FrogSimulation",
    "SimulationRunner",
    "PondConfig",
    "load_config",
    "ConfigError",
    "PondError",
    "SchedulerError",
    "setup_logging",
    "AsyncioScheduler",
    "VirtualScheduler",
]

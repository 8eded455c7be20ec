#!/usr/bin/env python3
"""
Frog pond - ambient virtual-pet simulation.

Run this to watch the frog live, print its current status, or fast-forward
a day in virtual time.
"""

import argparse
import logging
import queue
import sys
import threading
import time
from datetime import datetime, timedelta
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

from pond.config import load_config
from pond.domain import GameEndedEvent, HappinessChangedEvent, VisualState
from pond.errors import ConfigError
from pond.logging_config import setup_logging
from pond.runner import SimulationRunner
from pond.services import VirtualScheduler
from pond.simulation import FrogSimulation

COMMANDS = {
    "f": "feed",
    "g": "start_game",
    "j": "jump",
    "x": "exit_game",
}


def describe(state: VisualState) -> str:
    moon = "up" if state.moon.is_visible else "down"
    sun = "up" if state.sun.is_visible else "down"
    flags = " ".join(c for c in state.css_classes if c.startswith(("is-", "game-")))
    return (
        f"{state.at:%Y-%m-%d %H:%M} | {state.sky_phase.value:<10} | "
        f"sun {sun} ({state.sun.left_pct:.0f}%, {state.sun.top_pct:.0f}%) | "
        f"moon {moon} frame {state.moon_frame} | "
        f"happiness {state.happiness:3d} {flags}"
    ).rstrip()


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Frog pond - ambient virtual-pet simulation"
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to YAML config (default: config/pond.yaml)",
    )
    parser.add_argument(
        "--log-dir",
        type=Path,
        default=Path("logs"),
        help="Directory for debug.log (default: ./logs)",
    )
    parser.add_argument(
        "--status",
        action="store_true",
        help="Print the current visual state and exit",
    )
    parser.add_argument(
        "--simulate",
        type=float,
        metavar="HOURS",
        help="Fast-forward HOURS of virtual time from now, printing every phase change",
    )
    parser.add_argument(
        "--run",
        type=float,
        metavar="SECONDS",
        help="Run live for SECONDS, reading f/g/j/x commands from stdin",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    args = parser.parse_args(argv)
    if args.simulate is not None and args.simulate < 0:
        parser.error("--simulate HOURS must not be negative")

    console_level = logging.DEBUG if args.debug else logging.WARNING
    log_path = setup_logging(args.log_dir, console_level=console_level)
    print(f"Logging to: {log_path}")

    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(2)

    tz = config.location.tzinfo

    # Status mode
    if args.status:
        scheduler = VirtualScheduler(datetime.now(tz))
        sim = FrogSimulation(config.widget_id, scheduler, config=config)
        sim.start()
        state = sim.visual_state
        print("\nFrog Pond Status")
        print("================")
        print(f"Location: {config.location.latitude}, {config.location.longitude} ({config.location.timezone})")
        print(f"Season: {state.season.value}")
        print(describe(state))
        print(f"Moon sprite: {state.moon_background_position}")
        print(f"Sky gradient: {state.sky_gradient.top} -> {state.sky_gradient.bottom}")
        sim.dispose()
        return

    # Fast-forward mode (virtual time)
    if args.simulate is not None:
        scheduler = VirtualScheduler(datetime.now(tz))
        sim = FrogSimulation(config.widget_id, scheduler, config=config)
        last_phase = [None]

        def print_phase_change(state: VisualState) -> None:
            if state.sky_phase != last_phase[0]:
                last_phase[0] = state.sky_phase
                print(describe(state))

        def print_mood(event) -> None:
            if isinstance(event, HappinessChangedEvent):
                print(f"{event.timestamp:%Y-%m-%d %H:%M} | happiness {event.old_happiness} -> {event.new_happiness} ({event.reason})")

        sim.on_visual_state(print_phase_change)
        sim.on_event(print_mood)
        sim.start()
        print_phase_change(sim.visual_state)
        print(f"\nSimulating {args.simulate} hours...")
        print("-" * 40)
        scheduler.advance(timedelta(hours=args.simulate).total_seconds() * 1000)
        print("-" * 40)
        print(f"Done. Final happiness: {sim.happiness}")
        sim.dispose()
        return

    # Live mode
    duration = args.run if args.run is not None else 60.0
    runner = SimulationRunner(config)
    runner.on_visual_state(lambda state: print(describe(state)))

    def print_game_end(event) -> None:
        if isinstance(event, GameEndedEvent):
            print(f"Game over ({event.reason.value}): cleared {event.cleared}, missed {event.missed}")

    runner.on_event(print_game_end)
    runner.start()

    lines: queue.Queue[str] = queue.Queue()

    def read_stdin() -> None:
        for line in sys.stdin:
            lines.put(line)

    threading.Thread(target=read_stdin, daemon=True, name="stdin-reader").start()

    print(f"\nRunning live for {duration:.0f}s. Commands: f=feed g=game j=jump x=exit q=quit")
    deadline = time.monotonic() + duration
    try:
        while (remaining := deadline - time.monotonic()) > 0:
            try:
                line = lines.get(timeout=min(1.0, remaining))
            except queue.Empty:
                continue
            key = line.strip().lower()[:1]
            if key == "q":
                break
            action = COMMANDS.get(key)
            if action:
                getattr(runner, action)()
    except KeyboardInterrupt:
        pass
    finally:
        runner.shutdown()
        print("Done.")


if __name__ == "__main__":
    main()

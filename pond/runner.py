"""
SimulationRunner - Runs a FrogSimulation in a dedicated thread with a persistent event loop.

The simulation itself is single-threaded: every timer, trigger and
callback runs on the runner's loop. Other threads (a UI, a CLI) talk to it
only through the command queue.

Architecture:
- Caller thread: sends triggers via queue, receives updates via callbacks
- Runner thread: own event loop, AsyncioScheduler, processes commands
- Callbacks run on the runner thread; callers marshal to their own thread
"""

from __future__ import annotations

import asyncio
import logging
import threading
from enum import Enum, auto
from typing import Callable

from pond.config import PondConfig
from pond.domain import DomainEvent, VisualState
from pond.services import AsyncioScheduler, Ephemeris
from pond.simulation import FrogSimulation

logger = logging.getLogger(__name__)


class Command(Enum):
    """Commands that can be sent to the runner thread."""
    FEED = auto()
    START_GAME = auto()
    JUMP = auto()
    EXIT_GAME = auto()
    SHUTDOWN = auto()


class SimulationRunner:
    """
    Runs FrogSimulation in a dedicated thread with a persistent event loop.

    Usage:
        runner = SimulationRunner(config)
        runner.on_visual_state(render)
        runner.start()

        # These are thread-safe, non-blocking
        runner.feed()
        runner.start_game()
        runner.jump()

        runner.shutdown()  # disposes the simulation, joins the thread
    """

    def __init__(
        self,
        config: PondConfig,
        ephemeris: Ephemeris | None = None,
        scheduler_factory: Callable[[asyncio.AbstractEventLoop], AsyncioScheduler] | None = None,
    ):
        self._config = config
        self._ephemeris = ephemeris
        self._scheduler_factory = scheduler_factory or (
            lambda loop: AsyncioScheduler(config.location.tzinfo, loop=loop)
        )
        self._thread: threading.Thread | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._commands: asyncio.Queue[Command] | None = None
        self._simulation: FrogSimulation | None = None
        self._ready = threading.Event()
        self._visual_callbacks: list[Callable[[VisualState], None]] = []
        self._event_callbacks: list[Callable[[DomainEvent], None]] = []

    @property
    def simulation(self) -> FrogSimulation | None:
        """The running simulation (only touch it from runner callbacks)."""
        return self._simulation

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def on_visual_state(self, callback: Callable[[VisualState], None]) -> None:
        """Register before start(); called on the runner thread."""
        self._visual_callbacks.append(callback)

    def on_event(self, callback: Callable[[DomainEvent], None]) -> None:
        """Register before start(); called on the runner thread."""
        self._event_callbacks.append(callback)

    def start(self, timeout: float = 5.0) -> None:
        """
        Start the runner thread and wait until the simulation is live.

        Call once. The thread runs until shutdown() is called.
        """
        if self.is_running:
            logger.warning("Runner thread already running")
            return

        self._ready.clear()
        self._thread = threading.Thread(target=self._thread_main, daemon=True, name="SimulationRunner")
        self._thread.start()
        if not self._ready.wait(timeout):
            logger.warning("Runner thread did not become ready in time")
        else:
            logger.info("Runner thread started")

    def shutdown(self, timeout: float = 5.0) -> None:
        """
        Dispose the simulation and stop the runner thread.

        Blocks until the thread exits (with timeout).
        """
        if self._thread is None:
            return

        logger.info("Requesting runner thread shutdown")
        self._send(Command.SHUTDOWN)
        self._thread.join(timeout=timeout)
        if self._thread.is_alive():
            logger.warning("Runner thread did not exit cleanly")
        else:
            logger.info("Runner thread shut down")
        self._thread = None

    # =========================================================================
    # Public triggers (thread-safe via the loop)
    # =========================================================================

    def feed(self) -> None:
        self._send(Command.FEED)

    def start_game(self) -> None:
        self._send(Command.START_GAME)

    def jump(self) -> None:
        self._send(Command.JUMP)

    def exit_game(self) -> None:
        self._send(Command.EXIT_GAME)

    # =========================================================================
    # Runner thread
    # =========================================================================

    def _send(self, command: Command) -> None:
        if self._loop is None or self._commands is None or self._loop.is_closed():
            logger.warning(f"Cannot send {command.name} - runner not started")
            return
        self._loop.call_soon_threadsafe(self._commands.put_nowait, command)

    def _thread_main(self) -> None:
        """Entry point for runner thread - creates and runs event loop."""
        logger.debug("Runner thread starting event loop")
        self._loop = asyncio.new_event_loop()
        asyncio.set_event_loop(self._loop)
        try:
            self._loop.run_until_complete(self._command_loop())
        except Exception as e:
            logger.error(f"Runner thread error: {e}", exc_info=True)
        finally:
            pending = asyncio.all_tasks(self._loop)
            for task in pending:
                task.cancel()
            if pending:
                self._loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))
            self._loop.close()
            logger.debug("Runner thread event loop closed")

    async def _command_loop(self) -> None:
        """Build the simulation on this loop, then process commands until shutdown."""
        loop = asyncio.get_running_loop()
        self._commands = asyncio.Queue()
        simulation = FrogSimulation(
            self._config.widget_id,
            self._scheduler_factory(loop),
            ephemeris=self._ephemeris,
            config=self._config,
        )
        for callback in self._visual_callbacks:
            simulation.on_visual_state(callback)
        for callback in self._event_callbacks:
            simulation.on_event(callback)
        self._simulation = simulation
        simulation.start()
        self._ready.set()

        actions: dict[Command, Callable[[], bool]] = {
            Command.FEED: simulation.feed,
            Command.START_GAME: simulation.start_game,
            Command.JUMP: simulation.jump,
            Command.EXIT_GAME: simulation.exit_game,
        }

        try:
            while True:
                cmd = await self._commands.get()
                logger.debug(f"Processing command: {cmd.name}")
                if cmd == Command.SHUTDOWN:
                    break
                accepted = actions[cmd]()
                if not accepted:
                    logger.debug(f"Command {cmd.name} ignored by simulation")
        finally:
            simulation.dispose()
            logger.debug("Command loop exiting")

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

from .machine import RunStateMachine
from .state import Phase

logger = logging.getLogger(__name__)

Controller = Callable[[RunStateMachine], None]


@dataclass
class LoopConfig:
    """Configuration for the headless clock driver.

    Attributes:
        tick_ms: Milliseconds delivered to the machine per update.
        max_steps: If provided and > 0, the loop will automatically stop after this many updates.
        realtime: Sleep between updates so ticks track wall-clock time.
    """

    tick_ms: int = 10
    max_steps: Optional[int] = None
    realtime: bool = False


class GameLoop:
    """A minimal, headless clock driver for a :class:`RunStateMachine`.

    Each update lets an optional controller (a bot, a replay, an input queue)
    act on the machine, then delivers one tick. The loop stops by itself once
    the run leaves PLAYING.
    """

    def __init__(
        self,
        machine: RunStateMachine,
        config: Optional[LoopConfig] = None,
        controller: Optional[Controller] = None,
    ) -> None:
        self.machine = machine
        self.config = config or LoopConfig(tick_ms=machine.config.timing.tick_ms)
        self.controller = controller
        self._running: bool = False
        self._step: int = 0

    @property
    def running(self) -> bool:
        return self._running

    @property
    def step(self) -> int:
        return self._step

    @property
    def elapsed_ms(self) -> int:
        return self._step * self.config.tick_ms

    def start(self) -> None:
        """Start the loop state.

        Safe to call multiple times; subsequent calls are no-ops.
        """
        if self._running:
            logger.debug("GameLoop.start() called while already running")
            return
        self._running = True
        self._step = 0
        logger.info("GameLoop started (tick_ms=%s, max_steps=%s)", self.config.tick_ms, self.config.max_steps)

    def stop(self) -> None:
        if not self._running:
            return
        self._running = False
        logger.info("GameLoop stopped at step=%s", self._step)

    def update(self) -> None:
        """Perform a single controller action and clock tick."""
        if not self._running:
            logger.debug("update() called while not running; ignored")
            return
        if self.controller is not None:
            self.controller(self.machine)
        self.machine.tick(self.config.tick_ms)
        self._step += 1

        if self.machine.phase is not Phase.PLAYING:
            self.stop()
        elif self.config.max_steps and self._step >= self.config.max_steps:
            self.stop()

    def run(self) -> None:
        """Run a blocking loop until the run ends or max_steps is reached."""
        self.start()
        target_dt = self.config.tick_ms / 1000.0 if self.config.realtime else 0.0
        while self._running:
            now = time.perf_counter()
            self.update()
            if target_dt > 0:
                remaining = target_dt - (time.perf_counter() - now)
                if remaining > 0:
                    time.sleep(remaining)
        logger.info("Loop complete (steps=%d, elapsed=%dms)", self._step, self.elapsed_ms)

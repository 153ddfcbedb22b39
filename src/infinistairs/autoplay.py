from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from .core.rng import RNG
from .loop import GameLoop, LoopConfig
from .machine import RunStateMachine
from .state import Phase, RunSnapshot

logger = logging.getLogger(__name__)


@dataclass
class AutoPilot:
    """Bot player: reads the next lane change and turns only when needed.

    With ``mistake_rate`` > 0 each decision is inverted with that probability,
    which exercises life loss and game-over paths in simulations.
    """

    rng: RNG = field(default_factory=RNG)
    mistake_rate: float = 0.0
    actions: int = 0
    mistakes: int = 0

    def __call__(self, machine: RunStateMachine) -> None:
        self.act(machine)

    def act(self, machine: RunStateMachine) -> bool:
        """Take one step if the machine accepts input; returns True on a climb."""
        if machine.phase is not Phase.PLAYING or machine.state.is_jumping:
            return False
        wanted = machine.expected_direction()
        if wanted is None:
            return False
        turn = wanted is not machine.state.facing_direction
        if self.mistake_rate > 0 and self.rng.random() < self.mistake_rate:
            turn = not turn
            self.mistakes += 1
        self.actions += 1
        if turn:
            return machine.toggle_direction_and_move()
        return machine.move()


def simulate_run(
    machine: RunStateMachine,
    pilot: Optional[AutoPilot] = None,
    max_ticks: Optional[int] = None,
) -> RunSnapshot:
    """Start a run and let the autopilot play it to the end (or max_ticks)."""
    pilot = pilot or AutoPilot()
    machine.start()
    loop = GameLoop(
        machine,
        LoopConfig(tick_ms=machine.config.timing.tick_ms, max_steps=max_ticks),
        controller=pilot,
    )
    loop.run()
    result = machine.snapshot()
    logger.info(
        "Simulated run: %s floor=%d score=%d after %d ticks (%d actions, %d mistakes)",
        result.phase.value,
        result.current_floor,
        result.score,
        loop.step,
        pilot.actions,
        pilot.mistakes,
    )
    return result

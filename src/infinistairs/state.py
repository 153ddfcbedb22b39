from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple

from .core.scheduler import TimerHandle
from .difficulty import Tier
from .staircase import Stair

CHARACTERS: Tuple[str, ...] = ("BOY", "GIRL")
DEFAULT_CHARACTER = "BOY"


class Phase(str, Enum):
    IDLE = "IDLE"
    PLAYING = "PLAYING"
    GAME_OVER = "GAME_OVER"
    GAME_WON = "GAME_WON"


class Direction(str, Enum):
    LEFT = "LEFT"
    RIGHT = "RIGHT"

    @property
    def step(self) -> int:
        """Lane delta this direction climbs to."""
        return -1 if self is Direction.LEFT else 1

    def flipped(self) -> "Direction":
        return Direction.RIGHT if self is Direction.LEFT else Direction.LEFT


@dataclass
class RunState:
    """Mutable state of one play session.

    Attributes:
        current_floor: index of the occupied stair (0-based).
        score: floors climbed plus item bonuses; never decreases within a run.
        lives: remaining lives, or None when lives are disabled.
        next_life_bonus_threshold: score at which the next extra life is granted.
        time_remaining: countdown in ms until the player falls.
        facing_direction: direction the next step will take.
        is_jumping: True between a jump and its settlement; suspends input and the clock.
        phase: state machine tag.
        disappearing_stairs: armed crumble countdowns keyed by stair id.
        character: cosmetic identity chosen on the select screen.
    """

    current_floor: int = 0
    score: int = 0
    lives: Optional[int] = None
    next_life_bonus_threshold: int = 0
    time_remaining: int = 0
    facing_direction: Direction = Direction.RIGHT
    is_jumping: bool = False
    phase: Phase = Phase.IDLE
    disappearing_stairs: Dict[int, TimerHandle] = field(default_factory=dict)
    character: str = DEFAULT_CHARACTER


@dataclass(frozen=True)
class RunSnapshot:
    """Immutable view of the run handed to the presentation layer."""

    phase: Phase
    current_floor: int
    score: int
    high_score: int
    lives: Optional[int]
    time_remaining: int
    time_limit: int
    facing_direction: Direction
    is_jumping: bool
    tier: Tier
    difficulty_label: str
    backdrop: str
    character: str
    total_stairs: int
    visible_stairs: Tuple[Stair, ...] = ()
    crumbling_stairs: Tuple[int, ...] = ()

    @property
    def current_stair(self) -> Optional[Stair]:
        for stair in self.visible_stairs:
            if stair.id == self.current_floor:
                return stair
        return None

    @property
    def timer_fraction(self) -> float:
        """Share of the countdown left, for the timer bar (0.0 - 1.0)."""
        if self.time_limit <= 0:
            return 0.0
        return max(0.0, min(1.0, self.time_remaining / self.time_limit))

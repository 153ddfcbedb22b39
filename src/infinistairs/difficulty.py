from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Tuple


class Tier(str, Enum):
    EASY = "EASY"
    MEDIUM = "MEDIUM"
    HARD = "HARD"


@dataclass(frozen=True)
class DifficultyPolicy:
    """Maps forward progress to a difficulty tier and its tuning values.

    - thresholds: progress at which MEDIUM and HARD begin (inclusive).
    - continue_probabilities: chance the generator keeps the staircase heading
      in the same horizontal direction for a stair of the given tier.
    - time_limits_ms: countdown granted after each successful step.
    - labels / backdrops: presentation hints for the HUD and background.
    """

    thresholds: Tuple[int, int] = (300, 700)
    continue_probabilities: Dict[Tier, float] = field(default_factory=lambda: {
        Tier.EASY: 0.9,
        Tier.MEDIUM: 0.5,
        Tier.HARD: 0.2,
    })
    time_limits_ms: Dict[Tier, int] = field(default_factory=lambda: {
        Tier.EASY: 10000,
        Tier.MEDIUM: 7000,
        Tier.HARD: 5000,
    })
    labels: Dict[Tier, str] = field(default_factory=lambda: {
        Tier.EASY: "Easy",
        Tier.MEDIUM: "Normal",
        Tier.HARD: "Hard",
    })
    backdrops: Dict[Tier, str] = field(default_factory=lambda: {
        Tier.EASY: "city",
        Tier.MEDIUM: "sky",
        Tier.HARD: "space",
    })

    def tier(self, progress: int) -> Tier:
        medium_at, hard_at = self.thresholds
        if progress >= hard_at:
            return Tier.HARD
        if progress >= medium_at:
            return Tier.MEDIUM
        return Tier.EASY

    def continue_probability(self, tier: Tier) -> float:
        return self.continue_probabilities[tier]

    def time_limit_ms(self, tier: Tier) -> int:
        return self.time_limits_ms[tier]

    def label(self, tier: Tier) -> str:
        return self.labels[tier]

    def backdrop(self, tier: Tier) -> str:
        return self.backdrops[tier]

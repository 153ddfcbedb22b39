from __future__ import annotations

import random
from dataclasses import dataclass
from typing import List, Optional, Sequence, TypeVar

T = TypeVar("T")


@dataclass
class RNG:
    """
    Deterministic-friendly RNG wrapper around random.Random.

    Allows injecting a fixed seed for reproducible staircases and runs. Exposes
    a minimal API used by the generator, the item table and the autopilot to
    avoid tight coupling to Python's global RNG.
    """

    seed: Optional[int] = None

    def __post_init__(self) -> None:
        self._rng = random.Random(self.seed)

    def random(self) -> float:
        """Return the next random float in the range [0.0, 1.0)."""
        return self._rng.random()

    def sample(self, population: Sequence[T], k: int) -> List[T]:
        """Choose k distinct elements from population."""
        return self._rng.sample(list(population), k)

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Sequence, Set, Tuple

from .config import DisappearingConfig, StaircaseConfig
from .core.rng import RNG
from .difficulty import DifficultyPolicy
from .items import Item, ItemTable

logger = logging.getLogger(__name__)


@dataclass
class Stair:
    """One step of the staircase.

    ``id`` and ``lane`` never change after generation; ``item`` is cleared
    exactly once, by :meth:`take_item`.
    """

    id: int
    lane: int
    item: Optional[Item] = None
    skin: int = 1

    def take_item(self) -> Optional[Item]:
        """Detach and return the item; later calls return None."""
        item, self.item = self.item, None
        return item

    def offset(self, lane_count: int) -> int:
        """Horizontal offset from the centre lane, in lanes."""
        return self.lane - lane_count // 2


class Staircase(Sequence[Stair]):
    """Fixed-length sequence of stairs produced once per run."""

    def __init__(self, stairs: Sequence[Stair], total_stairs: int, lane_count: int) -> None:
        self._stairs: Tuple[Stair, ...] = tuple(stairs)
        self.total_stairs = total_stairs
        self.lane_count = lane_count

    def __getitem__(self, index):  # type: ignore[override]
        return self._stairs[index]

    def __len__(self) -> int:
        return len(self._stairs)

    def __iter__(self) -> Iterator[Stair]:
        return iter(self._stairs)

    def get(self, index: int) -> Optional[Stair]:
        """Return the stair at index, or None outside the staircase (negative included)."""
        if 0 <= index < len(self._stairs):
            return self._stairs[index]
        return None

    def window(self, center: int, before: int, after: int) -> Tuple[Stair, ...]:
        """Stairs in ``[center - before, center + after)`` clamped to the staircase."""
        start = max(0, center - before)
        end = min(len(self._stairs), center + after)
        return self._stairs[start:end]

    def items(self) -> List[Tuple[int, Item]]:
        return [(s.id, s.item) for s in self._stairs if s.item is not None]


@dataclass
class StaircaseGenerator:
    """Builds the staircase for a run: lane walk first, then item placement.

    The lane walk keeps heading one way with the tier's continue probability,
    judged by the step index, and reflects off the outer lanes, so consecutive
    stairs always differ by exactly one lane.
    """

    policy: DifficultyPolicy = field(default_factory=DifficultyPolicy)
    item_table: ItemTable = field(default_factory=ItemTable)
    shape: StaircaseConfig = field(default_factory=StaircaseConfig)
    disappearing: DisappearingConfig = field(default_factory=DisappearingConfig)

    @property
    def default_length(self) -> int:
        return self.shape.total_stairs + self.shape.margin

    def generate(self, rng: RNG, length: Optional[int] = None) -> Staircase:
        length = self.default_length if length is None else length
        if length < 1:
            raise ValueError(f"Staircase length must be >= 1, got {length}")
        stairs = self._lay_stairs(rng, length)
        self._place_items(stairs, rng)
        logger.info(
            "Generated staircase: %d stairs, %d items",
            len(stairs),
            sum(1 for s in stairs if s.item is not None),
        )
        return Staircase(stairs, total_stairs=self.shape.total_stairs, lane_count=self.shape.lane_count)

    # ---------- Lanes ----------
    def _skin_for(self, index: int) -> int:
        return min(1 + index // self.shape.skin_interval, self.shape.skin_count)

    def _lay_stairs(self, rng: RNG, length: int) -> List[Stair]:
        lane_count = self.shape.lane_count
        lane = lane_count // 2
        stairs = [Stair(id=0, lane=lane, skin=self._skin_for(0))]
        direction = -1 if rng.random() < 0.5 else 1
        for i in range(1, length):
            tier = self.policy.tier(i)
            if rng.random() > self.policy.continue_probability(tier):
                direction = -direction
            lane += direction
            if lane < 0:
                lane, direction = 1, 1
            elif lane >= lane_count:
                lane, direction = lane_count - 2, -1
            stairs.append(Stair(id=i, lane=lane, skin=self._skin_for(i)))
        return stairs

    # ---------- Items ----------
    def _eligible(self, index: int) -> bool:
        return index > 0 and not self.disappearing.contains(index)

    def _place_items(self, stairs: List[Stair], rng: RNG) -> None:
        if not self.item_table.items:
            return
        shape = self.shape
        upper = min(shape.guaranteed_end, len(stairs))
        window = [i for i in range(shape.guaranteed_start, upper) if self._eligible(i)]
        if len(window) < len(self.item_table):
            raise ValueError(
                f"Guaranteed window holds {len(window)} stairs, need {len(self.item_table)} for full item coverage"
            )

        guaranteed: Set[int] = set()
        for index, item in zip(rng.sample(window, len(self.item_table)), self.item_table.items):
            stairs[index].item = item.copy()
            guaranteed.add(index)
        logger.debug("Guaranteed item stairs: %s", sorted(guaranteed))

        fill_end = min(shape.total_stairs, len(stairs))
        for i in range(shape.item_start, fill_end):
            if i in guaranteed or not self._eligible(i):
                continue
            if rng.random() < shape.item_spawn_chance:
                stairs[i].item = self.item_table.sample(rng)

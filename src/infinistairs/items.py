from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Iterable, List, Sequence

from .core.rng import RNG


class ItemKind(str, Enum):
    SCORE = "score"
    JUMP = "jump"


@dataclass(frozen=True)
class Item:
    """
    An item that can sit on a stair.

    Attributes:
        kind: SCORE items add ``magnitude`` points; JUMP items carry the player
            ``magnitude`` floors upward.
        magnitude: Positive effect size.
        identity: Catalog identifier (unique within a table), e.g. "gold".
        rarity: Positive relative weight used by the fill pass.
    """

    kind: ItemKind
    magnitude: int
    identity: str
    rarity: int = 1

    def copy(self) -> "Item":
        return replace(self)

    def feedback_text(self) -> str:
        """Short floating text shown when the item is collected."""
        if self.kind is ItemKind.JUMP:
            return f"+{self.magnitude} JUMP!"
        return f"+{self.magnitude} points!"


DEFAULT_CATALOG: Sequence[Item] = (
    Item(ItemKind.SCORE, 5, "cooper", rarity=10),
    Item(ItemKind.SCORE, 10, "iron", rarity=8),
    Item(ItemKind.SCORE, 20, "gold", rarity=5),
    Item(ItemKind.SCORE, 30, "emerald", rarity=3),
    Item(ItemKind.SCORE, 50, "dia", rarity=1),
    Item(ItemKind.JUMP, 10, "up", rarity=5),
    Item(ItemKind.JUMP, 30, "plane", rarity=3),
    Item(ItemKind.JUMP, 50, "rocket", rarity=1),
)


@dataclass
class ItemTable:
    """
    Weighted item catalog with rarity-based sampling.

    Every value handed out is a copy of the catalog entry, so clearing an item
    from one stair never touches the catalog or another stair.
    """

    items: List[Item] = field(default_factory=lambda: list(DEFAULT_CATALOG))

    def __post_init__(self) -> None:
        seen = set()
        for item in self.items:
            if item.magnitude <= 0 or item.rarity <= 0:
                raise ValueError(f"Item {item.identity!r} needs positive magnitude and rarity")
            if item.identity in seen:
                raise ValueError(f"Duplicate item identity {item.identity!r}")
            seen.add(item.identity)

    @classmethod
    def of(cls, items: Iterable[Item]) -> "ItemTable":
        return cls(items=list(items))

    @property
    def total_rarity(self) -> int:
        return sum(i.rarity for i in self.items)

    def identities(self) -> List[str]:
        return [i.identity for i in self.items]

    def sample(self, rng: RNG) -> Item:
        """Roll one item; each entry wins with probability rarity / total_rarity."""
        if not self.items:
            raise ValueError("Cannot sample from an empty item table")
        draw = rng.random() * self.total_rarity
        cumulative = 0
        for item in self.items:
            cumulative += item.rarity
            if draw < cumulative:
                return item.copy()
        # Fallback for floating point edge: return last element deterministically
        return self.items[-1].copy()

    def __len__(self) -> int:
        return len(self.items)

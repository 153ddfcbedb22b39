from __future__ import annotations

import dataclasses
import json
import logging
from dataclasses import dataclass, field
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from jsonschema import Draft202012Validator

from .difficulty import DifficultyPolicy, Tier
from .errors import ConfigError
from .items import DEFAULT_CATALOG, Item, ItemKind, ItemTable

logger = logging.getLogger(__name__)

_DATA_PKG = "infinistairs.data"


@dataclass
class LivesConfig:
    """Life-bearing variant switches. With ``enabled=False`` any failure ends the run."""

    enabled: bool = True
    initial: int = 3
    bonus_interval: int = 100


@dataclass
class DifficultyConfig:
    medium_at: int = 300
    hard_at: int = 700
    continue_probability: Dict[str, float] = field(default_factory=lambda: {"EASY": 0.9, "MEDIUM": 0.5, "HARD": 0.2})
    time_limit_ms: Dict[str, int] = field(default_factory=lambda: {"EASY": 10000, "MEDIUM": 7000, "HARD": 5000})
    labels: Dict[str, str] = field(default_factory=lambda: {"EASY": "Easy", "MEDIUM": "Normal", "HARD": "Hard"})
    backdrops: Dict[str, str] = field(default_factory=lambda: {"EASY": "city", "MEDIUM": "sky", "HARD": "space"})

    def to_policy(self) -> DifficultyPolicy:
        return DifficultyPolicy(
            thresholds=(self.medium_at, self.hard_at),
            continue_probabilities={Tier(k): float(v) for k, v in self.continue_probability.items()},
            time_limits_ms={Tier(k): int(v) for k, v in self.time_limit_ms.items()},
            labels={Tier(k): str(v) for k, v in self.labels.items()},
            backdrops={Tier(k): str(v) for k, v in self.backdrops.items()},
        )


@dataclass
class StaircaseConfig:
    """Staircase shape and item placement.

    - margin: extra stairs past ``total_stairs`` so jumps never index out of range.
    - guaranteed_start/guaranteed_end: half-open window holding one copy of
      every catalog item.
    - item_start: first index eligible for the random fill pass.
    """

    total_stairs: int = 1000
    margin: int = 50
    lane_count: int = 5
    item_start: int = 20
    guaranteed_start: int = 20
    guaranteed_end: int = 950
    item_spawn_chance: float = 0.2
    skin_interval: int = 20
    skin_count: int = 50


@dataclass
class DisappearingConfig:
    """Crumbling stairs: ids in ``[start, end)`` vanish after ``countdown_ms`` if still occupied."""

    enabled: bool = True
    start: int = 702
    end: int = 900
    countdown_ms: int = 5000

    def contains(self, stair_id: int) -> bool:
        return self.enabled and self.start <= stair_id < self.end


@dataclass
class TimingConfig:
    tick_ms: int = 10
    jump_settle_ms: int = 700
    window_before: int = 15
    window_after: int = 30


@dataclass
class ControlsConfig:
    start: List[str] = field(default_factory=lambda: ["SPACE", "ENTER"])
    move: List[str] = field(default_factory=lambda: ["SPACE"])
    turn: List[str] = field(default_factory=lambda: ["SHIFT", "LSHIFT", "RSHIFT"])
    select: List[str] = field(default_factory=lambda: ["ESCAPE"])


@dataclass
class GameConfig:
    """Complete tuning for one game instance.

    Defaults reproduce the shipped game; ``load`` overlays a YAML file on the
    packaged defaults and validates the result.
    """

    high_score_key: str = "infinityStairHighScore_v4"
    lives: LivesConfig = field(default_factory=LivesConfig)
    difficulty: DifficultyConfig = field(default_factory=DifficultyConfig)
    staircase: StaircaseConfig = field(default_factory=StaircaseConfig)
    disappearing: DisappearingConfig = field(default_factory=DisappearingConfig)
    timing: TimingConfig = field(default_factory=TimingConfig)
    controls: ControlsConfig = field(default_factory=ControlsConfig)
    items: List[Item] = field(default_factory=lambda: list(DEFAULT_CATALOG))

    # ---------- Derived collaborators ----------
    def policy(self) -> DifficultyPolicy:
        return self.difficulty.to_policy()

    def item_table(self) -> ItemTable:
        return ItemTable.of(self.items)

    # ---------- Validation ----------
    def problems(self) -> List[str]:
        """Return semantic problems the JSON Schema cannot express."""
        found: List[str] = []
        d = self.difficulty
        if d.medium_at >= d.hard_at:
            found.append(f"difficulty.medium_at ({d.medium_at}) must be below hard_at ({d.hard_at})")
        s = self.staircase
        if not (1 <= s.guaranteed_start < s.guaranteed_end <= s.total_stairs):
            found.append(
                "staircase guaranteed window must satisfy 1 <= guaranteed_start < guaranteed_end <= total_stairs"
            )
        else:
            eligible = sum(
                1 for i in range(s.guaranteed_start, s.guaranteed_end) if not self.disappearing.contains(i)
            )
            if eligible < len(self.items):
                found.append(
                    f"guaranteed window has {eligible} eligible stairs but the catalog holds {len(self.items)} items"
                )
        if self.disappearing.enabled and self.disappearing.start >= self.disappearing.end:
            found.append("disappearing.start must be below disappearing.end")
        identities = [i.identity for i in self.items]
        if len(set(identities)) != len(identities):
            found.append("item identities must be unique")
        if not self.items:
            found.append("item catalog must not be empty")
        return found

    def validate(self) -> "GameConfig":
        found = self.problems()
        if found:
            for p in found:
                logger.error("Config problem: %s", p)
            raise ConfigError("Invalid game configuration", found)
        return self

    # ---------- (De)serialization ----------
    def to_dict(self) -> Dict[str, Any]:
        data = {
            "high_score_key": self.high_score_key,
            "lives": dataclasses.asdict(self.lives),
            "difficulty": dataclasses.asdict(self.difficulty),
            "staircase": dataclasses.asdict(self.staircase),
            "disappearing": dataclasses.asdict(self.disappearing),
            "timing": dataclasses.asdict(self.timing),
            "controls": dataclasses.asdict(self.controls),
            "items": [
                {"identity": i.identity, "kind": i.kind.value, "magnitude": i.magnitude, "rarity": i.rarity}
                for i in self.items
            ],
        }
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GameConfig":
        """Build a config from a (possibly partial) mapping; schema and semantics are checked."""
        validate_config_dict(data)
        cfg = cls(
            high_score_key=str(data.get("high_score_key", cls.high_score_key)),
            lives=LivesConfig(**data.get("lives", {})),
            difficulty=DifficultyConfig(**data.get("difficulty", {})),
            staircase=StaircaseConfig(**data.get("staircase", {})),
            disappearing=DisappearingConfig(**data.get("disappearing", {})),
            timing=TimingConfig(**data.get("timing", {})),
            controls=ControlsConfig(**data.get("controls", {})),
        )
        if "items" in data:
            cfg.items = [
                Item(
                    kind=ItemKind(str(raw["kind"])),
                    magnitude=int(raw["magnitude"]),
                    identity=str(raw["identity"]),
                    rarity=int(raw.get("rarity", 1)),
                )
                for raw in data["items"]
            ]
        return cfg.validate()

    @classmethod
    def _deep_merge(cls, base: dict, overlay: dict) -> dict:
        merged = dict(base)
        for k, v in (overlay or {}).items():
            if isinstance(v, dict) and isinstance(base.get(k), dict):
                merged[k] = cls._deep_merge(base[k], v)
            else:
                merged[k] = v
        return merged

    @staticmethod
    def _load_yaml(path: Path) -> dict:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a mapping", [f"top level is {type(data).__name__}"])
        return data

    @classmethod
    def load(cls, user_path: Optional[Path] = None) -> "GameConfig":
        """Load config from packaged defaults and an optional user override file.

        If user_path is provided and exists, overlay values onto defaults. A
        missing user file is logged and ignored.
        """
        try:
            text = resources.files(_DATA_PKG).joinpath("default_config.yaml").read_text(encoding="utf-8")
            default_data = yaml.safe_load(text) or {}
        except FileNotFoundError:
            logger.warning("Default config not found; falling back to dataclass defaults.")
            default_data = cls().to_dict()

        user_data: dict = {}
        if user_path is not None:
            user_path = Path(user_path)
            if user_path.exists():
                user_data = cls._load_yaml(user_path)
                logger.info("Loaded user config from %s", user_path)
            else:
                logger.warning("User config file not found: %s", user_path)

        merged = cls._deep_merge(default_data, user_data)
        cfg = cls.from_dict(merged)
        logger.debug("Config merged: %s", cfg)
        return cfg

    def save(self, path: Path) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as f:
            yaml.safe_dump(self.to_dict(), f, sort_keys=False)
        logger.info("Saved config to %s", path)


@lru_cache(maxsize=1)
def _load_config_schema() -> Dict[str, Any]:
    """Load the packaged config JSON Schema (cached; the schema is static)."""
    text = resources.files(_DATA_PKG).joinpath("config.schema.json").read_text(encoding="utf-8")
    return json.loads(text)


def validate_config_dict(data: Dict[str, Any]) -> None:
    """
    Validate a raw config mapping against the config JSON Schema.

    Raises:
        ConfigError listing every schema violation.
    """
    validator = Draft202012Validator(_load_config_schema())
    errors = sorted(validator.iter_errors(data), key=lambda e: [str(p) for p in e.path])
    if errors:
        problems = []
        for err in errors:
            where = "/".join(str(p) for p in err.path) or "<root>"
            logger.error("Config schema validation error at %s: %s", where, err.message)
            problems.append(f"at {where}: {err.message}")
        raise ConfigError("Config does not match schema", problems)


__all__ = [
    "ControlsConfig",
    "DifficultyConfig",
    "DisappearingConfig",
    "GameConfig",
    "LivesConfig",
    "StaircaseConfig",
    "TimingConfig",
    "validate_config_dict",
]

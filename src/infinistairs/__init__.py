"""
Infinity Stairs core package.

Headless game logic for a staircase-climbing endless runner:
- Difficulty policy and weighted item catalog
- Procedural staircase generation with guaranteed item coverage
- Run state machine with lives, bonus lives, jumps and crumbling stairs
- High-score persistence, input routing and a headless clock driver

Presentation layers subscribe to the machine's event bus and call its intents.
"""
from .config import GameConfig
from .core.events import EventBus, EventType
from .core.rng import RNG
from .difficulty import DifficultyPolicy, Tier
from .errors import ConfigError, InfinistairsError, UnknownCharacterError
from .items import DEFAULT_CATALOG, Item, ItemKind, ItemTable
from .machine import RunStateMachine
from .persistence import HighScoreStore, JsonHighScoreStore, MemoryHighScoreStore
from .staircase import Stair, Staircase, StaircaseGenerator
from .state import CHARACTERS, Direction, Phase, RunSnapshot, RunState

__all__ = [
    "CHARACTERS",
    "DEFAULT_CATALOG",
    "ConfigError",
    "DifficultyPolicy",
    "Direction",
    "EventBus",
    "EventType",
    "GameConfig",
    "HighScoreStore",
    "InfinistairsError",
    "Item",
    "ItemKind",
    "ItemTable",
    "JsonHighScoreStore",
    "MemoryHighScoreStore",
    "Phase",
    "RNG",
    "RunSnapshot",
    "RunState",
    "RunStateMachine",
    "Stair",
    "Staircase",
    "StaircaseGenerator",
    "Tier",
    "UnknownCharacterError",
]

import sys
from pathlib import Path

import pytest

# Ensure 'src' is on sys.path for test imports without installing the package
ROOT = Path(__file__).resolve().parents[1]
src = ROOT / "src"
if str(src) not in sys.path:
    sys.path.insert(0, str(src))

from infinistairs.config import GameConfig  # noqa: E402
from infinistairs.core.rng import RNG  # noqa: E402
from infinistairs.machine import RunStateMachine  # noqa: E402
from infinistairs.persistence import MemoryHighScoreStore  # noqa: E402


@pytest.fixture()
def config() -> GameConfig:
    return GameConfig()


@pytest.fixture()
def store() -> MemoryHighScoreStore:
    return MemoryHighScoreStore()


@pytest.fixture()
def machine(config, store) -> RunStateMachine:
    return RunStateMachine(config=config, store=store, rng=RNG(1234))


@pytest.fixture()
def playing(machine) -> RunStateMachine:
    machine.start()
    return machine

from __future__ import annotations

import json
import logging
import os
import threading
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

from platformdirs import PlatformDirs

logger = logging.getLogger(__name__)

APP_NAME = "Infinity Stairs"
HIGH_SCORE_KEY = "infinityStairHighScore_v4"
HIGH_SCORE_FILE = "highscore.json"

# Environment variable override (useful for tests and portable installs)
ENV_DATA_DIR = "INFINISTAIRS_DATA_DIR"


class HighScoreStore(Protocol):
    """Persistence boundary for the single best-score value."""

    def load_high_score(self) -> int:
        ...

    def save_high_score(self, value: int) -> None:
        ...


class MemoryHighScoreStore:
    """In-process store; handy for tests and embedding hosts."""

    def __init__(self, initial: int = 0) -> None:
        self.value = int(initial)
        self.saves = 0

    def load_high_score(self) -> int:
        return self.value

    def save_high_score(self, value: int) -> None:
        self.value = int(value)
        self.saves += 1


def default_data_dir(app_name: str = APP_NAME) -> Path:
    """Platform user data dir for the game, honouring INFINISTAIRS_DATA_DIR."""
    override = os.getenv(ENV_DATA_DIR)
    if override:
        return Path(override).expanduser().resolve()
    dirs = PlatformDirs(appname=app_name, appauthor=False)
    return Path(dirs.user_data_dir).expanduser().resolve()


def _atomic_write(path: Path, data: str) -> None:
    """Write data via a temp file and os.replace to avoid partial files."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    with open(tmp_path, "w", encoding="utf-8") as fh:
        fh.write(data)
        fh.flush()
        os.fsync(fh.fileno())
    os.replace(tmp_path, path)


class JsonHighScoreStore:
    """Key-value JSON file holding the best score under a fixed key.

    Unreadable, malformed or missing data loads as 0; the file is rewritten
    whole on every save. Other keys in the file are preserved.
    """

    def __init__(self, path: Optional[Path] = None, key: str = HIGH_SCORE_KEY) -> None:
        self.path = Path(path) if path is not None else default_data_dir() / HIGH_SCORE_FILE
        self.key = key
        self._lock = threading.RLock()

    def _load_raw(self) -> Dict[str, Any]:
        if not self.path.exists():
            logger.debug("High score file does not exist: %s", self.path)
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, ValueError) as e:
            logger.error("Failed to read high score file %s: %s", self.path, e)
            return {}
        if not isinstance(data, dict):
            logger.error("High score file malformed (not an object): %s", self.path)
            return {}
        return data

    def load_high_score(self) -> int:
        with self._lock:
            raw = self._load_raw().get(self.key, 0)
            try:
                value = int(raw)
            except (TypeError, ValueError):
                logger.error("Stored high score %r is not an integer; using 0", raw)
                return 0
            return max(0, value)

    def save_high_score(self, value: int) -> None:
        with self._lock:
            store = self._load_raw()
            store[self.key] = int(value)
            _atomic_write(self.path, json.dumps(store, sort_keys=True, indent=2))
            logger.info("Saved high score %d to %s", value, self.path)


__all__ = [
    "HighScoreStore",
    "JsonHighScoreStore",
    "MemoryHighScoreStore",
    "default_data_dir",
]

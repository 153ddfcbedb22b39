from __future__ import annotations

from typing import Iterable, List


class InfinistairsError(Exception):
    """Base error for Infinity Stairs domain exceptions."""


class ConfigError(InfinistairsError):
    """Raised when a game configuration is invalid.

    Attributes:
        problems: every validation message collected while checking the config.
    """

    def __init__(self, message: str, problems: Iterable[str] = ()) -> None:
        super().__init__(message)
        self.problems: List[str] = list(problems)

    def to_human(self) -> str:
        parts = [str(self)]
        for p in self.problems:
            parts.append(f" - {p}")
        return "\n".join(parts)


class UnknownCharacterError(InfinistairsError):
    """Raised when selecting a character that is not in the catalog."""

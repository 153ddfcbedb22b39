from __future__ import annotations

import logging
from enum import Enum, auto
from typing import Dict, Iterable, Optional

from .config import ControlsConfig
from .machine import RunStateMachine
from .state import Phase

logger = logging.getLogger(__name__)


class Intent(Enum):
    """Logical player intents delivered to the run state machine."""

    START = auto()
    MOVE = auto()
    TURN_AND_MOVE = auto()
    SELECT = auto()


class InputRouter:
    """Rebindable key -> intent routing with key-repeat and jump debounce.

    Keys are canonical uppercase strings so any backend (Arcade, pyglet, a
    browser bridge) can translate its key constants before calling
    :meth:`on_key_press`. The same key may mean different intents depending on
    the phase: SPACE starts a run from a menu and steps while playing.
    """

    def __init__(self, machine: RunStateMachine, controls: Optional[ControlsConfig] = None) -> None:
        self.machine = machine
        controls = controls or machine.config.controls
        self._menu: Dict[str, Intent] = {}
        self._play: Dict[str, Intent] = {}
        self._bind(self._menu, controls.start, Intent.START)
        self._bind(self._menu, controls.select, Intent.SELECT)
        self._bind(self._play, controls.move, Intent.MOVE)
        self._bind(self._play, controls.turn, Intent.TURN_AND_MOVE)

    @staticmethod
    def _normalize(key: str) -> Optional[str]:
        if not isinstance(key, str):
            return None
        k = key.strip()
        return k.upper() if k else None

    def _bind(self, table: Dict[str, Intent], keys: Iterable[str], intent: Intent) -> None:
        for key in keys:
            nk = self._normalize(key)
            if nk is None:
                logger.warning("Attempted to bind invalid key: %r", key)
                continue
            table[nk] = intent

    def translate(self, key: str) -> Optional[Intent]:
        """Intent the key maps to in the current phase, or None."""
        nk = self._normalize(key)
        if nk is None:
            return None
        if self.machine.phase is Phase.PLAYING:
            return self._play.get(nk)
        return self._menu.get(nk)

    def on_key_press(self, key: str, repeat: bool = False) -> Optional[Intent]:
        """Dispatch a key press; returns the intent that was applied, if any."""
        if repeat or self.machine.state.is_jumping:
            return None
        intent = self.translate(key)
        if intent is None:
            return None
        self.dispatch(intent)
        return intent

    def dispatch(self, intent: Intent) -> None:
        if intent is Intent.START:
            self.machine.start()
        elif intent is Intent.MOVE:
            self.machine.move()
        elif intent is Intent.TURN_AND_MOVE:
            self.machine.toggle_direction_and_move()
        elif intent is Intent.SELECT:
            self.machine.go_to_select()

"""
A minimal, synchronous event bus to decouple the run core from presentation.
Listeners are invoked in registration order.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Callable, DefaultDict, Dict, List

logger = logging.getLogger(__name__)

Listener = Callable[[str, Dict[str, Any]], None]


class EventType:
    """Centralized event names emitted by the run state machine."""

    # Payload: {"snapshot": RunSnapshot}; emitted after every mutating operation
    STATE_CHANGED = "state_changed"
    RUN_STARTED = "run_started"
    ITEM_COLLECTED = "item_collected"
    JUMP_STARTED = "jump_started"
    JUMP_SETTLED = "jump_settled"
    LIFE_LOST = "life_lost"
    LIFE_GAINED = "life_gained"
    STAIR_CRUMBLED = "stair_crumbled"
    GAME_OVER = "game_over"
    GAME_WON = "game_won"


class EventBus:
    """Simple publish/subscribe event bus."""

    def __init__(self) -> None:
        self._listeners: DefaultDict[str, List[Listener]] = defaultdict(list)

    def on(self, event_name: str, listener: Listener) -> None:
        """Register a listener for a specific event name."""
        if not callable(listener):
            raise TypeError("listener must be callable")
        self._listeners[event_name].append(listener)

    def off(self, event_name: str, listener: Listener) -> None:
        """Remove a previously registered listener; unknown listeners are ignored."""
        listeners = self._listeners.get(event_name)
        if listeners and listener in listeners:
            listeners.remove(listener)

    def emit(self, event_name: str, payload: Dict[str, Any] | None = None) -> None:
        """Emit an event with optional payload, notifying all listeners."""
        if payload is None:
            payload = {}
        listeners = list(self._listeners.get(event_name, []))
        logger.debug("Emitting '%s' to %d listeners", event_name, len(listeners))
        for listener in listeners:
            listener(event_name, payload)

    def has_listeners(self, event_name: str) -> bool:
        return bool(self._listeners.get(event_name))

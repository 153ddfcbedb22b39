import logging

import pytest

from infinistairs.core.events import EventBus, EventType
from infinistairs.core.rng import RNG
from infinistairs.logging_config import configure_logging


def test_event_bus_delivers_in_registration_order():
    bus = EventBus()
    calls = []
    bus.on(EventType.LIFE_LOST, lambda n, p: calls.append(("a", p["lives"])))
    bus.on(EventType.LIFE_LOST, lambda n, p: calls.append(("b", p["lives"])))
    bus.emit(EventType.LIFE_LOST, {"lives": 2})
    assert calls == [("a", 2), ("b", 2)]


def test_event_bus_off_and_validation():
    bus = EventBus()
    calls = []

    def listener(name, payload):
        calls.append(name)

    bus.on(EventType.GAME_OVER, listener)
    bus.off(EventType.GAME_OVER, listener)
    bus.emit(EventType.GAME_OVER)
    assert calls == []
    assert not bus.has_listeners(EventType.GAME_OVER)
    with pytest.raises(TypeError):
        bus.on(EventType.GAME_OVER, "not callable")  # type: ignore[arg-type]


def test_rng_is_reproducible():
    a, b = RNG(seed=99), RNG(seed=99)
    assert [a.random() for _ in range(10)] == [b.random() for _ in range(10)]
    assert a.sample(range(100), 5) == b.sample(range(100), 5)
    assert RNG(seed=1).random() != RNG(seed=2).random()


def test_configure_logging_honours_env(monkeypatch):
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    monkeypatch.setenv("INFINISTAIRS_LOG_LEVEL", "error")
    try:
        configure_logging(default_level=logging.DEBUG)
        assert root.level == logging.ERROR
    finally:
        for h in list(root.handlers):
            root.removeHandler(h)
        for h in saved_handlers:
            root.addHandler(h)
        root.setLevel(saved_level)

"""Engine-agnostic building blocks: RNG, event bus and the tick scheduler."""
from .events import EventBus, EventType
from .rng import RNG
from .scheduler import Scheduler, TimerHandle

__all__ = ["EventBus", "EventType", "RNG", "Scheduler", "TimerHandle"]

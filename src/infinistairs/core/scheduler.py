from __future__ import annotations

import heapq
import itertools
import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class TimerHandle:
    """A deferred callback owned by a :class:`Scheduler`.

    Attributes:
        due_ms: scheduler time at which the callback fires.
        callback: zero-argument callable invoked when due.
        label: short description used in logs.
        cancelled: set by :meth:`cancel`; cancelled handles never fire.
    """

    due_ms: int
    callback: Callable[[], None] = field(repr=False)
    label: str = ""
    cancelled: bool = False
    fired: bool = False

    @property
    def active(self) -> bool:
        return not (self.cancelled or self.fired)

    def cancel(self) -> None:
        self.cancelled = True


class Scheduler:
    """Host-driven timer queue measured in milliseconds.

    Time only moves when :meth:`advance` is called, which keeps every deferred
    continuation deterministic and testable. Callbacks fire in due order (ties in
    scheduling order) and may schedule further callbacks; those also fire within
    the same advance if they fall inside the window.
    """

    def __init__(self) -> None:
        self._now_ms = 0
        self._queue: List[Tuple[int, int, TimerHandle]] = []
        self._seq = itertools.count()

    @property
    def now_ms(self) -> int:
        return self._now_ms

    @property
    def pending(self) -> int:
        """Number of scheduled handles that have not fired or been cancelled."""
        return sum(1 for _, _, h in self._queue if h.active)

    def next_due(self) -> Optional[int]:
        """Due time of the earliest active handle, or None when idle."""
        while self._queue and self._queue[0][2].cancelled:
            heapq.heappop(self._queue)
        return self._queue[0][0] if self._queue else None

    def call_later(self, delay_ms: int, callback: Callable[[], None], label: str = "") -> TimerHandle:
        if delay_ms < 0:
            raise ValueError(f"delay_ms must be >= 0, got {delay_ms}")
        handle = TimerHandle(due_ms=self._now_ms + int(delay_ms), callback=callback, label=label)
        heapq.heappush(self._queue, (handle.due_ms, next(self._seq), handle))
        logger.debug("Scheduled %s at t=%d", label or "task", handle.due_ms)
        return handle

    def advance(self, elapsed_ms: int) -> int:
        """Move time forward by elapsed_ms, firing every due callback.

        Returns the number of callbacks fired.
        """
        if elapsed_ms < 0:
            raise ValueError(f"elapsed_ms must be >= 0, got {elapsed_ms}")
        target = self._now_ms + int(elapsed_ms)
        fired = 0
        while self._queue and self._queue[0][0] <= target:
            due, _, handle = heapq.heappop(self._queue)
            if handle.cancelled:
                continue
            self._now_ms = due
            handle.fired = True
            fired += 1
            handle.callback()
        self._now_ms = target
        return fired

    def cancel_all(self) -> int:
        """Cancel every outstanding handle; returns how many were still active."""
        count = 0
        for _, _, handle in self._queue:
            if handle.active:
                handle.cancel()
                count += 1
        self._queue.clear()
        if count:
            logger.debug("Cancelled %d scheduled tasks", count)
        return count

import pytest

from infinistairs.core.scheduler import Scheduler


def test_callbacks_fire_in_due_order():
    sched = Scheduler()
    fired = []
    sched.call_later(30, lambda: fired.append("c"))
    sched.call_later(10, lambda: fired.append("a"))
    sched.call_later(10, lambda: fired.append("b"))
    assert sched.advance(5) == 0
    assert sched.advance(5) == 2
    assert fired == ["a", "b"]
    sched.advance(100)
    assert fired == ["a", "b", "c"]
    assert sched.now_ms == 110


def test_cancelled_handle_never_fires():
    sched = Scheduler()
    fired = []
    handle = sched.call_later(10, lambda: fired.append(1))
    handle.cancel()
    assert sched.pending == 0
    sched.advance(20)
    assert fired == []
    assert not handle.active


def test_callbacks_scheduled_inside_window_fire_in_same_advance():
    sched = Scheduler()
    seen = []

    def first():
        seen.append(("first", sched.now_ms))
        sched.call_later(5, lambda: seen.append(("second", sched.now_ms)))

    sched.call_later(10, first)
    sched.advance(20)
    assert seen == [("first", 10), ("second", 15)]


def test_cancel_all_reports_active_handles():
    sched = Scheduler()
    h1 = sched.call_later(10, lambda: None)
    sched.call_later(20, lambda: None)
    h1.cancel()
    assert sched.cancel_all() == 1
    assert sched.pending == 0


def test_negative_durations_rejected():
    sched = Scheduler()
    with pytest.raises(ValueError):
        sched.call_later(-1, lambda: None)
    with pytest.raises(ValueError):
        sched.advance(-5)


def test_next_due_skips_cancelled_handles():
    sched = Scheduler()
    assert sched.next_due() is None
    early = sched.call_later(5, lambda: None)
    sched.call_later(12, lambda: None)
    assert sched.next_due() == 5
    early.cancel()
    assert sched.next_due() == 12

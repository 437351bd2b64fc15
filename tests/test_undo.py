"""Tests for the undo controller and schedulers."""

import asyncio
import time

import pytest

from expense_tracker.ledger import Ledger
from expense_tracker.models.audit import AuditEventType
from expense_tracker.undo import (
    AsyncioScheduler,
    ManualScheduler,
    MonotonicScheduler,
    UndoController,
    UndoState,
)


@pytest.fixture
def undo(ledger, scheduler):
    return UndoController(ledger, scheduler, window_seconds=5)


def _titles(ledger):
    return [tx.title for tx in ledger.snapshot()]


class TestManualScheduler:
    """Tests for the deterministic scheduler."""

    def test_runs_due_callbacks_in_order(self):
        scheduler = ManualScheduler()
        calls = []
        scheduler.call_later(3, lambda: calls.append(("b", scheduler.now())))
        scheduler.call_later(1, lambda: calls.append(("a", scheduler.now())))
        scheduler.call_later(10, lambda: calls.append(("c", scheduler.now())))
        assert scheduler.advance(5) == 2
        assert calls == [("a", 1.0), ("b", 3.0)]
        assert scheduler.now() == 5.0
        assert scheduler.pending == 1

    def test_callback_due_exactly_at_target_runs(self):
        scheduler = ManualScheduler()
        calls = []
        scheduler.call_later(2, lambda: calls.append(1))
        scheduler.advance(2)
        assert calls == [1]

    def test_cancelled_callback_never_runs(self):
        scheduler = ManualScheduler()
        calls = []
        task = scheduler.call_later(1, lambda: calls.append(1))
        task.cancel()
        assert task.cancelled()
        assert scheduler.advance(5) == 0
        assert calls == []

    def test_callback_may_schedule_more(self):
        scheduler = ManualScheduler()
        calls = []

        def first():
            calls.append("first")
            scheduler.call_later(1, lambda: calls.append("second"))

        scheduler.call_later(1, first)
        scheduler.advance(3)
        assert calls == ["first", "second"]

    def test_negative_values_rejected(self):
        scheduler = ManualScheduler()
        with pytest.raises(ValueError):
            scheduler.call_later(-1, lambda: None)
        with pytest.raises(ValueError):
            scheduler.advance(-1)

    def test_cancelled_tasks_are_not_kept(self):
        scheduler = ManualScheduler()
        for _ in range(100):
            scheduler.call_later(5, lambda: None).cancel()
        scheduler.call_later(5, lambda: None)
        assert scheduler.held == 1
        assert scheduler.pending == 1


class FakeClock:

    def __init__(self, start=100.0):
        self.value = start

    def __call__(self):
        return self.value


class TestMonotonicScheduler:
    """Tests for the real-clock scheduler."""

    def test_now_follows_clock(self):
        clock = FakeClock()
        scheduler = MonotonicScheduler(clock=clock)
        clock.value = 123.5
        assert scheduler.now() == 123.5

    def test_run_due_runs_only_due_callbacks(self):
        clock = FakeClock()
        scheduler = MonotonicScheduler(clock=clock)
        calls = []
        scheduler.call_later(1, lambda: calls.append("a"))
        scheduler.call_later(10, lambda: calls.append("b"))
        clock.value += 2
        assert scheduler.run_due() == 1
        assert calls == ["a"]
        assert scheduler.pending == 1

    def test_default_clock_is_monotonic(self):
        scheduler = MonotonicScheduler()
        assert scheduler.now() <= time.monotonic()


class TestUndoLifecycle:
    """Tests for EMPTY -> ARMED -> EMPTY transitions."""

    def test_starts_empty(self, undo):
        assert undo.state == UndoState.EMPTY
        assert undo.pending is None
        assert undo.seconds_remaining() == 0.0

    def test_delete_arms(self, ledger, undo):
        tx = ledger.add("a", 1)
        ledger.remove_by_id(tx.id)
        assert undo.state == UndoState.ARMED
        assert undo.pending.transaction == tx
        assert undo.pending.original_index == 0
        assert undo.seconds_remaining() == 5.0

    def test_restore_returns_to_original_index(self, ledger, undo):
        ledger.add("c", 1)
        b = ledger.add("b", 1)
        ledger.add("a", 1)
        ledger.remove_by_id(b.id)
        assert undo.restore() == b
        assert _titles(ledger) == ["a", "b", "c"]
        assert undo.state == UndoState.EMPTY

    def test_restore_within_window(self, ledger, undo, scheduler):
        tx = ledger.add("a", 1)
        ledger.remove_by_id(tx.id)
        scheduler.advance(4.9)
        assert undo.state == UndoState.ARMED
        assert undo.seconds_remaining() == pytest.approx(0.1)
        assert undo.restore() == tx
        assert ledger.snapshot() == [tx]

    def test_window_expiry_finalises(self, ledger, undo, scheduler, logged):
        tx = ledger.add("a", 1)
        ledger.remove_by_id(tx.id)
        scheduler.advance(5)
        assert undo.state == UndoState.EMPTY
        assert undo.restore() is None
        assert len(ledger) == 0
        assert AuditEventType.UNDO_EXPIRED in logged()

    def test_restore_with_nothing_pending(self, ledger, undo, logged):
        assert undo.restore() is None
        assert logged() == [AuditEventType.NOTHING_TO_UNDO]

    def test_second_restore_does_nothing(self, ledger, undo):
        tx = ledger.add("a", 1)
        ledger.remove_by_id(tx.id)
        undo.restore()
        assert undo.restore() is None
        assert len(ledger) == 1

    def test_restore_cancels_timer(self, ledger, undo, scheduler):
        tx = ledger.add("a", 1)
        ledger.remove_by_id(tx.id)
        undo.restore()
        assert scheduler.pending == 0


class TestUndoSingleSlot:
    """Only the latest deletion can be undone."""

    def test_second_delete_finalises_first(self, ledger, undo, scheduler, logged):
        a = ledger.add("a", 1)
        b = ledger.add("b", 1)
        ledger.remove_by_id(a.id)
        ledger.remove_by_id(b.id)
        assert undo.pending.transaction == b
        assert scheduler.pending == 1
        assert AuditEventType.UNDO_OVERWRITTEN in logged()

        assert undo.restore() == b
        assert _titles(ledger) == ["b"]
        assert undo.restore() is None

    def test_second_delete_restarts_window(self, ledger, undo, scheduler):
        a = ledger.add("a", 1)
        b = ledger.add("b", 1)
        ledger.remove_by_id(a.id)
        scheduler.advance(4)
        ledger.remove_by_id(b.id)
        scheduler.advance(4)
        assert undo.state == UndoState.ARMED
        assert undo.restore() == b

    def test_restore_after_other_changes(self, ledger, undo):
        ledger.add("c", 1)
        b = ledger.add("b", 1)
        ledger.add("a", 1)
        ledger.remove_by_id(b.id)
        ledger.add("d", 1)
        undo.restore()
        assert _titles(ledger) == ["d", "b", "a", "c"]

    def test_bulk_replace_discards_slot(self, ledger, undo, scheduler):
        tx = ledger.add("a", 1)
        ledger.remove_by_id(tx.id)
        ledger.clear()
        assert undo.state == UndoState.EMPTY
        assert scheduler.pending == 0
        assert undo.restore() is None


class TestUndoConfiguration:
    """Tests for construction options."""

    def test_window_must_be_positive(self, ledger):
        with pytest.raises(ValueError):
            UndoController(ledger, window_seconds=0)

    def test_default_window_from_settings(self, ledger):
        assert UndoController(ledger).window_seconds == 5.0

    def test_default_scheduler_uses_real_clock(self, ledger):
        assert isinstance(UndoController(ledger).scheduler, MonotonicScheduler)

    def test_close_stops_observing(self, ledger, undo):
        undo.close()
        tx = ledger.add("a", 1)
        ledger.remove_by_id(tx.id)
        assert undo.state == UndoState.EMPTY


class TestAsyncioScheduler:
    """The undo window on a real event loop."""

    def test_expires_on_event_loop(self):

        async def scenario():
            ledger = Ledger()
            undo = UndoController(ledger, AsyncioScheduler(), window_seconds=0.05)
            tx = ledger.add("a", 1)
            ledger.remove_by_id(tx.id)
            armed = undo.state
            await asyncio.sleep(0.2)
            return armed, undo.state

        armed, after = asyncio.run(scenario())
        assert armed == UndoState.ARMED
        assert after == UndoState.EMPTY

    def test_restore_before_expiry(self):

        async def scenario():
            ledger = Ledger()
            undo = UndoController(ledger, AsyncioScheduler(), window_seconds=10)
            tx = ledger.add("a", 1)
            ledger.remove_by_id(tx.id)
            assert 0 < undo.seconds_remaining() <= 10
            restored = undo.restore()
            return ledger, restored

        ledger, restored = asyncio.run(scenario())
        assert ledger.snapshot() == [restored]

    def test_restore_after_deadline_before_callback(self):

        async def scenario():
            ledger = Ledger()
            undo = UndoController(ledger, AsyncioScheduler(), window_seconds=0.05)
            tx = ledger.add("a", 1)
            ledger.remove_by_id(tx.id)
            # Block the loop so the timer callback cannot run first
            time.sleep(0.2)
            return ledger, tx, undo.restore()

        ledger, tx, restored = asyncio.run(scenario())
        assert restored is None
        assert tx.id not in ledger


class TestDeadlineWithoutCallback:
    """The window closes on the clock even when no timer callback runs."""

    @pytest.fixture
    def clock(self):
        return FakeClock()

    @pytest.fixture
    def lazy_undo(self, ledger, clock):
        return UndoController(ledger, MonotonicScheduler(clock=clock), window_seconds=5)

    def test_restore_after_deadline(self, ledger, lazy_undo, clock, logged):
        tx = ledger.add("a", 1)
        ledger.remove_by_id(tx.id)
        clock.value += 5.3
        assert lazy_undo.restore() is None
        assert tx.id not in ledger
        assert AuditEventType.UNDO_EXPIRED in logged()

    def test_state_and_pending_follow_deadline(self, ledger, lazy_undo, clock):
        tx = ledger.add("a", 1)
        ledger.remove_by_id(tx.id)
        clock.value += 4
        assert lazy_undo.state == UndoState.ARMED
        assert lazy_undo.seconds_remaining() == pytest.approx(1)
        clock.value += 1
        assert lazy_undo.pending is None
        assert lazy_undo.state == UndoState.EMPTY
        assert lazy_undo.seconds_remaining() == 0.0

    def test_restore_inside_window(self, ledger, lazy_undo, clock):
        tx = ledger.add("a", 1)
        ledger.remove_by_id(tx.id)
        clock.value += 4.9
        assert lazy_undo.restore() == tx

    def test_expired_slot_is_not_reported_as_overwritten(self, ledger, lazy_undo, clock, logged):
        a = ledger.add("a", 1)
        b = ledger.add("b", 1)
        ledger.remove_by_id(a.id)
        clock.value += 6
        ledger.remove_by_id(b.id)
        events = logged()
        assert AuditEventType.UNDO_EXPIRED in events
        assert AuditEventType.UNDO_OVERWRITTEN not in events
        assert lazy_undo.restore() == b

    def test_many_deletions_hold_one_task(self, ledger, lazy_undo):
        for n in range(1000):
            tx = ledger.add(f"t{n}", 1)
            ledger.remove_by_id(tx.id)
        assert lazy_undo.scheduler.held == 1
        assert lazy_undo.scheduler.pending == 1

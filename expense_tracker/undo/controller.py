"""
Undo Controller

A single-slot, time-boxed undo for deletions.

States:
    EMPTY  - nothing to undo
    ARMED  - one removed transaction can be put back until its deadline

The ledger commits a removal immediately. Undo is a compensating
re-insertion at the original index, not a rollback: when the window
closes nothing happens to the ledger, the slot is simply cleared.
The deadline is checked against the scheduler clock on every read, so
a late or missing timer callback never extends the window.

CRITICAL: There is exactly one slot. A second deletion while ARMED
finalises the first one; it can no longer be undone.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from expense_tracker.audit import AuditLogger
from expense_tracker.config import get_settings
from expense_tracker.ledger import Ledger, LedgerObserver
from expense_tracker.models.transaction import Transaction
from expense_tracker.undo.scheduler import MonotonicScheduler, ScheduledTask, Scheduler


class UndoState(str, Enum):
    EMPTY = "empty"
    ARMED = "armed"


@dataclass(frozen=True)
class PendingDeletion:
    """What the slot holds while ARMED."""
    transaction: Transaction
    original_index: int
    expires_at: float


class UndoController(LedgerObserver):
    """
    Arms on every ledger removal and can reverse the latest one.

    The controller subscribes itself to the ledger on creation, so any
    ``ledger.remove_by_id`` call arms it.
    """

    def __init__(
        self,
        ledger: Ledger,
        scheduler: Optional[Scheduler] = None,
        window_seconds: Optional[float] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        if window_seconds is None:
            window_seconds = get_settings().ledger.undo_window_seconds
        if window_seconds <= 0:
            raise ValueError(f"window_seconds must be positive, got {window_seconds}")

        self._ledger = ledger
        self._scheduler = scheduler or MonotonicScheduler()
        self._window = float(window_seconds)
        self._audit = audit_logger or ledger.audit_logger
        self._pending: Optional[PendingDeletion] = None
        self._timer: Optional[ScheduledTask] = None
        ledger.subscribe(self)

    @property
    def state(self) -> UndoState:
        self._expire_if_due()
        return UndoState.ARMED if self._pending is not None else UndoState.EMPTY

    @property
    def pending(self) -> Optional[PendingDeletion]:
        self._expire_if_due()
        return self._pending

    @property
    def window_seconds(self) -> float:
        return self._window

    @property
    def scheduler(self) -> Scheduler:
        return self._scheduler

    def seconds_remaining(self) -> float:
        """Time left in the undo window; 0 when EMPTY."""
        self._expire_if_due()
        if self._pending is None:
            return 0.0
        return max(0.0, self._pending.expires_at - self._scheduler.now())

    # ------------------------------------------------------------------
    # Ledger notifications
    # ------------------------------------------------------------------

    def on_removed(self, transaction: Transaction, index: int) -> None:
        self.arm(transaction, index)

    def on_replaced(self) -> None:
        # The positions the slot refers to no longer exist
        self._clear()

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def arm(self, transaction: Transaction, original_index: int) -> None:
        """Hold a removed transaction, finalising whatever was held before."""
        self._expire_if_due()
        previous = self._pending
        self._clear()
        if previous is not None:
            self._audit.log_undo_overwritten(previous.transaction, transaction)

        self._pending = PendingDeletion(
            transaction=transaction,
            original_index=original_index,
            expires_at=self._scheduler.now() + self._window,
        )
        self._timer = self._scheduler.call_later(self._window, self._expire)

    def restore(self) -> Optional[Transaction]:
        """
        Put the pending transaction back at its original position.

        Returns:
            The restored transaction, or None when there was nothing to undo
        """
        self._expire_if_due()
        pending = self._pending
        if pending is None:
            self._audit.log_nothing_to_undo()
            return None

        self._clear()
        self._ledger.restore(pending.transaction, pending.original_index)
        return pending.transaction

    def _expire_if_due(self) -> None:
        # The deadline holds even if the timer callback has not run yet
        if self._pending is None or self._scheduler.now() < self._pending.expires_at:
            return
        if self._timer is not None:
            self._timer.cancel()
        self._expire()

    def _expire(self) -> None:
        pending = self._pending
        self._pending = None
        self._timer = None
        if pending is not None:
            self._audit.log_undo_expired(pending.transaction, pending.original_index)

    def _clear(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
        self._timer = None
        self._pending = None

    def close(self) -> None:
        """Drop any pending undo and stop observing the ledger."""
        self._clear()
        self._ledger.unsubscribe(self)

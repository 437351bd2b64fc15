"""Undo package."""

from expense_tracker.undo.controller import PendingDeletion, UndoController, UndoState
from expense_tracker.undo.scheduler import (
    AsyncioScheduler,
    ManualScheduler,
    MonotonicScheduler,
    ScheduledTask,
    Scheduler,
)

__all__ = [
    "AsyncioScheduler",
    "ManualScheduler",
    "MonotonicScheduler",
    "PendingDeletion",
    "ScheduledTask",
    "Scheduler",
    "UndoController",
    "UndoState",
]

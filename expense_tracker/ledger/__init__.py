"""Ledger package."""

from expense_tracker.ledger.ledger import (
    DuplicateTransactionError,
    Ledger,
    LedgerError,
    LedgerObserver,
    NotFoundError,
    Removal,
)

__all__ = [
    "DuplicateTransactionError",
    "Ledger",
    "LedgerError",
    "LedgerObserver",
    "NotFoundError",
    "Removal",
]

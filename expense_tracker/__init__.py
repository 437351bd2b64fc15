"""
Expense Tracker - Core Package

The transaction ledger behind a personal expense tracker: validated
entries, derived totals and charts data, time-boxed undo of deletions,
and local persistence with JSON backups.

DESIGN PRINCIPLES:
1. The ledger is the single source of truth
2. Reject bad input with a clear message, never fix it silently
3. A failed save never loses the session's data
4. Every mutation is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Expense Tracker Team"

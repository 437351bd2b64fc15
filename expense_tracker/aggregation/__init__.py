"""Aggregation package."""

from expense_tracker.aggregation.aggregator import (
    category_breakdown,
    category_summary,
    compute_totals,
    quick_stats,
    recent_transactions,
    trend,
)

__all__ = [
    "category_breakdown",
    "category_summary",
    "compute_totals",
    "quick_stats",
    "recent_transactions",
    "trend",
]

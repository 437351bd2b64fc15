"""
Data Models Package

This package contains all Pydantic models used by the expense tracker.
All data flowing through the ledger must conform to these schemas.
"""

from expense_tracker.models.transaction import (
    DEFAULT_CATEGORIES,
    Category,
    CategoryKey,
    Theme,
    Transaction,
    TransactionType,
    UserSettings,
    category_info,
    resolve_category,
)
from expense_tracker.models.summary import (
    CategoryShare,
    CategorySummary,
    Dashboard,
    QuickStats,
    Totals,
    TrendPoint,
)
from expense_tracker.models.backup import (
    ExportDocument,
    ImportDocument,
)
from expense_tracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Transaction models
    "DEFAULT_CATEGORIES",
    "Category",
    "CategoryKey",
    "Theme",
    "Transaction",
    "TransactionType",
    "UserSettings",
    "category_info",
    "resolve_category",
    # Aggregate results
    "CategoryShare",
    "CategorySummary",
    "Dashboard",
    "QuickStats",
    "Totals",
    "TrendPoint",
    # Backups
    "ExportDocument",
    "ImportDocument",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]

"""Validation package."""

from expense_tracker.validation.validator import (
    RULE_MESSAGES,
    TransactionValidator,
    ValidationError,
    ValidationIssue,
    ValidationRule,
    has_storage_shape,
)

__all__ = [
    "RULE_MESSAGES",
    "TransactionValidator",
    "ValidationError",
    "ValidationIssue",
    "ValidationRule",
    "has_storage_shape",
]

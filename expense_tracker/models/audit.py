"""
Audit Models for the Expense Tracker

Every ledger mutation and every undo transition produces an audit event.
This provides:
1. Traceability of what happened to each transaction
2. Debugging information when storage misbehaves
3. A record of deletions that were never undone

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from expense_tracker.models.transaction import Transaction


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Ledger mutations
    TRANSACTION_ADDED = "transaction_added"
    TRANSACTION_REMOVED = "transaction_removed"
    TRANSACTION_RESTORED = "transaction_restored"
    LEDGER_REPLACED = "ledger_replaced"
    ENTRIES_DROPPED = "entries_dropped"
    VALIDATION_FAILED = "validation_failed"

    # Undo
    UNDO_EXPIRED = "undo_expired"
    UNDO_OVERWRITTEN = "undo_overwritten"
    NOTHING_TO_UNDO = "nothing_to_undo"

    # Persistence
    PERSISTENCE_FAILED = "persistence_failed"
    SETTINGS_UPDATED = "settings_updated"

    # Backups
    BACKUP_EXPORTED = "backup_exported"
    IMPORT_APPLIED = "import_applied"
    IMPORT_CANCELLED = "import_cancelled"
    IMPORT_REJECTED = "import_rejected"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'ledger', 'backup')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., parse and apply of one import)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


_LABEL_LENGTH = 80


def _label(tx: Transaction) -> str:
    # Titles are unbounded; descriptions are not
    if len(tx.title) <= _LABEL_LENGTH:
        return tx.title
    return tx.title[: _LABEL_LENGTH - 3] + "..."


def _tx_details(tx: Transaction) -> dict[str, Any]:
    return {
        "title": tx.title,
        "amount": str(tx.amount),
        "category": tx.category,
    }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.transaction_added(tx)
        event = AuditEventBuilder.undo_expired(tx, index)
    """

    @staticmethod
    def transaction_added(tx: Transaction) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_ADDED,
            entity_type="transaction",
            entity_id=tx.id,
            description=f"Transaction added: {_label(tx)} ({tx.amount})",
            details=_tx_details(tx),
            is_user_action=True,
        )

    @staticmethod
    def transaction_removed(tx: Transaction, index: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_REMOVED,
            entity_type="transaction",
            entity_id=tx.id,
            description=f"Transaction removed: {_label(tx)}",
            details={**_tx_details(tx), "index": index},
            is_user_action=True,
        )

    @staticmethod
    def transaction_restored(tx: Transaction, index: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_RESTORED,
            entity_type="transaction",
            entity_id=tx.id,
            description=f"Transaction restored at position {index}: {_label(tx)}",
            details={**_tx_details(tx), "index": index},
            is_user_action=True,
        )

    @staticmethod
    def ledger_replaced(kept: int, dropped: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_REPLACED,
            entity_type="ledger",
            description=f"Ledger replaced with {kept} transactions",
            details={"kept": kept, "dropped": dropped},
        )

    @staticmethod
    def entries_dropped(dropped: int, source: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENTRIES_DROPPED,
            severity=AuditSeverity.WARNING,
            entity_type="ledger",
            description=f"Dropped {dropped} malformed entries from {source}",
            details={"dropped": dropped, "source": source},
        )

    @staticmethod
    def validation_failed(field: str, rule: str, message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="transaction",
            description=f"Validation failed: {message}",
            details={"field": field, "rule": rule},
            is_user_action=True,
        )

    @staticmethod
    def undo_expired(tx: Transaction, index: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.UNDO_EXPIRED,
            entity_type="transaction",
            entity_id=tx.id,
            description=f"Undo window closed, deletion is final: {_label(tx)}",
            details={"index": index},
        )

    @staticmethod
    def undo_overwritten(tx: Transaction, replaced_by: Transaction) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.UNDO_OVERWRITTEN,
            entity_type="transaction",
            entity_id=tx.id,
            description=f"Pending undo discarded by a newer deletion: {_label(tx)}",
            details={"replaced_by": replaced_by.id},
        )

    @staticmethod
    def nothing_to_undo() -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.NOTHING_TO_UNDO,
            severity=AuditSeverity.DEBUG,
            description="Undo requested with no pending deletion",
            is_user_action=True,
        )

    @staticmethod
    def persistence_failed(key: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PERSISTENCE_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="storage",
            entity_id=key,
            description=f"Could not write '{key}' to local storage",
            error_message=error_message,
        )

    @staticmethod
    def settings_updated(changes: dict[str, Any]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SETTINGS_UPDATED,
            entity_type="settings",
            description="User settings updated",
            details=changes,
            is_user_action=True,
        )

    @staticmethod
    def backup_exported(filename: str, count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BACKUP_EXPORTED,
            entity_type="backup",
            entity_id=filename,
            description=f"Exported {count} transactions to {filename}",
            details={"transaction_count": count},
            is_user_action=True,
        )

    @staticmethod
    def import_applied(
        kept: int,
        dropped: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.IMPORT_APPLIED,
            entity_type="backup",
            correlation_id=correlation_id,
            description=f"Backup imported: {kept} transactions",
            details={"kept": kept, "dropped": dropped},
            is_user_action=True,
        )

    @staticmethod
    def import_cancelled(correlation_id: Optional[UUID] = None) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.IMPORT_CANCELLED,
            entity_type="backup",
            correlation_id=correlation_id,
            description="User declined to replace data with backup",
            is_user_action=True,
        )

    @staticmethod
    def import_rejected(
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.IMPORT_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="backup",
            correlation_id=correlation_id,
            description="Backup file rejected",
            error_message=error_message,
            is_user_action=True,
        )

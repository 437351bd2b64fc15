"""
Audit Logger

DESIGN DECISION: Every ledger mutation and undo transition is logged.

The audit logger:
- Is synchronous, like the ledger it observes
- Gracefully handles failures (a broken audit store never fails a ledger operation)
- Supports correlation IDs to trace related events
"""

from typing import Any, Optional
from uuid import UUID, uuid4

import structlog

from expense_tracker.models.audit import AuditEvent, AuditEventBuilder
from expense_tracker.models.transaction import Transaction
from expense_tracker.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. An audit store, when one is configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("expense_tracker.audit")

    @property
    def storage(self) -> Optional[AuditStorageInterface]:
        return self._storage

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()
        severity = event.severity.value

        if severity in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif severity == "warning":
            self._logger.warning("audit_event", **log_dict)
        elif severity == "debug":
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage is not None:
            try:
                return self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    def log_transaction_added(self, tx: Transaction) -> None:
        """Log a new transaction."""
        self.log(AuditEventBuilder.transaction_added(tx))

    def log_transaction_removed(self, tx: Transaction, index: int) -> None:
        """Log a deletion (still undoable at this point)."""
        self.log(AuditEventBuilder.transaction_removed(tx, index))

    def log_transaction_restored(self, tx: Transaction, index: int) -> None:
        self.log(AuditEventBuilder.transaction_restored(tx, index))

    def log_ledger_replaced(self, kept: int, dropped: int) -> None:
        self.log(AuditEventBuilder.ledger_replaced(kept, dropped))

    def log_entries_dropped(self, dropped: int, source: str) -> None:
        """Log malformed entries skipped while loading or importing."""
        self.log(AuditEventBuilder.entries_dropped(dropped, source))

    def log_validation_failed(self, field: str, rule: str, message: str) -> None:
        self.log(AuditEventBuilder.validation_failed(field, rule, message))

    def log_undo_expired(self, tx: Transaction, index: int) -> None:
        self.log(AuditEventBuilder.undo_expired(tx, index))

    def log_undo_overwritten(self, tx: Transaction, replaced_by: Transaction) -> None:
        self.log(AuditEventBuilder.undo_overwritten(tx, replaced_by))

    def log_nothing_to_undo(self) -> None:
        self.log(AuditEventBuilder.nothing_to_undo())

    def log_persistence_failed(self, key: Optional[str], error_message: str) -> None:
        """Log a storage write that did not go through."""
        self.log(AuditEventBuilder.persistence_failed(key or "unknown", error_message))

    def log_settings_updated(self, changes: dict[str, Any]) -> None:
        self.log(AuditEventBuilder.settings_updated(changes))

    def log_backup_exported(self, filename: str, count: int) -> None:
        self.log(AuditEventBuilder.backup_exported(filename, count))

    def log_import_applied(
        self,
        kept: int,
        dropped: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.import_applied(kept, dropped, correlation_id))

    def log_import_cancelled(self, correlation_id: Optional[UUID] = None) -> None:
        self.log(AuditEventBuilder.import_cancelled(correlation_id))

    def log_import_rejected(
        self,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.import_rejected(error_message, correlation_id))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a multi-step user action (e.g., an import).
    Pass it through all subsequent operations.
    """
    return uuid4()

"""
Main Orchestrator for the Expense Tracker

This module ties together all the components and defines the
operations a presentation layer calls:
1. Entry form (title + unsigned amount + income/expense + category)
2. Delete with undo
3. Reset and backup import (both require confirmation)
4. Dashboard and category views
5. User settings

The orchestrator holds no transaction state of its own. Every read
goes through a fresh ledger snapshot.
"""

from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Any, Callable, Optional, Union

from expense_tracker.aggregation import (
    category_breakdown,
    category_summary,
    compute_totals,
    quick_stats,
    recent_transactions,
    trend,
)
from expense_tracker.audit import AuditLogger, create_correlation_id
from expense_tracker.backup import (
    ImportFormatError,
    ImportOutcome,
    apply_import,
    build_export_document,
    parse_import_document,
    write_export,
)
from expense_tracker.config import get_settings
from expense_tracker.ledger import Ledger, Removal
from expense_tracker.models.backup import ImportDocument
from expense_tracker.models.summary import CategorySummary, Dashboard, Totals
from expense_tracker.models.transaction import (
    CategoryKey,
    Theme,
    Transaction,
    TransactionType,
    UserSettings,
)
from expense_tracker.services.storage import (
    AuditStorageInterface,
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    PersistenceAdapter,
    PersistenceError,
)
from expense_tracker.undo import MonotonicScheduler, Scheduler, UndoController, UndoState
from expense_tracker.validation import ValidationError

DateLike = Union[date, datetime]


@dataclass(frozen=True)
class DashboardLimits:
    recent: int = 5
    breakdown: int = 5
    trend_days: int = 7


class ExpenseTracker:
    """
    Facade over ledger, undo controller and persistence.

    DESIGN DECISION: Destructive bulk operations (reset, import) take a
    ``confirm`` callback and do nothing unless it returns True. The
    callback is where a UI shows its dialog.
    """

    def __init__(
        self,
        ledger: Ledger,
        undo: UndoController,
        adapter: Optional[PersistenceAdapter] = None,
        audit_logger: Optional[AuditLogger] = None,
        limits: Optional[DashboardLimits] = None,
    ):
        self._ledger = ledger
        self._undo = undo
        self._adapter = adapter or ledger.adapter
        self._audit = audit_logger or ledger.audit_logger
        if limits is None:
            ledger_settings = get_settings().ledger
            limits = DashboardLimits(
                recent=ledger_settings.recent_limit,
                breakdown=ledger_settings.breakdown_limit,
                trend_days=ledger_settings.trend_days,
            )
        self._limits = limits
        self._settings = self._adapter.load_settings()

    @property
    def ledger(self) -> Ledger:
        return self._ledger

    @property
    def undo(self) -> UndoController:
        return self._undo

    @property
    def limits(self) -> DashboardLimits:
        return self._limits

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    def submit_transaction(
        self,
        title: Any,
        amount: Any,
        transaction_type: Union[TransactionType, str] = TransactionType.EXPENSE,
        category: Union[str, CategoryKey, None] = CategoryKey.OTHER,
    ) -> Transaction:
        """
        Handle the entry form.

        ``amount`` is what the user typed (text or number, no sign); the
        income/expense choice decides the sign.

        Raises:
            ValidationError: With the first violated rule
        """
        transaction_type = TransactionType(transaction_type)
        validator = self._ledger.validator
        try:
            clean_title, value = validator.validate(title, amount, allow_negative=False)
        except ValidationError as e:
            self._audit.log_validation_failed(e.issue.field, e.rule.value, e.message)
            raise

        signed = -value if transaction_type == TransactionType.EXPENSE else value
        return self._ledger.add(clean_title, signed, category)

    def delete_transaction(self, transaction_id: str) -> Removal:
        """
        Remove a transaction; it stays restorable for the undo window.

        Raises:
            NotFoundError: If no transaction has this id
        """
        return self._ledger.remove_by_id(transaction_id)

    def undo_delete(self) -> Optional[Transaction]:
        """Restore the latest deletion, or return None if there is none."""
        return self._undo.restore()

    @property
    def can_undo(self) -> bool:
        return self._undo.state == UndoState.ARMED

    def reset(self, confirm: Callable[[], bool]) -> bool:
        """Delete every transaction after confirmation. Not undoable."""
        if not confirm():
            return False
        self._ledger.clear()
        return True

    def transactions(self) -> list[Transaction]:
        return self._ledger.snapshot()

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def totals(self) -> Totals:
        return compute_totals(self._ledger.snapshot())

    def dashboard(self, reference_date: Optional[DateLike] = None) -> Dashboard:
        """Compute every dashboard figure from one snapshot."""
        snapshot = self._ledger.snapshot()
        return Dashboard(
            totals=compute_totals(snapshot),
            recent=recent_transactions(snapshot, self._limits.recent),
            breakdown=category_breakdown(snapshot, limit=self._limits.breakdown),
            trend=trend(snapshot, days=self._limits.trend_days, reference_date=reference_date),
            quick_stats=quick_stats(snapshot, reference_date=reference_date),
        )

    def category_overview(self) -> list[CategorySummary]:
        return category_summary(self._ledger.snapshot())

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    @property
    def settings(self) -> UserSettings:
        return self._settings

    def update_settings(self, **changes: Any) -> UserSettings:
        """
        Apply and persist settings changes.

        Raises:
            pydantic.ValidationError: If a value is not acceptable
        """
        updated = UserSettings.model_validate(
            {**self._settings.model_dump(), **changes}
        )
        self._settings = updated
        error = self._adapter.save_settings(updated)
        if error is not None:
            self._audit.log_persistence_failed(error.key, str(error))
        dumped = updated.model_dump(mode="json")
        self._audit.log_settings_updated(
            {key: dumped[key] for key in changes if key in dumped}
        )
        return updated

    def set_theme(self, theme: Union[Theme, str]) -> UserSettings:
        return self.update_settings(theme=Theme(theme))

    def set_currency(self, currency: str) -> UserSettings:
        return self.update_settings(currency=currency)

    # ------------------------------------------------------------------
    # Backups
    # ------------------------------------------------------------------

    def export_backup(
        self,
        directory: Union[str, Path],
        export_date: Optional[datetime] = None,
    ) -> Path:
        """Write a backup file and return its path."""
        document = build_export_document(
            self._ledger.snapshot(),
            self._settings,
            export_date=export_date,
        )
        path = write_export(document, directory)
        self._audit.log_backup_exported(path.name, len(document.transactions))
        return path

    def import_backup(
        self,
        source: Union[str, bytes],
        confirm: Callable[[ImportDocument], bool],
    ) -> ImportOutcome:
        """
        Replace all data with a backup document.

        Raises:
            ImportFormatError: If the document is structurally invalid;
                nothing is changed in that case
        """
        correlation_id = create_correlation_id()
        try:
            document = parse_import_document(source)
        except ImportFormatError as e:
            self._audit.log_import_rejected(str(e), correlation_id)
            raise

        outcome = apply_import(document, self._ledger, self._adapter, confirm)
        if not outcome.applied:
            self._audit.log_import_cancelled(correlation_id)
            return outcome

        if outcome.settings_applied:
            self._settings = document.settings
        self._audit.log_import_applied(outcome.kept, outcome.dropped, correlation_id)
        return outcome

    @property
    def last_persistence_error(self) -> Optional[PersistenceError]:
        return self._ledger.last_persistence_error


def create_tracker(
    data_dir: Optional[Union[str, Path]] = None,
    scheduler: Optional[Scheduler] = None,
    use_storage: bool = True,
    audit_storage: Optional[AuditStorageInterface] = None,
) -> ExpenseTracker:
    """
    Factory function to create all application components.

    Args:
        data_dir: Directory for the JSON store. Defaults to the
                  configured data directory.
        scheduler: Drives the undo window. Defaults to a MonotonicScheduler
                   on the system clock.
        use_storage: Set to False to keep everything in memory.
        audit_storage: Optional audit trail backend.

    Returns:
        A loaded ExpenseTracker
    """
    if use_storage:
        directory = data_dir or get_settings().storage.data_path
        store = JsonFileKeyValueStore(directory)
    else:
        store = InMemoryKeyValueStore()

    audit_logger = AuditLogger(audit_storage)
    adapter = PersistenceAdapter(store)
    ledger = Ledger(adapter, audit_logger=audit_logger)
    ledger.load()
    undo = UndoController(ledger, scheduler or MonotonicScheduler(), audit_logger=audit_logger)

    return ExpenseTracker(ledger, undo, adapter=adapter, audit_logger=audit_logger)

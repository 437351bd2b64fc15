"""
Transaction Ledger

The ledger owns the ordered transaction sequence, newest first.
No other component mutates it; readers get snapshots.

GUARANTEES:
- Every stored transaction passed the validation rules
- Transaction ids are unique
- Every mutation writes the full list through the persistence adapter
  before returning; a failed write is logged and does not fail the call
"""

from abc import ABC
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Iterator, Mapping, NamedTuple, Optional, Union
from uuid import uuid4

import pydantic

from expense_tracker.audit import AuditLogger
from expense_tracker.models.transaction import CategoryKey, Transaction
from expense_tracker.services.storage import (
    InMemoryKeyValueStore,
    PersistenceAdapter,
    PersistenceError,
)
from expense_tracker.validation import (
    TransactionValidator,
    ValidationError,
    has_storage_shape,
)


class LedgerError(Exception):
    """Base exception for ledger operations."""
    pass


class NotFoundError(LedgerError):
    """No transaction with the given id."""

    def __init__(self, transaction_id: str):
        super().__init__(f"Transaction not found: {transaction_id}")
        self.transaction_id = transaction_id


class DuplicateTransactionError(LedgerError):
    """A transaction with this id is already in the ledger."""

    def __init__(self, transaction_id: str):
        super().__init__(f"Transaction already in ledger: {transaction_id}")
        self.transaction_id = transaction_id


class Removal(NamedTuple):
    """A removed transaction and the index it occupied."""
    transaction: Transaction
    index: int


class LedgerObserver(ABC):
    """
    Receives notifications about ledger changes.

    Both hooks default to doing nothing; override what you need.
    """

    def on_removed(self, transaction: Transaction, index: int) -> None:
        pass

    def on_replaced(self) -> None:
        pass


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid4())


class Ledger:
    """
    The authoritative in-memory collection of transactions.

    Usage:
        ledger = Ledger(adapter)
        ledger.load()
        tx = ledger.add("Coffee", Decimal("-4.50"), "food")
        removal = ledger.remove_by_id(tx.id)
    """

    def __init__(
        self,
        adapter: Optional[PersistenceAdapter] = None,
        validator: Optional[TransactionValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        clock: Optional[Callable[[], datetime]] = None,
        id_factory: Optional[Callable[[], str]] = None,
    ):
        """
        Initialize an empty ledger.

        Args:
            adapter: Where the list is persisted. Defaults to an
                     in-memory store.
            validator: Input rules. Defaults to the configured limits.
            audit_logger: Defaults to a local-only logger.
            clock: Source of creation timestamps.
            id_factory: Source of new transaction ids.
        """
        self._adapter = adapter or PersistenceAdapter(InMemoryKeyValueStore())
        self._validator = validator or TransactionValidator()
        self._audit = audit_logger or AuditLogger()
        self._clock = clock or _utcnow
        self._id_factory = id_factory or _new_id
        self._transactions: list[Transaction] = []
        self._observers: list[LedgerObserver] = []
        self.last_persistence_error: Optional[PersistenceError] = None

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @property
    def adapter(self) -> PersistenceAdapter:
        return self._adapter

    @property
    def validator(self) -> TransactionValidator:
        return self._validator

    @property
    def audit_logger(self) -> AuditLogger:
        return self._audit

    def snapshot(self) -> list[Transaction]:
        """
        Copy of the current sequence, newest first.

        The list is the caller's; the transactions in it are frozen.
        """
        return list(self._transactions)

    def index_of(self, transaction_id: str) -> int:
        """Return the position of a transaction, or -1 if absent."""
        for idx, tx in enumerate(self._transactions):
            if tx.id == transaction_id:
                return idx
        return -1

    def get(self, transaction_id: str) -> Optional[Transaction]:
        idx = self.index_of(transaction_id)
        return self._transactions[idx] if idx >= 0 else None

    def __len__(self) -> int:
        return len(self._transactions)

    def __iter__(self) -> Iterator[Transaction]:
        return iter(self.snapshot())

    def __contains__(self, transaction_id: object) -> bool:
        return isinstance(transaction_id, str) and self.index_of(transaction_id) >= 0

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    def subscribe(self, observer: LedgerObserver) -> None:
        if observer not in self._observers:
            self._observers.append(observer)

    def unsubscribe(self, observer: LedgerObserver) -> None:
        if observer in self._observers:
            self._observers.remove(observer)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add(
        self,
        title: Any,
        amount: Any,
        category: Union[str, CategoryKey, None] = CategoryKey.OTHER,
    ) -> Transaction:
        """
        Validate and insert a new transaction at the front.

        Args:
            title: Label; trimmed before storing
            amount: Signed amount (negative for expenses)
            category: Registry key; unknown values become "other"

        Returns:
            The created Transaction

        Raises:
            ValidationError: With the first violated rule
        """
        try:
            clean_title, value = self._validator.validate(title, amount)
        except ValidationError as e:
            self._audit.log_validation_failed(
                e.issue.field, e.rule.value, e.message
            )
            raise

        tx = Transaction(
            id=self._next_id(),
            title=clean_title,
            amount=value,
            category=category,
            date=self._clock(),
        )
        self._transactions.insert(0, tx)
        self._persist()
        self._audit.log_transaction_added(tx)
        return tx

    def remove_by_id(self, transaction_id: str) -> Removal:
        """
        Remove a transaction and report where it was.

        Observers are notified after the removal is persisted.

        Raises:
            NotFoundError: If no transaction has this id
        """
        idx = self.index_of(transaction_id)
        if idx < 0:
            raise NotFoundError(transaction_id)

        tx = self._transactions.pop(idx)
        self._persist()
        self._audit.log_transaction_removed(tx, idx)
        for observer in list(self._observers):
            observer.on_removed(tx, idx)
        return Removal(tx, idx)

    def restore(self, transaction: Transaction, index: int) -> int:
        """
        Reinsert a previously removed transaction.

        The entry is trusted and not re-validated. The index is clamped
        to the current length.

        Returns:
            The index the transaction now occupies

        Raises:
            DuplicateTransactionError: If the id is already present
        """
        if self.index_of(transaction.id) >= 0:
            raise DuplicateTransactionError(transaction.id)

        position = min(max(index, 0), len(self._transactions))
        self._transactions.insert(position, transaction)
        self._persist()
        self._audit.log_transaction_restored(transaction, position)
        return position

    def replace_all(
        self,
        entries: Iterable[Union[Transaction, Mapping[str, Any]]],
        source: str = "import",
    ) -> int:
        """
        Replace the whole sequence.

        Each entry is checked the way stored data is: shape check, then
        the add() rules, then id uniqueness. Failing entries are dropped.

        Returns:
            Number of dropped entries
        """
        accepted, dropped = self._accept(entries)
        self._transactions = accepted
        self._persist()
        if dropped:
            self._audit.log_entries_dropped(dropped, source)
        self._audit.log_ledger_replaced(len(accepted), dropped)
        for observer in list(self._observers):
            observer.on_replaced()
        return dropped

    def clear(self) -> None:
        """Remove every transaction."""
        self.replace_all([], source="reset")

    def load(self) -> int:
        """
        Populate from the persistence adapter without writing back.

        Returns:
            Number of dropped entries
        """
        accepted, dropped = self._accept(self._adapter.load_transactions())
        self._transactions = accepted
        if dropped:
            self._audit.log_entries_dropped(dropped, "storage")
        for observer in list(self._observers):
            observer.on_replaced()
        return dropped

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _next_id(self) -> str:
        new_id = self._id_factory()
        while self.index_of(new_id) >= 0:
            new_id = self._id_factory()
        return new_id

    def _accept(
        self,
        entries: Iterable[Union[Transaction, Mapping[str, Any]]],
    ) -> tuple[list[Transaction], int]:
        accepted: list[Transaction] = []
        seen: set[str] = set()
        dropped = 0

        for entry in entries:
            tx = self._coerce(entry)
            if tx is None or tx.id in seen:
                dropped += 1
                continue
            seen.add(tx.id)
            accepted.append(tx)

        return accepted, dropped

    def _coerce(self, entry: Any) -> Optional[Transaction]:
        if isinstance(entry, Transaction):
            tx = entry
        elif has_storage_shape(entry):
            try:
                tx = Transaction.model_validate(dict(entry))
            except pydantic.ValidationError:
                return None
        else:
            return None
        if not self._validator.is_valid_transaction(tx):
            return None
        return tx

    def _persist(self) -> None:
        error = self._adapter.save_transactions(self._transactions)
        self.last_persistence_error = error
        if error is not None:
            self._audit.log_persistence_failed(error.key, str(error))

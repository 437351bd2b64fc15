"""
Abstract Storage Interface

DESIGN DECISION: The ledger talks to a plain key-value store, the same
contract as web local storage. This allows us to:
1. Keep data in JSON files on disk for a desktop host
2. Use in-memory storage for testing
3. Keep business logic decoupled from storage implementation

The interface is intentionally tiny: get, set and delete of text values.
"""

from abc import ABC, abstractmethod
from typing import Iterator, Optional

from expense_tracker.models.audit import AuditEvent


class KeyValueStore(ABC):
    """
    Abstract interface for a durable string key-value store.

    Implementations raise PersistenceError when the backend fails and
    StorageKeyError for keys they cannot represent.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """
        Read the value stored under a key.

        Returns:
            The stored text, or None if the key is absent

        Raises:
            PersistenceError: If the backend cannot be read
        """
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """
        Store a value, replacing any previous one.

        Raises:
            PersistenceError: If the write fails
        """
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove a key. Deleting an absent key is not an error."""
        pass

    @abstractmethod
    def keys(self) -> Iterator[str]:
        """Iterate over the stored keys."""
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        """
        Get all events for a specific entity, in chronological order.
        """
        pass

    @abstractmethod
    def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events (newest first).
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class PersistenceError(StorageError):
    """
    A read or write against the store failed.

    The adapter hands these back as values; the ledger logs them and
    carries on with its in-memory state.
    """

    def __init__(self, message: str, key: Optional[str] = None, operation: str = "write"):
        super().__init__(message)
        self.key = key
        self.operation = operation


class StorageKeyError(StorageError, ValueError):
    """Key cannot be used with this store."""
    pass

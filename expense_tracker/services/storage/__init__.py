"""
Storage Services Package

Provides the abstract key-value interface, its implementations, and the
adapter that maps ledger data onto storage keys.
"""

from expense_tracker.services.storage.interface import (
    AuditStorageInterface,
    KeyValueStore,
    PersistenceError,
    StorageError,
    StorageKeyError,
)
from expense_tracker.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryKeyValueStore,
)
from expense_tracker.services.storage.json_files import JsonFileKeyValueStore
from expense_tracker.services.storage.adapter import PersistenceAdapter

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "KeyValueStore",
    # Exceptions
    "PersistenceError",
    "StorageError",
    "StorageKeyError",
    # Implementations
    "InMemoryAuditStorage",
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "PersistenceAdapter",
]

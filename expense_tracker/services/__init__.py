"""Services package."""

from expense_tracker.services.storage import (
    AuditStorageInterface,
    InMemoryAuditStorage,
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    KeyValueStore,
    PersistenceAdapter,
    PersistenceError,
    StorageError,
    StorageKeyError,
)

__all__ = [
    "AuditStorageInterface",
    "InMemoryAuditStorage",
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "KeyValueStore",
    "PersistenceAdapter",
    "PersistenceError",
    "StorageError",
    "StorageKeyError",
]

"""In-memory storage backends, used for tests and storage-less sessions."""

from typing import Iterator, Optional

from expense_tracker.models.audit import AuditEvent
from expense_tracker.services.storage.interface import (
    AuditStorageInterface,
    KeyValueStore,
    StorageKeyError,
)


class InMemoryKeyValueStore(KeyValueStore):
    """A dict behind the KeyValueStore interface. Lost when the process ends."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        if not key:
            raise StorageKeyError("Storage key must not be empty")
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> Iterator[str]:
        return iter(list(self._data))


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only audit trail kept in a list."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        events = [
            e for e in self._events
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]
        events.sort(key=lambda e: e.timestamp)
        return events

    def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        # Reverse insertion order keeps events with equal timestamps stable
        return list(reversed(self._events))[:limit]

    def __len__(self) -> int:
        return len(self._events)

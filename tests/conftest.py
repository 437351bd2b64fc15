"""
Shared fixtures.

Ledgers built here use a fixed clock and sequential ids so assertions
do not depend on wall time or uuid4.
"""

import itertools
from datetime import datetime, timezone

import pytest

from expense_tracker.audit import AuditLogger
from expense_tracker.config import get_settings
from expense_tracker.ledger import Ledger
from expense_tracker.models.audit import AuditEventType
from expense_tracker.services.storage import (
    InMemoryAuditStorage,
    InMemoryKeyValueStore,
    PersistenceAdapter,
)
from expense_tracker.undo import ManualScheduler

FIXED_NOW = datetime(2024, 3, 10, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def fresh_settings():
    """Settings are cached; tests that touch the environment need a clean slate."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()


@pytest.fixture
def audit_logger(audit_storage):
    return AuditLogger(audit_storage)


@pytest.fixture
def store():
    return InMemoryKeyValueStore()


@pytest.fixture
def adapter(store):
    return PersistenceAdapter(store)


@pytest.fixture
def ledger(adapter, audit_logger):
    counter = itertools.count(1)
    return Ledger(
        adapter,
        audit_logger=audit_logger,
        clock=lambda: FIXED_NOW,
        id_factory=lambda: f"tx-{next(counter)}",
    )


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def logged(audit_storage):
    """Returns a callable listing audit event types in the order they were logged."""

    def event_types() -> list[AuditEventType]:
        recent = audit_storage.get_recent_events(limit=len(audit_storage))
        return [e.event_type for e in reversed(recent)]

    return event_types

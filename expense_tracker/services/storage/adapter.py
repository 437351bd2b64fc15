"""
Persistence Adapter

Reads and writes the transaction list and user settings through a
KeyValueStore under versioned keys.

Reads never fail: missing, unparsable or wrongly shaped data loads as
empty (or as default settings). Writes never raise: a failure comes back
as a PersistenceError value for the caller to log, and the in-memory
state stays authoritative for the session.
"""

import json
from decimal import Decimal
from typing import Any, Iterable, Optional

import pydantic
import structlog

from expense_tracker.config import get_settings
from expense_tracker.models.transaction import Transaction, UserSettings
from expense_tracker.services.storage.interface import (
    KeyValueStore,
    PersistenceError,
)
from expense_tracker.validation import has_storage_shape


class PersistenceAdapter:
    """Maps ledger data onto storage keys."""

    def __init__(
        self,
        store: KeyValueStore,
        transactions_key: Optional[str] = None,
        settings_key: Optional[str] = None,
        default_settings: Optional[UserSettings] = None,
    ):
        settings = get_settings()
        storage_settings = settings.storage
        self._store = store
        self._transactions_key = transactions_key or storage_settings.transactions_key
        self._settings_key = settings_key or storage_settings.settings_key
        if default_settings is None:
            app = settings.app
            default_settings = UserSettings(
                theme=app.default_theme,
                currency=app.default_currency,
            )
        self._default_settings = default_settings
        self._logger = structlog.get_logger(__name__)

    @property
    def store(self) -> KeyValueStore:
        return self._store

    @property
    def transactions_key(self) -> str:
        return self._transactions_key

    @property
    def settings_key(self) -> str:
        return self._settings_key

    def _read_json(self, key: str) -> Any:
        try:
            raw = self._store.get(key)
        except PersistenceError as e:
            self._logger.warning("storage_read_failed", key=key, error=str(e))
            return None
        if not raw:
            return None
        try:
            # Floats become Decimal straight from the text
            return json.loads(raw, parse_float=Decimal)
        except ValueError as e:
            self._logger.warning("storage_value_unparsable", key=key, error=str(e))
            return None

    def _write_json(self, key: str, payload: Any) -> Optional[PersistenceError]:
        try:
            text = json.dumps(payload, ensure_ascii=False)
            self._store.set(key, text)
        except PersistenceError as e:
            return e
        except Exception as e:
            return PersistenceError(str(e), key=key, operation="write")
        return None

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    def load_transactions(self) -> list[dict]:
        """
        Load raw transaction entries.

        Returns only entries passing the shape check; semantic validation
        is the ledger's job.
        """
        data = self._read_json(self._transactions_key)
        if not isinstance(data, list):
            if data is not None:
                self._logger.warning(
                    "storage_value_not_a_list",
                    key=self._transactions_key,
                    found=type(data).__name__,
                )
            return []

        entries = [entry for entry in data if has_storage_shape(entry)]
        dropped = len(data) - len(entries)
        if dropped:
            self._logger.warning(
                "storage_entries_malformed",
                key=self._transactions_key,
                dropped=dropped,
            )
        return entries

    def save_transactions(
        self,
        transactions: Iterable[Transaction],
    ) -> Optional[PersistenceError]:
        """
        Serialize the full list.

        Returns:
            None on success, the PersistenceError otherwise
        """
        payload = [tx.to_storage_dict() for tx in transactions]
        return self._write_json(self._transactions_key, payload)

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    @property
    def default_settings(self) -> UserSettings:
        return self._default_settings

    def load_settings(self) -> UserSettings:
        """Load user settings, falling back to defaults for anything unusable."""
        data = self._read_json(self._settings_key)
        if not isinstance(data, dict):
            return self._default_settings
        merged = {**self._default_settings.model_dump(mode="json"), **data}
        try:
            return UserSettings.model_validate(merged)
        except pydantic.ValidationError as e:
            self._logger.warning(
                "stored_settings_invalid",
                key=self._settings_key,
                error=str(e),
            )
            return self._default_settings

    def save_settings(self, settings: UserSettings) -> Optional[PersistenceError]:
        return self._write_json(self._settings_key, settings.model_dump(mode="json"))

"""Tests for configuration loading."""

from decimal import Decimal

import pydantic
import pytest

from expense_tracker.config import (
    AppSettings,
    LedgerSettings,
    StorageSettings,
    get_settings,
    validate_all_settings,
)
from expense_tracker.validation import TransactionValidator


class TestDefaults:
    """Tests for default configuration values."""

    def test_storage_defaults(self):
        storage = StorageSettings()
        assert storage.transactions_key == "et_transactions_v1"
        assert storage.settings_key == "et_settings_v1"
        assert storage.data_path.name == ".expense_tracker"

    def test_ledger_defaults(self):
        ledger = LedgerSettings()
        assert ledger.max_amount == Decimal("1000000")
        assert ledger.undo_window_seconds == 5.0
        assert ledger.recent_limit == 5
        assert ledger.breakdown_limit == 5
        assert ledger.trend_days == 7

    def test_app_defaults(self):
        app = AppSettings()
        assert app.default_currency == "USD"
        assert app.default_theme == "light"

    def test_settings_are_cached(self):
        assert get_settings() is get_settings()

    def test_validate_all_settings(self):
        assert validate_all_settings() == {"storage": True, "ledger": True, "app": True}


class TestEnvironmentOverrides:
    """Tests for environment variable overrides."""

    def test_undo_window(self, monkeypatch):
        monkeypatch.setenv("EXPENSE_TRACKER_LEDGER_UNDO_WINDOW_SECONDS", "10")
        assert get_settings().ledger.undo_window_seconds == 10.0

    def test_max_amount_reaches_validator(self, monkeypatch):
        monkeypatch.setenv("EXPENSE_TRACKER_LEDGER_MAX_AMOUNT", "100")
        assert TransactionValidator().max_amount == Decimal("100")

    def test_default_currency_uppercased(self, monkeypatch):
        monkeypatch.setenv("DEFAULT_CURRENCY", "inr")
        assert AppSettings().default_currency == "INR"

    def test_invalid_key_rejected(self, monkeypatch):
        monkeypatch.setenv("EXPENSE_TRACKER_STORAGE_TRANSACTIONS_KEY", "../escape")
        with pytest.raises(pydantic.ValidationError):
            StorageSettings()

    def test_undo_window_upper_bound(self, monkeypatch):
        monkeypatch.setenv("EXPENSE_TRACKER_LEDGER_UNDO_WINDOW_SECONDS", "600")
        with pytest.raises(pydantic.ValidationError):
            LedgerSettings()

    def test_validate_all_settings_reports_errors(self, monkeypatch):
        monkeypatch.setenv("EXPENSE_TRACKER_LEDGER_TREND_DAYS", "0")
        results = validate_all_settings()
        assert results["ledger"] is False
        assert "ledger_error" in results
        assert results["storage"] is True

"""
Configuration Management for the Expense Tracker

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Storage keys, validation limits and the undo window are read once and
shared by every component that needs them.
"""

from decimal import Decimal
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Local key-value storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="EXPENSE_TRACKER_STORAGE_",
        extra="ignore"
    )

    data_dir: str = Field(
        default=".expense_tracker",
        description="Directory holding one JSON file per storage key"
    )

    # Versioned keys - bump the suffix when the stored shape changes
    transactions_key: str = Field(
        default="et_transactions_v1",
        description="Key under which the transaction list is stored"
    )
    settings_key: str = Field(
        default="et_settings_v1",
        description="Key under which user settings are stored"
    )

    @field_validator('transactions_key', 'settings_key')
    @classmethod
    def validate_key(cls, v: str) -> str:
        """Keys become file names, so they must be plain tokens."""
        v = v.strip()
        if not v or any(sep in v for sep in ("/", "\\", "..")):
            raise ValueError(f"Invalid storage key: {v!r}")
        return v

    @property
    def data_path(self) -> Path:
        """Get the data directory as an expanded path."""
        return Path(self.data_dir).expanduser()


class LedgerSettings(BaseSettings):
    """Ledger, undo and dashboard configuration."""

    model_config = SettingsConfigDict(
        env_prefix="EXPENSE_TRACKER_LEDGER_",
        extra="ignore"
    )

    max_amount: Decimal = Field(
        default=Decimal("1000000"),
        gt=0,
        description="Largest accepted transaction magnitude"
    )
    undo_window_seconds: float = Field(
        default=5.0,
        gt=0.0,
        le=60.0,
        description="How long a deleted transaction can be restored"
    )
    recent_limit: int = Field(
        default=5,
        ge=1,
        le=50,
        description="Number of recent transactions on the dashboard"
    )
    breakdown_limit: int = Field(
        default=5,
        ge=1,
        le=20,
        description="Number of categories shown in the breakdown"
    )
    trend_days: int = Field(
        default=7,
        ge=1,
        le=366,
        description="Number of days in the spending trend"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    # Defaults for user settings when nothing is stored yet
    default_currency: str = Field(
        default="USD",
        min_length=3,
        max_length=3,
        description="Currency code used before the user picks one"
    )
    default_theme: str = Field(
        default="light",
        pattern="^(light|dark)$",
        description="Theme used before the user picks one"
    )

    @field_validator('default_currency')
    @classmethod
    def upper_currency(cls, v: str) -> str:
        return v.upper()


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def ledger(self) -> LedgerSettings:
        return LedgerSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus
    "<name>_error" entries describing any failure.
    """
    results = {}
    settings = get_settings()

    for name in ("storage", "ledger", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results

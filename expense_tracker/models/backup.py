"""
Backup document models.

The export format is a single JSON object:
``{transactions, categories, settings, exportDate}``.
"""

import json
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from expense_tracker.models.transaction import (
    DEFAULT_CATEGORIES,
    Category,
    Transaction,
    UserSettings,
)


class ExportDocument(BaseModel):
    """A full snapshot of the tracker, written as a backup file."""
    model_config = ConfigDict(populate_by_name=True)

    transactions: list[Transaction] = Field(default_factory=list)
    categories: dict[str, Category] = Field(
        default_factory=lambda: dict(DEFAULT_CATEGORIES)
    )
    settings: UserSettings = Field(default_factory=UserSettings)
    export_date: datetime = Field(..., alias="exportDate")

    def to_json(self) -> str:
        return json.dumps(
            self.model_dump(mode="json", by_alias=True, exclude_none=True),
            indent=2,
            ensure_ascii=False,
        )


class ImportDocument(BaseModel):
    """
    A structurally valid backup, not yet applied.

    ``transactions`` stays raw: individual entries are checked when the
    ledger takes them, and bad ones are dropped there.
    """

    transactions: list[Any] = Field(default_factory=list)
    settings: Optional[UserSettings] = None

    @property
    def entry_count(self) -> int:
        return len(self.transactions)

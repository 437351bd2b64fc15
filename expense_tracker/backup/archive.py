"""
Backup export and import.

Export writes ``{transactions, categories, settings, exportDate}`` as a
pretty-printed JSON file named after the export day.

Import is all-or-nothing at the document level: a file that is not JSON,
or has no ``transactions`` array, or carries unusable settings, is
rejected before anything changes. Individual malformed transactions in
an otherwise valid file are dropped by the ledger.
"""

import json
from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import Callable, Iterable, Optional, Union

import pydantic

from expense_tracker.ledger import Ledger
from expense_tracker.models.backup import ExportDocument, ImportDocument
from expense_tracker.models.transaction import Transaction, UserSettings
from expense_tracker.services.storage import PersistenceAdapter, PersistenceError

BACKUP_FILENAME_PREFIX = "expense-tracker-backup-"

UNREADABLE_MESSAGE = "Error reading backup file."
INVALID_FORMAT_MESSAGE = "Invalid backup file format."


class ImportFormatError(Exception):
    """The backup document cannot be imported. Nothing was changed."""
    pass


@dataclass(frozen=True)
class ImportOutcome:
    """What an import attempt did."""
    applied: bool
    kept: int = 0
    dropped: int = 0
    settings_applied: bool = False
    persistence_error: Optional[PersistenceError] = None


def build_export_document(
    transactions: Iterable[Transaction],
    settings: UserSettings,
    export_date: Optional[datetime] = None,
) -> ExportDocument:
    """Snapshot the tracker into an export document."""
    return ExportDocument(
        transactions=list(transactions),
        settings=settings,
        export_date=export_date or datetime.now(timezone.utc),
    )


def export_filename(day: Optional[date] = None) -> str:
    """``expense-tracker-backup-YYYY-MM-DD.json``"""
    day = day or datetime.now(timezone.utc).date()
    return f"{BACKUP_FILENAME_PREFIX}{day.isoformat()}.json"


def write_export(document: ExportDocument, directory: Union[str, Path]) -> Path:
    """Write the document into ``directory`` and return the file path."""
    directory = Path(directory).expanduser()
    directory.mkdir(parents=True, exist_ok=True)
    export_day = document.export_date
    if export_day.tzinfo is not None:
        export_day = export_day.astimezone(timezone.utc)
    path = directory / export_filename(export_day.date())
    path.write_text(document.to_json(), encoding="utf-8")
    return path


def parse_import_document(source: Union[str, bytes]) -> ImportDocument:
    """
    Parse and structurally check a backup document.

    Raises:
        ImportFormatError: If the text is not JSON, has no transactions
            array, or has a settings object that cannot be used
    """
    if isinstance(source, bytes):
        try:
            source = source.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise ImportFormatError(UNREADABLE_MESSAGE) from e

    try:
        data = json.loads(source, parse_float=Decimal)
    except ValueError as e:
        raise ImportFormatError(UNREADABLE_MESSAGE) from e

    if not isinstance(data, dict) or not isinstance(data.get("transactions"), list):
        raise ImportFormatError(INVALID_FORMAT_MESSAGE)

    settings = None
    raw_settings = data.get("settings")
    if raw_settings is not None:
        if not isinstance(raw_settings, dict):
            raise ImportFormatError(INVALID_FORMAT_MESSAGE)
        try:
            settings = UserSettings.model_validate(raw_settings)
        except pydantic.ValidationError as e:
            raise ImportFormatError(INVALID_FORMAT_MESSAGE) from e

    return ImportDocument(transactions=data["transactions"], settings=settings)


def read_import_file(path: Union[str, Path]) -> ImportDocument:
    """Read and parse a backup file from disk."""
    try:
        raw = Path(path).expanduser().read_bytes()
    except OSError as e:
        raise ImportFormatError(UNREADABLE_MESSAGE) from e
    return parse_import_document(raw)


def apply_import(
    document: ImportDocument,
    ledger: Ledger,
    adapter: PersistenceAdapter,
    confirm: Callable[[ImportDocument], bool],
) -> ImportOutcome:
    """
    Replace the ledger (and settings, when present) with a parsed backup.

    ``confirm`` is asked first; when it returns False nothing changes.
    """
    if not confirm(document):
        return ImportOutcome(applied=False)

    dropped = ledger.replace_all(document.transactions, source="import")
    error = ledger.last_persistence_error

    settings_applied = False
    if document.settings is not None:
        settings_error = adapter.save_settings(document.settings)
        error = error or settings_error
        settings_applied = True

    return ImportOutcome(
        applied=True,
        kept=len(ledger),
        dropped=dropped,
        settings_applied=settings_applied,
        persistence_error=error,
    )

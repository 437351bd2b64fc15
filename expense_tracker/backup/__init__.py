"""Backup export/import package."""

from expense_tracker.backup.archive import (
    INVALID_FORMAT_MESSAGE,
    UNREADABLE_MESSAGE,
    ImportFormatError,
    ImportOutcome,
    apply_import,
    build_export_document,
    export_filename,
    parse_import_document,
    read_import_file,
    write_export,
)

__all__ = [
    "INVALID_FORMAT_MESSAGE",
    "UNREADABLE_MESSAGE",
    "ImportFormatError",
    "ImportOutcome",
    "apply_import",
    "build_export_document",
    "export_filename",
    "parse_import_document",
    "read_import_file",
    "write_export",
]

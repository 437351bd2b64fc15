"""
JSON File Storage Implementation

Each key is stored as ``<data_dir>/<key>.json``. Writes go to a
temporary file in the same directory and are moved into place, so a
crash mid-write leaves the previous value intact.
"""

import os
import tempfile
from pathlib import Path
from typing import Iterator, Optional, Union

from expense_tracker.services.storage.interface import (
    KeyValueStore,
    PersistenceError,
    StorageKeyError,
)

_SUFFIX = ".json"


class JsonFileKeyValueStore(KeyValueStore):
    """Key-value store backed by one UTF-8 file per key."""

    def __init__(self, directory: Union[str, Path]):
        self._directory = Path(directory).expanduser()

    @property
    def directory(self) -> Path:
        return self._directory

    def _path_for(self, key: str) -> Path:
        if not key or any(sep in key for sep in ("/", "\\")) or key.startswith("."):
            raise StorageKeyError(f"Invalid storage key: {key!r}")
        return self._directory / f"{key}{_SUFFIX}"

    def get(self, key: str) -> Optional[str]:
        path = self._path_for(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            raise PersistenceError(
                f"Failed to read {path}: {e}", key=key, operation="read"
            ) from e

    def set(self, key: str, value: str) -> None:
        path = self._path_for(key)
        tmp_name = None
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self._directory,
                prefix=f".{key}.",
                suffix=".tmp",
                delete=False,
            ) as handle:
                tmp_name = handle.name
                handle.write(value)
            os.replace(tmp_name, path)
            tmp_name = None
        except OSError as e:
            raise PersistenceError(
                f"Failed to write {path}: {e}", key=key, operation="write"
            ) from e
        finally:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)

    def delete(self, key: str) -> None:
        path = self._path_for(key)
        try:
            path.unlink()
        except FileNotFoundError:
            return
        except OSError as e:
            raise PersistenceError(
                f"Failed to delete {path}: {e}", key=key, operation="delete"
            ) from e

    def keys(self) -> Iterator[str]:
        if not self._directory.is_dir():
            return iter(())
        return iter(sorted(
            p.name[: -len(_SUFFIX)]
            for p in self._directory.glob(f"*{_SUFFIX}")
            if not p.name.startswith(".")
        ))

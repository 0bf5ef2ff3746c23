"""Persistent key-value storage.

The history store and settings each occupy one named slot holding an opaque
serialized string. Slots are read and written whole; there is no partial
update.
"""

import logging
import re
from pathlib import Path
from typing import Protocol

from q_explore.errors import PersistenceUnavailable

logger = logging.getLogger(__name__)

_SAFE_KEY = re.compile(r"^[A-Za-z0-9_.-]+$")


class KeyValueStore(Protocol):
    """Interface of a string-keyed blob store."""

    def get(self, key: str) -> str | None:
        """Return the blob stored under `key`, or None if the slot is empty."""
        ...

    def set(self, key: str, value: str) -> None:
        """Replace the blob stored under `key`."""
        ...

    def remove(self, key: str) -> None:
        """Empty the slot; removing an empty slot is a no-op."""
        ...


class MemoryKeyValueStore:
    """In-process store. Nothing survives the process."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._data)


class FileKeyValueStore:
    """One JSON file per slot inside a data directory.

    Writes go to a temporary sibling first and are renamed into place, so a
    crash mid-write leaves the previous blob intact.

    Raises:
        PersistenceUnavailable: On any filesystem error.
    """

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        if not _SAFE_KEY.match(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.directory / f"{key}.json"

    def get(self, key: str) -> str | None:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise PersistenceUnavailable(f"Failed to read {path}: {e}") from e

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        tmp_path = path.with_suffix(".json.tmp")
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(value, encoding="utf-8")
            tmp_path.replace(path)
        except OSError as e:
            raise PersistenceUnavailable(f"Failed to write {path}: {e}") from e
        logger.debug(f"Wrote {len(value)} bytes to {path}")

    def remove(self, key: str) -> None:
        path = self._path(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise PersistenceUnavailable(f"Failed to remove {path}: {e}") from e

"""
Deck Store - File-backed key/value storage for builder records.

The store:
- Keeps one JSON file per key under a storage directory
- Groups keys by namespace prefix (e.g. "collapse.")
- Needs no database

Keys are restricted to a filename-safe alphabet so a key maps to
exactly one file.
"""

from __future__ import annotations
import json
import logging
import re
from pathlib import Path
from typing import Any

from .. import DeckplayError

logger = logging.getLogger(__name__)

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")
_SUFFIX = ".json"


class StorageError(DeckplayError):
    """Raised when the store cannot read or write a key."""


class DeckStore:
    """
    File-based key/value store.

    Usage:
        store = DeckStore(storage_dir="~/.deckplay")
        store.put("collapse.deck-builder.v2", record)
        record = store.get("collapse.deck-builder.v2")
    """

    def __init__(self, storage_dir: str | Path | None = None):
        if storage_dir is None:
            storage_dir = Path.home() / ".deckplay" / "store"
        self.storage_dir = Path(storage_dir).expanduser()
        self.storage_dir.mkdir(parents=True, exist_ok=True)

    def get(self, key: str, default: Any = None) -> Any:
        """
        Read the value stored under `key`.

        A missing key returns `default`. A file that is not valid JSON
        raises StorageError.
        """
        path = self._path_for(key)
        if not path.exists():
            return default
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            raise StorageError(f"Cannot read {key}: {e}") from e

    def put(self, key: str, value: Any) -> None:
        """Write `value` under `key`, replacing any previous value."""
        path = self._path_for(key)
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(value, f, indent=2)
            tmp_path.replace(path)
        except (OSError, TypeError, ValueError) as e:
            tmp_path.unlink(missing_ok=True)
            raise StorageError(f"Cannot write {key}: {e}") from e

    def delete(self, key: str) -> bool:
        """Remove `key`. Returns whether anything was removed."""
        path = self._path_for(key)
        if not path.exists():
            return False
        path.unlink()
        return True

    def keys(self, prefix: str = "") -> list[str]:
        """Stored keys, sorted, optionally limited to a prefix."""
        found = [
            p.name[: -len(_SUFFIX)]
            for p in self.storage_dir.glob(f"*{_SUFFIX}")
            if p.is_file()
        ]
        return sorted(k for k in found if k.startswith(prefix))

    def snapshot(self, prefix: str = "") -> dict[str, Any]:
        """All values under a prefix, keyed by full key."""
        return {key: self.get(key) for key in self.keys(prefix)}

    def clear_prefix(self, prefix: str) -> int:
        """Remove every key under `prefix`. Returns the number removed."""
        removed = 0
        for key in self.keys(prefix):
            if self.delete(key):
                removed += 1
        logger.debug("Cleared %d key(s) under %r", removed, prefix)
        return removed

    @staticmethod
    def is_valid_key(key: Any) -> bool:
        return isinstance(key, str) and bool(_KEY_PATTERN.match(key))

    def _path_for(self, key: str) -> Path:
        if not self.is_valid_key(key):
            raise StorageError(f"Invalid storage key: {key!r}")
        return self.storage_dir / f"{key}{_SUFFIX}"

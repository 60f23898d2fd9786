"""
Bundle - Bulk export/import of every namespaced key in a store.

Export shape:
    {"meta": {"app": "cvttweb", "exportedAt": "MMDDYY", "exportedAtISO": ...},
     "data": {"collapse.deck-builder.v2": {...}, ...}}

Import accepts that shape or a plain key -> value mapping. Only keys
under the namespace prefix are used. Before anything is replaced the
current namespace is written to a backup file, and the caller must
confirm; a declined or malformed import leaves the store untouched.
"""

from __future__ import annotations
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable

from .. import DeckplayError
from .store import DeckStore

logger = logging.getLogger(__name__)

NAMESPACE_PREFIX = "collapse."
APP_TAG = "cvttweb"
DEFAULT_FILENAME_PREFIX = "collapse-data"


class BundleError(DeckplayError):
    """Raised for an export or import that cannot proceed."""


@dataclass
class ImportResult:
    """Outcome of an import attempt."""
    applied: bool
    keys: list[str] = field(default_factory=list)
    removed: int = 0
    backup_path: Path | None = None


def _stamp(now: datetime) -> tuple[str, str]:
    local = now.astimezone()
    return local.strftime("%m%d%y"), local.strftime("%H%M%S")


def _iso(now: datetime) -> str:
    return now.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def export_filename(now: datetime | None = None, prefix: str = DEFAULT_FILENAME_PREFIX) -> str:
    mmddyy, hhmmss = _stamp(now or datetime.now(timezone.utc))
    return f"{prefix}-{mmddyy}-{hhmmss}.json"


def backup_filename(now: datetime | None = None, prefix: str = DEFAULT_FILENAME_PREFIX) -> str:
    mmddyy, hhmmss = _stamp(now or datetime.now(timezone.utc))
    return f"{prefix}-backup-{mmddyy}-{hhmmss}.json"


def export_bundle(
    store: DeckStore,
    now: datetime | None = None,
    prefix: str = NAMESPACE_PREFIX,
) -> dict[str, Any]:
    """Build the export payload for every key under `prefix`."""
    data = store.snapshot(prefix)
    if not data:
        raise BundleError(
            f'No Collapse data found to export (looking for keys starting with "{prefix}").'
        )
    now = now or datetime.now(timezone.utc)
    mmddyy, _ = _stamp(now)
    return {
        "meta": {"app": APP_TAG, "exportedAt": mmddyy, "exportedAtISO": _iso(now)},
        "data": data,
    }


def parse_bundle(raw: Any, prefix: str = NAMESPACE_PREFIX) -> dict[str, Any]:
    """
    Extract the namespaced entries from an import payload.

    `raw` may be JSON text or an already-parsed object. Raises
    BundleError when it is not an object or holds no namespaced keys.
    """
    if isinstance(raw, (str, bytes, bytearray)):
        try:
            raw = json.loads(raw)
        except ValueError as e:
            raise BundleError(f"Imported file is not valid JSON: {e}") from e
    if not isinstance(raw, dict):
        raise BundleError("Imported file is not a JSON object")

    data = raw["data"] if isinstance(raw.get("data"), dict) else raw
    entries = {k: v for k, v in data.items() if isinstance(k, str) and k.startswith(prefix)}
    if not entries:
        raise BundleError(
            f'Import file does not contain Collapse data (expected keys starting with "{prefix}").'
        )
    bad = [k for k in entries if not DeckStore.is_valid_key(k)]
    if bad:
        raise BundleError(f"Import file has unusable keys: {', '.join(sorted(bad))}")
    return entries


def write_json(path: str | Path, payload: Any) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2)
    return path


def import_bundle(
    store: DeckStore,
    raw: Any,
    confirm: Callable[[str], bool],
    backup_dir: str | Path | None = None,
    now: datetime | None = None,
    prefix: str = NAMESPACE_PREFIX,
) -> ImportResult:
    """
    Replace the namespace in `store` with the entries in `raw`.

    Steps: parse, write a backup of the current namespace, ask
    `confirm(message)`, then clear the namespace and write the new keys.
    """
    entries = parse_bundle(raw, prefix=prefix)

    now = now or datetime.now(timezone.utc)
    backup_dir = Path(backup_dir) if backup_dir is not None else store.storage_dir.parent / "backups"
    mmddyy, _ = _stamp(now)
    backup_path = write_json(
        backup_dir / backup_filename(now),
        {"meta": {"createdAt": mmddyy, "createdAtISO": _iso(now)}, "data": store.snapshot(prefix)},
    )
    logger.info("Wrote backup of %r keys to %s", prefix, backup_path)

    message = (
        f'This import will replace Collapse data (keys starting with "{prefix}"). '
        f"A backup has been written to {backup_path}. Proceed?"
    )
    if not confirm(message):
        logger.info("Import cancelled; no changes were made")
        return ImportResult(applied=False, backup_path=backup_path)

    removed = store.clear_prefix(prefix)
    for key, value in entries.items():
        store.put(key, value)
    logger.info("Imported %d key(s), replaced %d", len(entries), removed)
    return ImportResult(applied=True, keys=sorted(entries), removed=removed, backup_path=backup_path)

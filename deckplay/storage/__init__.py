"""
Storage - Persisting builder state between runs.

- record: DeckState <-> persisted JSON record
- store: file-backed key/value store
- bundle: bulk export/import of the "collapse." namespace
"""

from .record import serialize, deserialize
from .store import DeckStore, StorageError
from .bundle import (
    APP_TAG,
    NAMESPACE_PREFIX,
    BundleError,
    ImportResult,
    backup_filename,
    export_bundle,
    export_filename,
    import_bundle,
    parse_bundle,
    write_json,
)

__all__ = [
    "serialize",
    "deserialize",
    "DeckStore",
    "StorageError",
    "APP_TAG",
    "NAMESPACE_PREFIX",
    "BundleError",
    "ImportResult",
    "backup_filename",
    "export_bundle",
    "export_filename",
    "import_bundle",
    "parse_bundle",
    "write_json",
]

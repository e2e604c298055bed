"""CAS Store - entry metadata, content streaming and peer access."""
from .ids import fingerprint, format_digest
from .store import (
    EntryInfo,
    EntryNotFound,
    LocalStore,
    StoreError,
    StoreUnavailable,
    open_store,
    write_index,
)

__all__ = [
    "EntryInfo",
    "EntryNotFound",
    "LocalStore",
    "StoreError",
    "StoreUnavailable",
    "fingerprint",
    "format_digest",
    "open_store",
    "write_index",
]

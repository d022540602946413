"""SQLite record store for bill rows."""

from .schema import ensure_schema
from .store import RecordStore, get_store, reset_store

__all__ = [
    "RecordStore",
    "ensure_schema",
    "get_store",
    "reset_store",
]

"""
Persistence adapters.

Services depend on the RecordStore instead of touching the JSON files.
"""

from gostwear.repositories.json_storage import (
    DuplicateKeyError,
    InvalidRecordError,
    RecordStore,
    StoreCorruptError,
    StoreError,
    StoreIOError,
)

__all__ = [
    "DuplicateKeyError",
    "InvalidRecordError",
    "RecordStore",
    "StoreCorruptError",
    "StoreError",
    "StoreIOError",
]

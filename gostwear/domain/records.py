"""Domain helpers for record keys and collection names."""
from __future__ import annotations

import math
import re
from typing import Any, Iterable, Mapping

KEY_FIELD = "id"
COLLECTION_PATTERN = re.compile(r"[A-Za-z0-9_-]{1,64}")


def is_valid_collection_name(name: str | None) -> bool:
    """Return True when name is safe to use as a file stem inside the data dir."""
    if not name:
        return False
    return bool(COLLECTION_PATTERN.fullmatch(name))


def is_valid_key(value: Any) -> bool:
    """Keys are non-empty strings or finite numbers (bool is rejected even though it subclasses int)."""
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    if isinstance(value, float):
        return math.isfinite(value)
    if isinstance(value, str):
        return bool(value.strip())
    return False


def record_key(record: Mapping[str, Any]) -> Any:
    return record.get(KEY_FIELD)


def is_keyed_record(record: Any) -> bool:
    return isinstance(record, Mapping) and is_valid_key(record.get(KEY_FIELD))


def first_duplicate_key(records: Iterable[Mapping[str, Any]]) -> Any:
    """Return the first key seen twice, or None when all keys are unique.

    Uses the same equality as lookups: 1 and "1" are distinct keys.
    """
    seen: set[Any] = set()
    for record in records:
        key = record_key(record)
        if key in seen:
            return key
        seen.add(key)
    return None

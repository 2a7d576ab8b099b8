"""Credential helpers (comparison and public views of user records)."""

from __future__ import annotations

import secrets
from typing import Any, Mapping

# Fields never returned to clients.
PRIVATE_USER_FIELDS = frozenset({"password"})


def verify_password(password: str, stored: str | None) -> bool:
    """Compare a submitted password with the stored value in constant time."""
    if not isinstance(stored, str) or not stored:
        return False
    return secrets.compare_digest(password.encode("utf-8"), stored.encode("utf-8"))


def public_user(record: Mapping[str, Any]) -> dict:
    """Copy of a user record without private fields."""
    return {key: value for key, value in record.items() if key not in PRIVATE_USER_FIELDS}

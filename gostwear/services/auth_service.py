"""
Registration and login use cases over the ``users`` collection.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable
import logging
import threading
import time

from gostwear.core.security import public_user, verify_password
from gostwear.domain.records import record_key
from gostwear.repositories.json_storage import RecordStore

USERS = "users"

logger = logging.getLogger(__name__)


class AuthError(Exception):
    """Base class for authentication-related exceptions."""


class RegistrationError(AuthError):
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AccountExistsError(AuthError):
    pass


class InvalidCredentialsError(AuthError):
    pass


class NoUsersError(AuthError):
    """Raised on login before anyone has registered."""


@dataclass
class RegisterResult:
    user: dict


@dataclass
class LoginSuccess:
    user: dict


def _clean(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


@dataclass
class AuthService:
    """Handles registration and login against the record store."""

    store: RecordStore
    clock: Callable[[], float] = time.time
    _register_lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    # -------------------------------------- helpers --------------------------------------
    def _now_ms(self) -> int:
        return int(self.clock() * 1000)

    def _next_id(self, users: list[dict]) -> int:
        # epoch millis, bumped when two sign-ups land in the same millisecond
        taken = {record_key(u) for u in users}
        candidate = self._now_ms()
        while candidate in taken:
            candidate += 1
        return candidate

    # -------------------------------------- use cases --------------------------------------
    def register(self, name: Any, email: Any, password: Any) -> RegisterResult:
        name, email = _clean(name), _clean(email)
        if not (name and email and isinstance(password, str) and password):
            raise RegistrationError("All fields are required")
        # email uniqueness is ours to enforce; the store only guards ids
        with self._register_lock:
            users = self.store.load_all(USERS)
            if any(u.get("email") == email for u in users):
                raise AccountExistsError(email)
            record = {"id": self._next_id(users), "name": name, "email": email, "password": password}
            stored = self.store.append(USERS, record)
        logger.info("Registered user %s", stored["id"])
        return RegisterResult(user=public_user(stored))

    def login(self, email: Any, password: Any) -> LoginSuccess:
        email = _clean(email)
        if not (email and isinstance(password, str) and password):
            raise RegistrationError("All fields are required")
        if not self.store.exists(USERS):
            raise NoUsersError()
        for user in self.store.load_all(USERS):
            if user.get("email") == email and verify_password(password, user.get("password")):
                return LoginSuccess(user=public_user(user))
        raise InvalidCredentialsError(email)

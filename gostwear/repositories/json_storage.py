"""
Flat-file record store: one JSON array per collection.

Each collection lives in ``<data_dir>/<name>.json``. Writes go to a temp file
in the same directory and are renamed over the target, so readers see either
the old array or the new one. Writers to the same collection are serialized
by a per-collection lock held across read-validate-write.
"""

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterable, Iterator, Mapping, Optional
import json
import logging
import os
import tempfile
import threading

from gostwear.domain.records import (
    KEY_FIELD,
    first_duplicate_key,
    is_keyed_record,
    is_valid_collection_name,
    is_valid_key,
    record_key,
)

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Base class for record store failures."""

    def __init__(self, collection: str, message: str):
        super().__init__(f"{collection}: {message}")
        self.collection = collection
        self.message = message


class StoreIOError(StoreError):
    """Backing file could not be read or written."""


class StoreCorruptError(StoreError):
    """Backing file is not a JSON array of keyed objects."""


class DuplicateKeyError(StoreError):
    def __init__(self, collection: str, key: Any):
        super().__init__(collection, f"duplicate {KEY_FIELD} {key!r}")
        self.key = key


class InvalidRecordError(StoreError, ValueError):
    """Record rejected at the boundary (missing key, not a mapping, not JSON)."""


class RecordStore:
    """File-backed collections of JSON records keyed by ``id``.

    One instance should own a data directory per process: the write locks
    live on the instance.
    """

    def __init__(self, data_dir: Path | str, *, lock_timeout: float | None = None) -> None:
        self.data_dir = Path(data_dir)
        self.lock_timeout = lock_timeout
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    # -------------------------------------- helpers --------------------------------------
    def path_for(self, collection: str) -> Path:
        if not is_valid_collection_name(collection):
            raise ValueError(f"Invalid collection name: {collection!r}")
        return self.data_dir / f"{collection}.json"

    def _lock_for(self, collection: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(collection)
            if lock is None:
                lock = self._locks[collection] = threading.Lock()
            return lock

    @contextmanager
    def _locked(self, collection: str) -> Iterator[None]:
        lock = self._lock_for(collection)
        timeout = self.lock_timeout
        if timeout is None or not 0 <= timeout <= threading.TIMEOUT_MAX:
            timeout = -1
        if not lock.acquire(timeout=timeout):
            raise StoreIOError(collection, f"timed out after {self.lock_timeout}s waiting for write lock")
        try:
            yield
        finally:
            lock.release()

    def _validated(self, collection: str, record: Any) -> dict:
        if not isinstance(record, Mapping):
            raise InvalidRecordError(collection, "record must be a JSON object")
        if not is_valid_key(record.get(KEY_FIELD)):
            raise InvalidRecordError(collection, f"record needs a non-empty string or number '{KEY_FIELD}'")
        return dict(record)

    def _serialize(self, collection: str, records: list[dict]) -> str:
        try:
            return json.dumps(records, ensure_ascii=False, indent=2, allow_nan=False) + "\n"
        except (TypeError, ValueError) as exc:
            raise InvalidRecordError(collection, f"record is not JSON serializable ({exc})") from exc

    def _write(self, collection: str, records: list[dict]) -> None:
        payload = self._serialize(collection, records)
        target = self.path_for(collection)
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{collection}.", suffix=".tmp", dir=self.data_dir)
        except OSError as exc:
            raise StoreIOError(collection, f"cannot create temp file ({exc})") from exc
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, target)
        except OSError as exc:
            _discard(tmp_name)
            raise StoreIOError(collection, f"write failed ({exc})") from exc
        except BaseException:
            _discard(tmp_name)
            raise
        logger.debug("Wrote %d record(s) to %s", len(records), target)

    # -------------------------------------- reads --------------------------------------
    def exists(self, collection: str) -> bool:
        """True once the collection has been written at least once."""
        return self.path_for(collection).is_file()

    def load_all(self, collection: str) -> list[dict]:
        """Full contents in insertion order; a never-written collection is empty."""
        path = self.path_for(collection)
        try:
            raw = path.read_bytes()
        except FileNotFoundError:
            return []
        except OSError as exc:
            raise StoreIOError(collection, f"cannot read {path.name} ({exc})") from exc
        try:
            data = json.loads(raw.decode("utf-8"))
        except ValueError as exc:
            raise StoreCorruptError(collection, f"{path.name} is not valid JSON ({exc})") from exc
        if not isinstance(data, list):
            raise StoreCorruptError(collection, f"{path.name} does not hold a JSON array")
        for index, record in enumerate(data):
            if not is_keyed_record(record):
                raise StoreCorruptError(collection, f"entry {index} is not an object with a valid '{KEY_FIELD}'")
        duplicate = first_duplicate_key(data)
        if duplicate is not None:
            raise StoreCorruptError(collection, f"{KEY_FIELD} {duplicate!r} appears more than once")
        return data

    def find_by_key(self, collection: str, key: Any) -> Optional[dict]:
        for record in self.load_all(collection):
            if record_key(record) == key:
                return record
        return None

    # -------------------------------------- writes --------------------------------------
    def append(self, collection: str, record: Mapping[str, Any]) -> dict:
        """Add one record at the end; raises DuplicateKeyError if its key exists."""
        new_record = self._validated(collection, record)
        key = record_key(new_record)
        with self._locked(collection):
            records = self.load_all(collection)
            if any(record_key(existing) == key for existing in records):
                raise DuplicateKeyError(collection, key)
            records.append(new_record)
            self._write(collection, records)
        return new_record

    def replace_all(self, collection: str, records: Iterable[Mapping[str, Any]]) -> list[dict]:
        """Overwrite the whole collection with records, keeping their order."""
        incoming = [self._validated(collection, record) for record in records]
        duplicate = first_duplicate_key(incoming)
        if duplicate is not None:
            raise DuplicateKeyError(collection, duplicate)
        with self._locked(collection):
            self._write(collection, incoming)
        return incoming

    def delete(self, collection: str, key: Any) -> bool:
        """Remove the record with key; returns False when nothing matched."""
        with self._locked(collection):
            records = self.load_all(collection)
            kept = [record for record in records if record_key(record) != key]
            if len(kept) == len(records):
                return False
            self._write(collection, kept)
        return True


def _discard(path: str) -> None:
    try:
        os.unlink(path)
    except FileNotFoundError:
        pass
    except OSError:
        logger.warning("Could not remove temp file %s", path, exc_info=True)

"""
Tests for the flat-file RecordStore (atomic writes, locking, validation).
"""
from __future__ import annotations

import json
import sys
import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest

# Keeps the gostwear package importable when running tests from a checkout
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from gostwear.repositories import json_storage  # noqa: E402
from gostwear.repositories.json_storage import (  # noqa: E402
    DuplicateKeyError,
    InvalidRecordError,
    RecordStore,
    StoreCorruptError,
    StoreIOError,
)

ANN = {"id": 1700000000000, "name": "Ann", "email": "a@x.com", "password": "p"}


@pytest.fixture()
def store(tmp_path):
    return RecordStore(tmp_path / "data")


def _leftover_temp_files(store: RecordStore) -> list[Path]:
    if not store.data_dir.exists():
        return []
    return [p for p in store.data_dir.iterdir() if p.suffix == ".tmp"]


def test_never_written_collection_is_empty(store):
    assert store.load_all("users") == []
    assert store.find_by_key("users", 1) is None
    assert store.exists("users") is False
    assert not store.data_dir.exists()


def test_append_then_load_includes_record(store):
    store.append("users", ANN)

    assert store.load_all("users") == [ANN]
    assert store.find_by_key("users", ANN["id"]) == ANN
    assert store.exists("users") is True


def test_duplicate_append_fails_and_leaves_file_untouched(store):
    store.append("users", ANN)
    before = store.path_for("users").read_bytes()

    with pytest.raises(DuplicateKeyError) as info:
        store.append("users", {**ANN, "email": "other@x.com"})

    assert info.value.key == ANN["id"]
    assert store.path_for("users").read_bytes() == before
    assert store.load_all("users") == [ANN]


def test_lookup_uses_exact_equality(store):
    store.replace_all("products", [{"id": "1", "title": "str"}, {"id": 2, "title": "int"}])

    assert store.find_by_key("products", "1")["title"] == "str"
    assert store.find_by_key("products", 1) is None
    assert store.find_by_key("products", "2") is None
    assert store.find_by_key("products", 2)["title"] == "int"


def test_replace_all_round_trip_preserves_order(store):
    records = [{"id": "c"}, {"id": "a", "tags": ["x"]}, {"id": 3, "price": 9.5, "name": "Camiseta ção"}]
    store.replace_all("products", records)

    assert store.load_all("products") == records
    raw = store.path_for("products").read_text(encoding="utf-8")
    assert "Camiseta ção" in raw


def test_replace_all_rejects_duplicates_without_writing(store):
    store.replace_all("products", [{"id": 1}])
    before = store.path_for("products").read_bytes()

    with pytest.raises(DuplicateKeyError):
        store.replace_all("products", [{"id": 5}, {"id": 6}, {"id": 5}])

    assert store.path_for("products").read_bytes() == before


def test_string_and_number_keys_do_not_clash(store):
    store.replace_all("products", [{"id": 1}, {"id": "1"}])
    assert len(store.load_all("products")) == 2


@pytest.mark.parametrize(
    "record",
    [
        {"name": "no id"},
        {"id": ""},
        {"id": "   "},
        {"id": None},
        {"id": True},
        {"id": [1]},
        ["id", 1],
        {"id": 1, "blob": object()},
        {"id": 1, "ratio": float("nan")},
    ],
)
def test_append_rejects_malformed_records(store, record):
    with pytest.raises(InvalidRecordError):
        store.append("users", record)
    assert store.exists("users") is False
    assert _leftover_temp_files(store) == []


def test_invalid_collection_name(store):
    with pytest.raises(ValueError):
        store.load_all("../etc/passwd")
    with pytest.raises(ValueError):
        store.append("", {"id": 1})


@pytest.mark.parametrize(
    "content",
    [
        "",
        "not json",
        '{"id": 1}',
        '[{"name": "no id"}]',
        "[1, 2, 3]",
        '[{"id": 1}, {"id": 1}]',
    ],
)
def test_corrupt_file_is_reported(store, content):
    store.data_dir.mkdir(parents=True)
    store.path_for("products").write_text(content, encoding="utf-8")

    with pytest.raises(StoreCorruptError):
        store.load_all("products")
    with pytest.raises(StoreCorruptError):
        store.append("products", {"id": 99})
    assert store.path_for("products").read_text(encoding="utf-8") == content


def test_empty_array_file_reads_as_empty(store):
    store.data_dir.mkdir(parents=True)
    store.path_for("users").write_text("[]", encoding="utf-8")
    assert store.load_all("users") == []
    assert store.exists("users") is True


def test_unreadable_file_raises_io_error(store):
    # a directory where the collection file should be
    store.path_for("users").mkdir(parents=True)
    with pytest.raises(StoreIOError):
        store.load_all("users")


def test_failed_rename_keeps_original_intact(store, monkeypatch):
    store.append("users", ANN)
    before = store.path_for("users").read_bytes()

    def boom(src, dst):
        raise OSError(28, "No space left on device")

    monkeypatch.setattr(json_storage.os, "replace", boom)
    with pytest.raises(StoreIOError):
        store.append("users", {**ANN, "id": 2, "email": "b@x.com"})
    monkeypatch.undo()

    assert store.path_for("users").read_bytes() == before
    assert store.load_all("users") == [ANN]
    assert _leftover_temp_files(store) == []


class SimulatedCrash(BaseException):
    pass


def test_interrupted_write_keeps_original_intact(store, monkeypatch):
    store.replace_all("products", [{"id": 1}])

    def interrupted(fd):
        raise SimulatedCrash

    monkeypatch.setattr(json_storage.os, "fsync", interrupted)
    with pytest.raises(SimulatedCrash):
        store.replace_all("products", [{"id": 2}])
    monkeypatch.undo()

    assert store.load_all("products") == [{"id": 1}]
    assert _leftover_temp_files(store) == []


def test_lock_released_after_validation_failure(store):
    store.append("users", ANN)
    with pytest.raises(DuplicateKeyError):
        store.append("users", ANN)
    # would block forever if the lock leaked
    store.append("users", {**ANN, "id": 2})
    assert [r["id"] for r in store.load_all("users")] == [ANN["id"], 2]


def test_lock_timeout_surfaces_as_io_error(tmp_path):
    store = RecordStore(tmp_path, lock_timeout=0.05)
    lock = store._lock_for("users")
    lock.acquire()
    try:
        with pytest.raises(StoreIOError):
            store.append("users", ANN)
    finally:
        lock.release()
    store.append("users", ANN)


@pytest.mark.parametrize("timeout", [float("inf"), float("nan"), 1e300])
def test_unbounded_lock_timeout_waits_instead_of_failing(tmp_path, timeout):
    store = RecordStore(tmp_path, lock_timeout=timeout)
    store.append("users", ANN)
    assert store.load_all("users") == [ANN]


def test_concurrent_appends_lose_nothing(store):
    total = 64
    start = threading.Barrier(8)

    def add(i: int) -> None:
        if i < 8:
            start.wait()
        store.append("users", {"id": i, "name": f"user{i}"})

    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(add, range(total)))

    records = store.load_all("users")
    assert len(records) == total
    assert {r["id"] for r in records} == set(range(total))
    assert _leftover_temp_files(store) == []


def test_concurrent_duplicate_appends_admit_exactly_one(store):
    outcomes: list[str] = []
    guard = threading.Lock()

    def add(_: int) -> None:
        try:
            store.append("users", ANN)
            result = "ok"
        except DuplicateKeyError:
            result = "dup"
        with guard:
            outcomes.append(result)

    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(add, range(16)))

    assert outcomes.count("ok") == 1
    assert outcomes.count("dup") == 15
    assert store.load_all("users") == [ANN]


def test_collections_are_independent(store):
    store.append("users", {"id": 1})
    store.append("products", {"id": 1})
    assert store.load_all("users") == [{"id": 1}]
    assert store.load_all("products") == [{"id": 1}]


def test_delete_removes_record(store):
    store.replace_all("products", [{"id": 1}, {"id": 2}, {"id": 3}])

    assert store.delete("products", 2) is True
    assert store.delete("products", 2) is False
    assert store.load_all("products") == [{"id": 1}, {"id": 3}]


def test_file_is_indented_json_array(store):
    store.append("users", ANN)
    raw = store.path_for("users").read_text(encoding="utf-8")
    assert raw.startswith("[\n  {")
    assert json.loads(raw) == [ANN]

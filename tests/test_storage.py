"""Tests for JSON collection storage."""

import pytest

from genrental.errors import StorageError
from genrental import storage
from genrental.storage import LOCK_FILE, JsonCollection, exclusive_lock


def test_missing_file_loads_empty(temp_dir):
    assert JsonCollection(temp_dir / "items.json").load() == []


def test_save_and_load(temp_dir):
    collection = JsonCollection(temp_dir / "nested" / "items.json")
    collection.save([{"id": 1}, {"id": 2}])

    assert collection.load() == [{"id": 1}, {"id": 2}]
    assert collection.path.read_text().endswith("\n")


def test_corrupt_file_raises_storage_error(temp_dir):
    path = temp_dir / "items.json"
    path.write_text("[{\"id\": 1")

    with pytest.raises(StorageError):
        JsonCollection(path).load()


def test_non_array_raises_storage_error(temp_dir):
    path = temp_dir / "items.json"
    path.write_text("{}")

    with pytest.raises(StorageError, match="JSON array"):
        JsonCollection(path).load()


def test_failed_save_keeps_previous_contents(temp_dir):
    collection = JsonCollection(temp_dir / "items.json")
    collection.save([{"id": 1}])

    with pytest.raises(StorageError):
        collection.save([{"id": object()}])

    assert collection.load() == [{"id": 1}]
    assert list(temp_dir.glob("*.tmp")) == []


def test_exclusive_lock_creates_lock_file(temp_dir):
    with exclusive_lock(temp_dir / "data"):
        assert (temp_dir / "data" / LOCK_FILE).exists()


def test_exclusive_lock_is_not_reentrant(temp_dir):
    with exclusive_lock(temp_dir):
        assert storage._process_lock.acquire(blocking=False) is False
    assert storage._process_lock.acquire(blocking=False) is True
    storage._process_lock.release()

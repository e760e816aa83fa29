"""JSON file storage for genrental collections."""

import fcntl
import json
import os
import tempfile
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

from .errors import StorageError

LOCK_FILE = ".genrental.lock"

# Serializes writers within this process; flock below covers other processes.
# Not re-entrant: a nested exclusive_lock would block on its own flock.
_process_lock = threading.Lock()


class JsonCollection:
    """A JSON array stored in a single file and rewritten whole on every save."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self.data_dir = self.path.parent

    def _ensure_dir(self) -> None:
        """Ensure data directory exists."""
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(str(self.data_dir), str(e))

    def exists(self) -> bool:
        """Check if the collection file exists."""
        return self.path.exists()

    def load(self) -> list[dict[str, Any]]:
        """
        Load the collection from disk.

        A missing file reads as an empty collection.

        Raises:
            StorageError: If the file can't be read or isn't a JSON array.
        """
        if not self.exists():
            return []

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(str(self.path), str(e))

        if not isinstance(data, list):
            raise StorageError(str(self.path), "expected a JSON array")
        return data

    def save(self, items: list[dict[str, Any]]) -> None:
        """
        Save the collection to disk atomically.

        Uses write-to-temp-then-rename for atomicity.
        """
        self._ensure_dir()

        try:
            fd, temp_path = tempfile.mkstemp(
                dir=self.data_dir, prefix=f".{self.path.stem}_", suffix=".tmp"
            )
        except OSError as e:
            raise StorageError(str(self.path), str(e))

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(items, f, indent=2)
                f.write("\n")
            os.replace(temp_path, self.path)
        except (OSError, TypeError, ValueError) as e:
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            raise StorageError(str(self.path), str(e))


@contextmanager
def exclusive_lock(data_dir: Path) -> Iterator[None]:
    """Acquire the data directory's exclusive lock for read-modify-write operations."""
    data_dir = Path(data_dir)
    with _process_lock:
        try:
            data_dir.mkdir(parents=True, exist_ok=True)
            lock_file = open(data_dir / LOCK_FILE, "w")
        except OSError as e:
            raise StorageError(str(data_dir / LOCK_FILE), str(e))
        with lock_file:
            fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX)
            try:
                yield
            finally:
                fcntl.flock(lock_file.fileno(), fcntl.LOCK_UN)

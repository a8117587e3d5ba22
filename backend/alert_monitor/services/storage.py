"""
JSON document storage for the alert pipeline.

This is the only module that touches the data directory. Documents are plain
JSON objects rewritten in full on every save; writes go to a temp file that is
then os.replace()d over the target, so a concurrent reader sees either the old
or the new document, never a partial one.

Each document has its own re-entrant lock. Callers that need a
read-modify-write wrap it in `with storage.locked(name):`.
"""
import json
import logging
import os
import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterator

logger = logging.getLogger(__name__)

ALERTS_DOC = "alerts"
PROCESSED_DOC = "processed_alerts"
GAME_DATA_DOC = "game_data"

DOCUMENTS = (ALERTS_DOC, PROCESSED_DOC, GAME_DATA_DOC)


class StorageError(Exception):
    """Raised when a persisted document cannot be read or written."""

    def __init__(self, document: str, message: str):
        self.document = document
        super().__init__(f"{document}: {message}")


class JsonStorage:
    """Named JSON documents under a single data directory."""

    def __init__(self, data_dir: str):
        self.data_dir = data_dir
        self._locks: Dict[str, threading.RLock] = {}
        self._locks_guard = threading.Lock()

    def path_for(self, name: str) -> str:
        return os.path.join(self.data_dir, f"{name}.json")

    def _lock_for(self, name: str) -> threading.RLock:
        with self._locks_guard:
            lock = self._locks.get(name)
            if lock is None:
                lock = threading.RLock()
                self._locks[name] = lock
            return lock

    @contextmanager
    def locked(self, name: str) -> Iterator[None]:
        """Hold the document lock for a read-modify-write sequence."""
        lock = self._lock_for(name)
        with lock:
            yield

    def ensure_documents(self) -> None:
        """Create the data directory and any missing document as {}."""
        try:
            os.makedirs(self.data_dir, exist_ok=True)
        except OSError as e:
            raise StorageError(self.data_dir, f"cannot create data directory: {e}") from e
        for name in DOCUMENTS:
            if not os.path.exists(self.path_for(name)):
                self.save(name, {})
                logger.info(f"Created empty document {self.path_for(name)}")

    def load(self, name: str) -> Dict[str, Any]:
        """
        Load a document.

        Returns:
            The stored mapping, or {} when the file does not exist

        Raises:
            StorageError: on I/O failure or when the file is not a JSON object
        """
        path = self.path_for(name)
        with self.locked(name):
            if not os.path.exists(path):
                return {}
            try:
                with open(path, "r", encoding="utf-8") as f:
                    raw = f.read()
            except OSError as e:
                raise StorageError(name, f"read failed: {e}") from e

        if not raw.strip():
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise StorageError(name, f"invalid JSON: {e}") from e
        if not isinstance(data, dict):
            raise StorageError(name, f"expected a JSON object, got {type(data).__name__}")
        return data

    def save(self, name: str, data: Dict[str, Any]) -> None:
        """Replace a document atomically (temp file + os.replace)."""
        path = self.path_for(name)
        temp_file = path + ".tmp"
        with self.locked(name):
            try:
                os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
                with open(temp_file, "w", encoding="utf-8") as f:
                    json.dump(data, f, indent=2, ensure_ascii=False)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(temp_file, path)
            except (OSError, TypeError, ValueError) as e:
                try:
                    if os.path.exists(temp_file):
                        os.remove(temp_file)
                except OSError:
                    logger.warning(f"Could not remove temp file {temp_file}")
                raise StorageError(name, f"write failed: {e}") from e
        logger.debug(f"Saved {path}")

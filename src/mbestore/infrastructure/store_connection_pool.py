"""Per-file sharing of DocumentStore connections."""

import threading
from pathlib import Path
from typing import Dict, Optional

from mbestore.infrastructure.document_store import DocumentStore


class StoreConnectionPool:
    """Hands out one shared DocumentStore per store file.

    Every CLI command, API request and manager working on a project reuses the
    same connection. The pool owns the file's lock and gives it to each store
    it opens, so a store reopened after ``close`` still serializes with any
    caller holding the old lock.
    """

    _instances: Dict[str, "StoreConnectionPool"] = {}
    _lock = threading.Lock()

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        self.lock = threading.RLock()
        self._store: Optional[DocumentStore] = None

    @classmethod
    def for_path(cls, db_path: Path) -> "StoreConnectionPool":
        """Return the pool for ``db_path``, keyed by its resolved location."""
        key = str(Path(db_path).resolve())
        with cls._lock:
            pool = cls._instances.get(key)
            if pool is None:
                pool = cls._instances[key] = cls(db_path)
            return pool

    def get_store(self) -> DocumentStore:
        """Return the open store, reopening it if it was closed."""
        with self.lock:
            if self._store is None or self._store.conn is None:
                self._store = DocumentStore(self.db_path, lock=self.lock)
            return self._store

    def close(self) -> None:
        with self.lock:
            if self._store is not None:
                self._store.close()
                self._store = None

    @classmethod
    def close_all(cls) -> None:
        """Close every pooled store (test teardown and server shutdown)."""
        with cls._lock:
            pools = list(cls._instances.values())
            cls._instances.clear()
        for pool in pools:
            pool.close()


def get_store(db_path: Path) -> DocumentStore:
    """Get the shared store for ``db_path``; callers must not close it."""
    return StoreConnectionPool.for_path(db_path).get_store()

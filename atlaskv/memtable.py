"""In-memory sorted table holding the most recent writes."""

from __future__ import annotations

import threading
from typing import Optional, Union


class Tombstone:
    """Marker for a deleted key. There is only ever one instance."""

    _instance: Optional["Tombstone"] = None

    def __new__(cls) -> "Tombstone":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "Tombstone()"


TOMBSTONE = Tombstone()

Entry = Union[bytes, Tombstone]


def _entry_size(key: bytes, entry: Entry) -> int:
    if isinstance(entry, Tombstone):
        return len(key)
    return len(key) + len(entry)


class MemTable:
    """Thread-safe table of keys to values or tombstones, with size tracking."""

    def __init__(self) -> None:
        self._data: dict[bytes, Entry] = {}
        self._size = 0
        self._lock = threading.Lock()

    def get(self, key: bytes) -> Optional[Entry]:
        """Return the value or tombstone for ``key``, or None if absent."""
        with self._lock:
            return self._data.get(bytes(key))

    def _store(self, key: bytes, entry: Entry) -> int:
        with self._lock:
            old = self._data.get(key)
            old_size = 0 if old is None else _entry_size(key, old)
            self._data[key] = entry
            self._size += _entry_size(key, entry) - old_size
            return self._size

    def put(self, key: bytes, value: bytes) -> int:
        """Store a value and return the new total size in bytes."""
        return self._store(bytes(key), bytes(value))

    def delete(self, key: bytes) -> int:
        """Store a tombstone and return the new total size in bytes."""
        return self._store(bytes(key), TOMBSTONE)

    def size(self) -> int:
        """Approximate size of keys and values in bytes."""
        with self._lock:
            return self._size

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    def is_empty(self) -> bool:
        return len(self) == 0

    def should_flush(self, size_limit: int) -> bool:
        """True once the size has reached ``size_limit``."""
        return self.size() >= size_limit

    def items(self) -> list[tuple[bytes, Entry]]:
        """Snapshot of all entries, tombstones included, in key order."""
        with self._lock:
            return sorted(self._data.items(), key=lambda item: item[0])

    def clear(self) -> None:
        """Remove every entry and reset the size."""
        with self._lock:
            self._data.clear()
            self._size = 0
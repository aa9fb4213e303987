"""In-memory key-value store.

Default backend for tests, scripts and single-process deployments.
"""

from __future__ import annotations

import threading

from .base import KeyValueStore


class MemoryKeyValueStore(KeyValueStore):
    """Dict-backed store guarded by a lock."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        """Initialize the memory store.

        Parameters
        ----------
        initial : dict[str, str], optional
            Pre-populated entries.
        """
        self._data: dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> str | None:
        """Read a value."""
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        """Write a value."""
        with self._lock:
            self._data[key] = value

    def remove(self, key: str) -> None:
        """Delete a key."""
        with self._lock:
            self._data.pop(key, None)

    def keys(self, prefix: str = "") -> list[str]:
        """List stored keys starting with ``prefix``."""
        with self._lock:
            return sorted(k for k in self._data if k.startswith(prefix))

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

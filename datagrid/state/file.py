"""JSON-file key-value store.

Keeps every key in one JSON object on disk, rewritten atomically on each
change. Suitable for desktop tools and CLIs that want customizations to
survive restarts without a server.
"""

from __future__ import annotations

import json
import os
import tempfile
import threading

from pathlib import Path

from ..exceptions import StoreError
from .base import KeyValueStore


class FileKeyValueStore(KeyValueStore):
    """Store backed by a single JSON file."""

    def __init__(self, path: str | Path) -> None:
        """Initialize the file store.

        Parameters
        ----------
        path : str or Path
            Location of the JSON file. Parent directories are created on
            first write.
        """
        self._path = Path(path).expanduser()
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8") or "{}")
        except (OSError, json.JSONDecodeError) as e:
            raise StoreError(f"Cannot read store file: {e}", path=str(self._path)) from e
        if not isinstance(data, dict):
            raise StoreError("Store file does not contain a JSON object", path=str(self._path))
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _write(self, data: dict[str, str]) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self._path.parent, suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh, ensure_ascii=False, indent=2, sort_keys=True)
            os.replace(tmp_name, self._path)
        except OSError as e:
            raise StoreError(f"Cannot write store file: {e}", path=str(self._path)) from e

    def get(self, key: str) -> str | None:
        """Read a value."""
        with self._lock:
            return self._read().get(key)

    def set(self, key: str, value: str) -> None:
        """Write a value."""
        with self._lock:
            data = self._read() if self._path.exists() else {}
            data[key] = value
            self._write(data)

    def remove(self, key: str) -> None:
        """Delete a key."""
        with self._lock:
            data = self._read()
            if key in data:
                del data[key]
                self._write(data)

    def keys(self, prefix: str = "") -> list[str]:
        """List stored keys starting with ``prefix``."""
        with self._lock:
            return sorted(k for k in self._read() if k.startswith(prefix))

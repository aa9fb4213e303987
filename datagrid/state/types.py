"""Type definitions for datagrid persistence."""

from __future__ import annotations

from enum import Enum


class StoreBackend(str, Enum):
    """Available key-value storage backends."""

    MEMORY = "memory"
    FILE = "file"
    REDIS = "redis"

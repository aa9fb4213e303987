"""datagrid persistence package.

Provides pluggable key-value backends for column customizations.
The default is in-memory storage; a JSON file or Redis can be configured
to keep settings across processes.

Usage
-----
    from datagrid.state import get_key_value_store

    # Configure via environment variables:
    # DATAGRID_STORAGE__BACKEND=file
    # DATAGRID_STORAGE__FILE_PATH=~/.config/datagrid/table-settings.json

Examples
--------
>>> from datagrid.state import MemoryKeyValueStore
>>> store = MemoryKeyValueStore()
>>> store.set("datagrid-columns-orders", "[]")
>>> store.get("datagrid-columns-orders")
'[]'
"""

from __future__ import annotations

from ._factory import (
    clear_store_caches,
    create_key_value_store,
    get_key_value_store,
    get_store_backend,
)
from .base import KeyValueStore
from .file import FileKeyValueStore
from .memory import MemoryKeyValueStore
from .types import StoreBackend


__all__ = [
    "FileKeyValueStore",
    "KeyValueStore",
    "MemoryKeyValueStore",
    "StoreBackend",
    "clear_store_caches",
    "create_key_value_store",
    "get_key_value_store",
    "get_store_backend",
]

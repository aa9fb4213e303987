"""Internal factory functions for key-value stores.

Kept apart from __init__.py so that config can be imported lazily.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import TYPE_CHECKING

from ..log import debug
from .file import FileKeyValueStore
from .memory import MemoryKeyValueStore
from .types import StoreBackend


if TYPE_CHECKING:
    from ..config import DataGridSettings
    from .base import KeyValueStore


def _get_settings() -> DataGridSettings:
    """Get the settings lazily to avoid circular imports."""
    from ..config import get_settings

    return get_settings()


def get_store_backend(settings: DataGridSettings | None = None) -> StoreBackend:
    """Get the configured storage backend.

    Parameters
    ----------
    settings : DataGridSettings, optional
        Settings to read; the global settings are used when omitted.

    Returns
    -------
    StoreBackend
        The configured backend (MEMORY, FILE or REDIS).
    """
    settings = settings or _get_settings()
    return StoreBackend(settings.storage.backend)


def create_key_value_store(settings: DataGridSettings | None = None) -> KeyValueStore:
    """Build a new store for the configured backend.

    Parameters
    ----------
    settings : DataGridSettings, optional
        Settings to read; the global settings are used when omitted.

    Returns
    -------
    KeyValueStore
        A fresh store instance.
    """
    settings = settings or _get_settings()
    backend = get_store_backend(settings)
    storage = settings.storage

    if backend == StoreBackend.REDIS:
        from .redis import RedisKeyValueStore

        debug(f"Using Redis key-value store with prefix '{storage.redis_prefix}'")
        return RedisKeyValueStore(
            redis_url=storage.redis_url,
            prefix=storage.redis_prefix,
            ttl=storage.redis_ttl,
        )

    if backend == StoreBackend.FILE:
        path = Path(storage.file_path).expanduser()
        debug(f"Using file key-value store at {path}")
        return FileKeyValueStore(path)

    return MemoryKeyValueStore()


@lru_cache(maxsize=1)
def _cached_store() -> KeyValueStore:
    return create_key_value_store()


def get_key_value_store(settings: DataGridSettings | None = None) -> KeyValueStore:
    """Get a key-value store for the configured backend.

    Without explicit settings the process-wide store is returned (cached),
    so every table shares one medium. Explicit settings always build a
    new store.
    """
    if settings is not None:
        return create_key_value_store(settings)
    return _cached_store()


def clear_store_caches() -> None:
    """Clear the cached store instance.

    Useful for testing or when configuration changes.
    """
    _cached_store.cache_clear()

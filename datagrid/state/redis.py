"""Redis key-value store.

Shares column customizations between processes or hosts.
Requires the `redis` package: pip install redis
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, cast

from ..exceptions import StoreError
from .base import KeyValueStore


if TYPE_CHECKING:
    from redis import Redis


# Check for redis package
try:
    from redis import Redis as RedisClient
    from redis.exceptions import RedisError

    HAS_REDIS = True
    _REDIS_ERRORS: tuple[type[BaseException], ...] = (RedisError,)
except ImportError:
    HAS_REDIS = False
    RedisClient = None  # type: ignore[assignment,misc]
    _REDIS_ERRORS = ()


def _check_redis() -> None:
    """Check if redis package is available."""
    if not HAS_REDIS:
        msg = "Redis backend requires the 'redis' package. Install with: pip install redis"
        raise ImportError(msg)


class RedisKeyValueStore(KeyValueStore):
    """Redis-backed store; keys are namespaced with a prefix.

    Connection and command errors from the client are raised as
    :class:`~datagrid.exceptions.StoreError` with the original as cause.
    """

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379/0",
        prefix: str = "datagrid",
        ttl: int | None = None,
        *,
        redis_client: Redis | None = None,
    ) -> None:
        """Initialize the Redis store.

        Parameters
        ----------
        redis_url : str
            Redis connection URL.
        prefix : str
            Key prefix for all Redis keys.
        ttl : int, optional
            Expiry in seconds applied on every write. None keeps keys forever.
        redis_client : Redis, optional
            Pre-configured Redis client (for testing with fakeredis).
        """
        if redis_client is None:
            _check_redis()
        self._redis_url = redis_url
        self._prefix = prefix
        self._ttl = ttl
        self._client = redis_client

    def _key(self, key: str) -> str:
        """Get Redis key for a store key."""
        return f"{self._prefix}:kv:{key}"

    def _redis(self) -> Any:
        if self._client is None:
            self._client = RedisClient.from_url(self._redis_url, decode_responses=True)
        return self._client

    def get(self, key: str) -> str | None:
        """Read a value."""
        try:
            value = self._redis().get(self._key(key))
        except _REDIS_ERRORS as e:
            raise StoreError(f"Redis read failed: {e}", key=key) from e
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        return cast("str | None", value)

    def set(self, key: str, value: str) -> None:
        """Write a value."""
        try:
            if self._ttl:
                self._redis().set(self._key(key), value, ex=self._ttl)
            else:
                self._redis().set(self._key(key), value)
        except _REDIS_ERRORS as e:
            raise StoreError(f"Redis write failed: {e}", key=key) from e

    def remove(self, key: str) -> None:
        """Delete a key."""
        try:
            self._redis().delete(self._key(key))
        except _REDIS_ERRORS as e:
            raise StoreError(f"Redis delete failed: {e}", key=key) from e

    def keys(self, prefix: str = "") -> list[str]:
        """List stored keys starting with ``prefix``."""
        base = self._key("")
        try:
            names = [
                k.decode("utf-8") if isinstance(k, bytes) else k
                for k in self._redis().scan_iter(match=f"{base}{prefix}*")
            ]
        except _REDIS_ERRORS as e:
            raise StoreError(f"Redis scan failed: {e}", key=prefix) from e
        return sorted(name[len(base) :] for name in names)

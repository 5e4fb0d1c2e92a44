"""Key-value stores for cart snapshots."""
from typing import Dict, Optional, Protocol

from core.db import get_redis_sync, redis_configured, TTL
from core.logging import get_logger

logger = get_logger(__name__)


class KeyValueStore(Protocol):
    """Per-key string store the cart manager persists into."""

    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def delete(self, key: str) -> None:
        ...


class MemoryStore:
    """In-process store for development, tests, and when Redis is not configured."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._store: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._store.get(key)

    def set(self, key: str, value: str) -> None:
        self._store[key] = value

    def delete(self, key: str) -> None:
        self._store.pop(key, None)

    def keys(self):
        return list(self._store)


class RedisStore:
    """
    Upstash Redis backed store.

    Values are written as-is; an optional TTL expires abandoned carts.
    """

    def __init__(self, redis=None, ttl: Optional[int] = None):
        self._redis = redis  # Lazy initialization
        self.ttl = ttl

    @property
    def redis(self):
        """Get Redis client (lazy initialization)."""
        if self._redis is None:
            self._redis = get_redis_sync()
        return self._redis

    def get(self, key: str) -> Optional[str]:
        value = self.redis.get(key)
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    def set(self, key: str, value: str) -> None:
        if self.ttl:
            self.redis.set(key, value, ex=self.ttl)
        else:
            self.redis.set(key, value)

    def delete(self, key: str) -> None:
        self.redis.delete(key)


# Process-wide fallback store
_memory_store: Optional[MemoryStore] = None


def get_default_store() -> KeyValueStore:
    """Redis when Upstash credentials are set, otherwise a shared in-memory store."""
    global _memory_store
    if redis_configured():
        return RedisStore(ttl=TTL.CART)
    if _memory_store is None:
        logger.info("Redis not configured, cart snapshots kept in memory")
        _memory_store = MemoryStore()
    return _memory_store

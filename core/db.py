"""
Database Module - Redis client

Provides the Upstash Redis client singleton used for durable cart
snapshots, plus the key layout and expiry settings for cart partitions.
"""

import os
from typing import Optional

from upstash_redis import Redis

from core.errors import ERROR_REDIS_NOT_CONFIGURED


# Upstash Redis - standard env var names per docs
UPSTASH_REDIS_REST_URL = os.environ.get("UPSTASH_REDIS_REST_URL", "")
UPSTASH_REDIS_REST_TOKEN = os.environ.get("UPSTASH_REDIS_REST_TOKEN", "")


_redis_client: Optional[Redis] = None


def redis_configured() -> bool:
    """Whether Upstash credentials are present in the environment."""
    return bool(UPSTASH_REDIS_REST_URL and UPSTASH_REDIS_REST_TOKEN)


def get_redis_sync() -> Redis:
    """
    Get sync Upstash Redis client (singleton).
    
    Uses standard Upstash env var names:
    - UPSTASH_REDIS_REST_URL
    - UPSTASH_REDIS_REST_TOKEN
    
    The cart manager is synchronous, so only the sync client is exposed.
    """
    global _redis_client
    
    if _redis_client is None:
        if not redis_configured():
            raise ValueError(ERROR_REDIS_NOT_CONFIGURED)
        _redis_client = Redis(url=UPSTASH_REDIS_REST_URL, token=UPSTASH_REDIS_REST_TOKEN)
    
    return _redis_client


class RedisKeys:
    """Key prefixes for cart partitions."""
    
    CART = "cart:"  # cart:{identity}
    GUEST = "guest"
    
    @staticmethod
    def cart_key(identity_id: Optional[str]) -> str:
        return f"{RedisKeys.CART}{identity_id or RedisKeys.GUEST}"
    
    @staticmethod
    def guest_cart_key() -> str:
        return RedisKeys.cart_key(None)


def _read_ttl() -> Optional[int]:
    raw = os.environ.get("CART_TTL_SECONDS", "").strip()
    try:
        seconds = int(raw) if raw else 0
    except ValueError:
        seconds = 0
    return seconds if seconds > 0 else None


class TTL:
    """Time-to-live settings for Redis keys (seconds)."""
    
    # None keeps carts forever; set CART_TTL_SECONDS to expire abandoned carts
    CART: Optional[int] = _read_ttl()

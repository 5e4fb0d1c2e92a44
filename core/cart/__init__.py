"""Cart package: models, storage, and manager facade."""
from .models import CartLine
from .storage import KeyValueStore, MemoryStore, RedisStore, get_default_store
from .service import CartManager, get_cart_manager, merge_lines
from .identity import storage_key

__all__ = [
    "CartLine",
    "CartManager",
    "KeyValueStore",
    "MemoryStore",
    "RedisStore",
    "get_cart_manager",
    "get_default_store",
    "merge_lines",
    "storage_key",
]

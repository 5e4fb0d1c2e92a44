"""Pytest configuration and fixtures"""
import os
import pytest
from unittest.mock import Mock

# Keep tests on the in-memory store
os.environ.setdefault("LOG_LEVEL", "DEBUG")
os.environ.pop("UPSTASH_REDIS_REST_URL", None)
os.environ.pop("UPSTASH_REDIS_REST_TOKEN", None)

from core.cart import CartManager, MemoryStore


@pytest.fixture
def memory_store():
    """Empty in-memory key-value store"""
    return MemoryStore()


@pytest.fixture
def sample_user():
    """Logged-in user as returned by the auth API"""
    return {
        "id": "user-123",
        "email": "buyer@example.com",
        "username": "buyer",
        "role": "user",
    }


@pytest.fixture
def sample_product():
    """Catalog item passed to add_to_cart"""
    return {
        "id": 42,
        "name": "Vintage Tee",
        "image": "/uploads/tee.jpg",
        "price": 390,
        "category": "shirts",
        "size": "M",
        "maxStock": 3,
    }


@pytest.fixture
def guest_cart(memory_store):
    """Cart manager with no identity"""
    return CartManager(store=memory_store)


@pytest.fixture
def failing_store():
    """Store whose reads and writes always raise"""
    store = Mock()
    store.get.side_effect = ConnectionError("store offline")
    store.set.side_effect = OSError("quota exceeded")
    store.delete.side_effect = OSError("quota exceeded")
    return store


@pytest.fixture
def mock_redis():
    """Mock Upstash Redis client"""
    redis = Mock()
    redis.get.return_value = None
    redis.set.return_value = True
    redis.delete.return_value = 1
    return redis

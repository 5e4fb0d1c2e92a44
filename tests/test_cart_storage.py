"""Tests for cart stores and partition keys"""
import pytest
from types import SimpleNamespace

import core.db
import core.cart.storage as storage
from core.cart import MemoryStore, RedisStore, get_cart_manager, get_default_store, storage_key
from core.cart.identity import identity_id


class TestStorageKey:
    """Tests for identity -> partition key."""

    def test_guest_key(self):
        assert storage_key(None) == "cart:guest"

    def test_id_is_preferred(self):
        assert storage_key({"id": 12, "user_id": 99, "email": "a@b.c"}) == "cart:12"

    def test_falls_back_to_user_id_then_email(self):
        assert storage_key({"id": None, "user_id": 99}) == "cart:99"
        assert storage_key({"id": None, "email": "a@b.c"}) == "cart:a@b.c"

    def test_empty_identity_is_guest(self):
        assert identity_id({"id": None, "email": ""}) is None
        assert storage_key({}) == "cart:guest"

    def test_object_identity(self):
        user = SimpleNamespace(id="u-1", email="x@y.z")

        assert storage_key(user) == "cart:u-1"


class TestMemoryStore:
    """Tests for the in-memory store."""

    def test_set_get_delete(self):
        store = MemoryStore()

        store.set("cart:1", "[]")
        assert store.get("cart:1") == "[]"
        assert store.keys() == ["cart:1"]

        store.delete("cart:1")
        assert store.get("cart:1") is None

    def test_delete_missing_key(self):
        MemoryStore().delete("cart:none")


class TestRedisStore:
    """Tests for the Upstash Redis store."""

    def test_get_decodes_bytes(self, mock_redis):
        mock_redis.get.return_value = b'[{"id": "1"}]'

        assert RedisStore(redis=mock_redis).get("cart:1") == '[{"id": "1"}]'
        mock_redis.get.assert_called_once_with("cart:1")

    def test_set_without_ttl(self, mock_redis):
        RedisStore(redis=mock_redis).set("cart:1", "[]")

        mock_redis.set.assert_called_once_with("cart:1", "[]")

    def test_set_with_ttl(self, mock_redis):
        RedisStore(redis=mock_redis, ttl=3600).set("cart:1", "[]")

        mock_redis.set.assert_called_once_with("cart:1", "[]", ex=3600)

    def test_delete(self, mock_redis):
        RedisStore(redis=mock_redis).delete("cart:guest")

        mock_redis.delete.assert_called_once_with("cart:guest")

    def test_missing_credentials(self, monkeypatch):
        monkeypatch.setattr(core.db, "_redis_client", None)
        monkeypatch.setattr(core.db, "UPSTASH_REDIS_REST_URL", "")

        with pytest.raises(ValueError):
            RedisStore().get("cart:1")


class TestDefaultStore:
    """Tests for store selection."""

    def test_memory_store_without_redis(self, monkeypatch):
        monkeypatch.setattr(storage, "redis_configured", lambda: False)
        monkeypatch.setattr(storage, "_memory_store", None)

        store = get_default_store()

        assert isinstance(store, MemoryStore)
        assert get_default_store() is store

    def test_redis_store_when_configured(self, monkeypatch):
        monkeypatch.setattr(storage, "redis_configured", lambda: True)

        assert isinstance(get_default_store(), RedisStore)

    def test_get_cart_manager_uses_given_store(self, memory_store, sample_user):
        cart = get_cart_manager(identity=sample_user, store=memory_store)

        assert cart.store is memory_store
        assert cart.storage_key == "cart:user-123"

    def test_get_cart_manager_defaults_to_shared_store(self, monkeypatch):
        monkeypatch.setattr(storage, "redis_configured", lambda: False)
        monkeypatch.setattr(storage, "_memory_store", None)

        assert get_cart_manager().store is get_default_store()

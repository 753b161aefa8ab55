"""
Tests for cart snapshot storage backends.

Tests:
- MemoryCartStorage
- FileCartStorage (tmp directory, locking, atomic replace)
- RedisCartStorage (fake client)
- get_cart_storage factory
"""
from dataclasses import dataclass, field
from typing import Optional

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from foodcart.cart import CartStore, deserialize_cart
from foodcart.exceptions import PersistenceError
from foodcart.services.storage import (
    FileCartStorage,
    MemoryCartStorage,
    RedisCartStorage,
    get_cart_storage,
    reset_cart_storage,
)


@dataclass
class FakeRedisClient:
    """Minimal async stand-in for redis.asyncio.Redis."""

    store: dict[str, str] = field(default_factory=dict)
    ttls: dict[str, int] = field(default_factory=dict)
    fail: bool = False
    closed: bool = False

    def _check(self) -> None:
        if self.fail:
            raise RedisConnectionError("connection refused")

    async def get(self, key: str) -> Optional[str]:
        self._check()
        return self.store.get(key)

    async def setex(self, key: str, ttl: int, value: str) -> bool:
        self._check()
        self.store[key] = value
        self.ttls[key] = ttl
        return True

    async def delete(self, key: str) -> int:
        self._check()
        return 1 if self.store.pop(key, None) is not None else 0

    async def ping(self) -> bool:
        self._check()
        return True

    async def aclose(self) -> None:
        self.closed = True


# ============= Memory Tests =============


class TestMemoryStorage:
    """Tests for MemoryCartStorage."""

    @pytest.mark.asyncio
    async def test_save_load_delete(self):
        """Test the basic key-value cycle."""
        storage = MemoryCartStorage()

        assert await storage.load("k") is None
        await storage.save("k", "v")
        assert await storage.load("k") == "v"
        assert await storage.delete("k") is True
        assert await storage.delete("k") is False
        assert storage.save_count == 1
        assert await storage.health_check() is True


# ============= File Tests =============


class TestFileStorage:
    """Tests for FileCartStorage."""

    @pytest.mark.asyncio
    async def test_save_and_load(self, tmp_path):
        """Test a snapshot survives a new storage instance."""
        await FileCartStorage(data_directory=str(tmp_path)).save("cart_data", '{"a": 1}')

        assert await FileCartStorage(data_directory=str(tmp_path)).load("cart_data") == '{"a": 1}'
        assert (tmp_path / "cart_data.json").exists()
        assert not (tmp_path / "cart_data.json.tmp").exists()

    @pytest.mark.asyncio
    async def test_missing_key_is_none(self, tmp_path):
        """Test an absent snapshot loads as None."""
        storage = FileCartStorage(data_directory=str(tmp_path / "not-yet"))

        assert await storage.load("cart_data") is None

    @pytest.mark.asyncio
    async def test_session_keys_are_sanitized(self, tmp_path):
        """Test keys with separators map to safe file names."""
        storage = FileCartStorage(data_directory=str(tmp_path))

        await storage.save("cart_data:alice/../x", "v")

        assert (tmp_path / "cart_data_alice_.._x.json").exists()
        assert await storage.load("cart_data:alice/../x") == "v"

    @pytest.mark.asyncio
    async def test_overwrite_and_delete(self, tmp_path):
        """Test saves replace the file and delete removes it."""
        storage = FileCartStorage(data_directory=str(tmp_path))
        await storage.save("k", "one")
        await storage.save("k", "two")

        assert await storage.load("k") == "two"
        assert await storage.delete("k") is True
        assert await storage.load("k") is None
        assert await storage.delete("k") is False

    @pytest.mark.asyncio
    async def test_write_failure_raises_persistence_error(self, tmp_path):
        """Test OS errors surface as PersistenceError."""
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        storage = FileCartStorage(data_directory=str(blocker / "sub"))

        with pytest.raises(PersistenceError):
            await storage.save("k", "v")

    @pytest.mark.asyncio
    async def test_store_roundtrip_through_files(self, tmp_path, vendor_a, burger):
        """Test a store persists and a new store restores from disk."""
        storage = FileCartStorage(data_directory=str(tmp_path))
        store = await CartStore.open(storage, debounce_seconds=0.01)
        store.add_item(burger, vendor_a)
        store.add_item(burger, vendor_a)
        await store.close()

        restored = await CartStore.open(FileCartStorage(data_directory=str(tmp_path)))

        assert restored.state == store.state
        assert restored.item_count == 2


# ============= Redis Tests =============


class TestRedisStorage:
    """Tests for RedisCartStorage with a fake client."""

    @pytest.mark.asyncio
    async def test_save_sets_ttl(self):
        """Test writes use SETEX with the cart expiry."""
        client = FakeRedisClient()
        storage = RedisCartStorage(client=client)

        await storage.save("cart_data", "snapshot")

        assert client.store == {"cart_data": "snapshot"}
        assert client.ttls["cart_data"] == RedisCartStorage.CART_EXPIRY_SECONDS
        assert await storage.load("cart_data") == "snapshot"

    @pytest.mark.asyncio
    async def test_bytes_are_decoded(self):
        """Test a client without decode_responses still yields str."""
        storage = RedisCartStorage(client=FakeRedisClient(store={"k": b"snap"}))

        assert await storage.load("k") == "snap"

    @pytest.mark.asyncio
    async def test_errors_become_persistence_errors(self):
        """Test Redis failures are wrapped."""
        storage = RedisCartStorage(client=FakeRedisClient(fail=True))

        with pytest.raises(PersistenceError):
            await storage.load("k")
        with pytest.raises(PersistenceError):
            await storage.save("k", "v")
        with pytest.raises(PersistenceError):
            await storage.delete("k")
        assert await storage.health_check() is False

    @pytest.mark.asyncio
    async def test_store_survives_redis_outage(self, vendor_a, burger):
        """Test the cart keeps working while Redis is down."""
        client = FakeRedisClient(fail=True)
        store = await CartStore.open(RedisCartStorage(client=client), debounce_seconds=0.01)

        store.add_item(burger, vendor_a)
        await store.flush()
        assert store.dirty

        client.fail = False
        await store.flush()
        assert not store.dirty
        assert deserialize_cart(client.store["cart_data"]) == store.state

    @pytest.mark.asyncio
    async def test_close(self):
        """Test close releases the client."""
        client = FakeRedisClient()
        await RedisCartStorage(client=client).close()

        assert client.closed


# ============= Factory Tests =============


class TestStorageFactory:
    """Tests for get_cart_storage."""

    def test_explicit_memory_backend(self):
        """Test STORAGE_BACKEND=memory selects memory storage."""
        assert isinstance(get_cart_storage(), MemoryCartStorage)
        assert get_cart_storage() is get_cart_storage()

    def test_development_defaults_to_file(self, monkeypatch):
        """Test development mode without a backend uses files."""
        from foodcart.core.config import get_settings

        monkeypatch.delenv("STORAGE_BACKEND")
        get_settings.cache_clear()
        reset_cart_storage()

        assert isinstance(get_cart_storage(), FileCartStorage)

    def test_production_defaults_to_redis(self, monkeypatch):
        """Test real-service modes use Redis."""
        from foodcart.core.config import get_settings

        monkeypatch.delenv("STORAGE_BACKEND")
        monkeypatch.setenv("ENV_MODE", "production")
        get_settings.cache_clear()
        reset_cart_storage()

        storage = get_cart_storage()

        assert isinstance(storage, RedisCartStorage)
        assert storage.backend_name == "redis"

"""
Unit Tests for Store Repositories
=================================

Tests for the JSON file repository and the Redis repository, the latter
against an in-memory stand-in for the async Redis client.
"""

import json
from typing import Dict, Optional

import pytest

from storefront.core.errors import StorageError, StoreNotFoundError
from storefront.core.storage import repository as repository_module
from storefront.core.storage.repository import JSONFileStoreRepository, RedisStoreRepository

from tests.utils.data_generators import ContentDataGenerator, StoreDataGenerator
from tests.utils.helpers import write_store_file


class InMemoryRedis:
    """The subset of the async Redis client the repository calls."""

    def __init__(self, fail: bool = False) -> None:
        self.data: Dict[str, str] = {}
        self.fail = fail

    async def get(self, key: str) -> Optional[str]:
        if self.fail:
            raise ConnectionError("connection refused")
        return self.data.get(key)

    async def set(self, key: str, value: str) -> None:
        if self.fail:
            raise ConnectionError("connection refused")
        self.data[key] = value

    async def delete(self, key: str) -> int:
        if self.fail:
            raise ConnectionError("connection refused")
        return 1 if self.data.pop(key, None) is not None else 0


class TestJSONFileStoreRepository:
    """Test the file-backed record store."""

    @pytest.mark.asyncio
    async def test_find_published_store(self, repository):
        """Test domain lookup, case-insensitive, published only."""
        record = await repository.find_published_store("  FIRESIDE ")
        assert record is not None and record.id == "store-1"
        assert await repository.find_published_store("draftshop") is None
        assert await repository.find_published_store("nowhere") is None

    @pytest.mark.asyncio
    async def test_list_products_keeps_order(self, repository):
        """Test that products come back in catalog order."""
        products = await repository.list_products("store-1")
        assert [p.name for p in products] == ["Mug", "Tall Vase", "Retired Plate"]
        assert products[0].id == "1"
        assert products[1].price == 1200.0

    @pytest.mark.asyncio
    async def test_malformed_product_skipped(self, store_root, store):
        """Test that one bad product row does not hide the others."""
        write_store_file(store_root, store, [], None)
        path = store_root / "store-1.json"
        data = json.loads(path.read_text(encoding="utf-8"))
        data["products"] = [{"id": 1, "name": "Ok", "price": 10}, {"name": "No id"}]
        path.write_text(json.dumps(data), encoding="utf-8")

        products = await JSONFileStoreRepository(store_root).list_products("store-1")
        assert [p.name for p in products] == ["Ok"]

    @pytest.mark.asyncio
    async def test_load_and_save_content(self, repository):
        """Test that a save replaces the stored payload."""
        assert await repository.load_content("store-2") is None
        await repository.save_content("store-2", '{"version": 1}')
        assert await repository.load_content("store-2") == '{"version": 1}'
        assert await repository.load_content("store-1") == ContentDataGenerator.customized_payload()

    @pytest.mark.asyncio
    async def test_unknown_store(self, repository):
        """Test lookups of a missing store."""
        with pytest.raises(StoreNotFoundError):
            await repository.get_store("store-9")
        with pytest.raises(StoreNotFoundError):
            await repository.save_content("store-9", "{}")
        with pytest.raises(StoreNotFoundError):
            await repository.get_store("../../etc")

    @pytest.mark.asyncio
    async def test_unreadable_file(self, store_root):
        """Test that a corrupt file is a storage error, and skipped by domain lookup."""
        (store_root / "broken.json").write_text("{not json", encoding="utf-8")
        repository = JSONFileStoreRepository(store_root)
        with pytest.raises(StorageError):
            await repository.get_store("broken")
        assert await repository.find_published_store("fireside") is None

    @pytest.mark.asyncio
    async def test_put_store_keeps_content(self, repository, store):
        """Test that updating a profile leaves the content untouched."""
        renamed = store.model_copy(update={"store_name": "Fireside Kiln"})
        await repository.put_store(renamed)
        assert (await repository.get_store("store-1")).store_name == "Fireside Kiln"
        assert await repository.load_content("store-1") == ContentDataGenerator.customized_payload()
        assert len(await repository.list_products("store-1")) == 3

    @pytest.mark.asyncio
    async def test_failed_write_leaves_no_temp_file(self, repository, store, store_root, monkeypatch):
        """Test that an interrupted write keeps the old file and cleans up."""

        def refuse(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr(repository_module.os, "replace", refuse)
        with pytest.raises(StorageError):
            await repository.put_store(store.model_copy(update={"store_name": "Lost"}))
        monkeypatch.undo()

        assert list(store_root.glob("*.tmp")) == []
        assert (await repository.get_store("store-1")).store_name == store.store_name


class TestRedisStoreRepository:
    """Test the Redis-backed record store."""

    @pytest.fixture
    def redis_client(self):
        return InMemoryRedis()

    @pytest.mark.asyncio
    async def test_keys_layout(self, redis_client, store):
        """Test the key names written for a store."""
        await RedisStoreRepository(client=redis_client, prefix="test").put_store(store, [])
        assert set(redis_client.data) == {"test:store:store-1", "test:domain:fireside", "test:products:store-1"}
        assert redis_client.data["test:domain:fireside"] == "store-1"

    @pytest.mark.asyncio
    async def test_round_trip(self, redis_client, store, products):
        """Test store, products and content through Redis."""
        repository = RedisStoreRepository(client=redis_client, prefix="test")
        await repository.put_store(store, products)
        await repository.put_store(StoreDataGenerator.draft_record(), [])

        assert (await repository.find_published_store("Fireside")).id == "store-1"
        assert await repository.find_published_store("draftshop") is None
        assert [p.name for p in await repository.list_products("store-1")] == ["Mug", "Tall Vase", "Retired Plate"]

        assert await repository.load_content("store-1") is None
        await repository.save_content("store-1", '{"version": 1}')
        assert await repository.load_content("store-1") == '{"version": 1}'

    @pytest.mark.asyncio
    async def test_domain_change(self, redis_client, store):
        """Test that a renamed store is no longer served under its old domain."""
        repository = RedisStoreRepository(client=redis_client, prefix="test")
        await repository.put_store(store.model_copy(update={"domain_name": "oldname"}), [])
        await repository.put_store(store.model_copy(update={"domain_name": "newname"}))

        assert await repository.find_published_store("oldname") is None
        assert (await repository.find_published_store("newname")).id == "store-1"
        assert "test:domain:oldname" not in redis_client.data

    @pytest.mark.asyncio
    async def test_stale_domain_key_ignored(self, redis_client, store):
        """Test a domain key pointing at a store that now uses another domain."""
        repository = RedisStoreRepository(client=redis_client, prefix="test")
        await repository.put_store(store, [])
        redis_client.data["test:domain:someoneelse"] = "store-1"
        assert await repository.find_published_store("someoneelse") is None

    @pytest.mark.asyncio
    async def test_save_for_unknown_store(self, redis_client):
        """Test that content is never written for a missing store."""
        repository = RedisStoreRepository(client=redis_client, prefix="test")
        with pytest.raises(StoreNotFoundError):
            await repository.save_content("store-9", "{}")
        assert redis_client.data == {}

    @pytest.mark.asyncio
    async def test_connection_failure(self):
        """Test that client errors surface as storage errors."""
        repository = RedisStoreRepository(client=InMemoryRedis(fail=True), prefix="test")
        with pytest.raises(StorageError):
            await repository.get_store("store-1")
        with pytest.raises(StorageError):
            await repository.find_published_store("fireside")
        with pytest.raises(StorageError):
            await repository.load_content("store-1")

"""
Tests for EntityStore CRUD over a single collection.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from bson import ObjectId
from pymongo.errors import OperationFailure

from app.core.exceptions import NotFoundError
from app.db.entity_store import EntityStore
from app.db.mongo import MongoPool, ADDRESSES


@pytest.fixture
def store(pool):
    return EntityStore(pool, ADDRESSES)


class TestEntityStore:
    @pytest.mark.asyncio
    async def test_upsert_inserts_then_replaces(self, store, database):
        oid = ObjectId()
        await store.upsert(oid, {"city": "Glasgow", "street": "Main"})
        await store.upsert(oid, {"city": "Leeds"})

        docs = await database[ADDRESSES].find({}).to_list(length=None)
        assert docs == [{"_id": oid, "city": "Leeds"}]

    @pytest.mark.asyncio
    async def test_find_by_id(self, store):
        oid = ObjectId()
        await store.upsert(oid, {"city": "Glasgow"})

        doc = await store.find_by_id(oid)

        assert doc["_id"] == oid
        assert doc["city"] == "Glasgow"

    @pytest.mark.asyncio
    async def test_find_by_id_missing_raises_not_found(self, store, pool):
        with pytest.raises(NotFoundError):
            await store.find_by_id(ObjectId())
        assert pool.active_leases == 0

    @pytest.mark.asyncio
    async def test_find_one_by_filter(self, store):
        await store.upsert(ObjectId(), {"city": "Glasgow"})
        await store.upsert(ObjectId(), {"city": "Leeds"})

        doc = await store.find_one({"city": "Leeds"})
        assert doc["city"] == "Leeds"

        with pytest.raises(NotFoundError):
            await store.find_one({"city": "Paris"})

    @pytest.mark.asyncio
    async def test_find_all_with_and_without_filter(self, store):
        for city in ("Glasgow", "Leeds", "Leeds"):
            await store.upsert(ObjectId(), {"city": city})

        assert len(await store.find_all()) == 3
        assert len(await store.find_all({"city": "Leeds"})) == 2
        assert await store.find_all({"city": "Paris"}) == []

    @pytest.mark.asyncio
    async def test_find_many_skips_unknown_ids(self, store):
        known = ObjectId()
        await store.upsert(known, {"city": "Glasgow"})

        docs = await store.find_many([known, ObjectId()])

        assert [d["_id"] for d in docs] == [known]

    @pytest.mark.asyncio
    async def test_remove(self, store):
        oid = ObjectId()
        await store.upsert(oid, {"city": "Glasgow"})

        await store.remove(oid)

        with pytest.raises(NotFoundError):
            await store.find_by_id(oid)

    @pytest.mark.asyncio
    async def test_remove_missing_raises_not_found(self, store):
        with pytest.raises(NotFoundError):
            await store.remove(ObjectId())

    @pytest.mark.asyncio
    async def test_remove_many_counts_removed(self, store):
        ids = [ObjectId() for _ in range(3)]
        for oid in ids:
            await store.upsert(oid, {"city": "X"})

        removed = await store.remove_many(ids[:2] + [ObjectId()])

        assert removed == 2
        assert [d["_id"] for d in await store.find_all()] == [ids[2]]

    @pytest.mark.asyncio
    async def test_remove_many_with_no_ids(self, store):
        await store.upsert(ObjectId(), {"city": "X"})
        assert await store.remove_many([]) == 0
        assert len(await store.find_all()) == 1

    @pytest.mark.asyncio
    async def test_update_one_missing_raises_not_found(self, store):
        with pytest.raises(NotFoundError):
            await store.update_one(ObjectId(), {"$set": {"city": "X"}})

    @pytest.mark.asyncio
    async def test_update_many(self, store):
        for _ in range(2):
            await store.upsert(ObjectId(), {"city": "X", "tags": ["a", "b"]})

        modified = await store.update_many({}, {"$pull": {"tags": "a"}})

        assert modified == 2
        assert all(d["tags"] == ["b"] for d in await store.find_all())

    @pytest.mark.asyncio
    async def test_driver_errors_propagate_unchanged_and_release_lease(self):
        error = OperationFailure("server said no")
        client = MagicMock()
        collection = client.__getitem__.return_value.__getitem__.return_value
        collection.replace_one = AsyncMock(side_effect=error)
        pool = MongoPool.from_client(client, "users")
        store = EntityStore(pool, ADDRESSES)

        with pytest.raises(OperationFailure) as exc:
            await store.upsert(ObjectId(), {"city": "X"})

        assert exc.value is error
        collection.replace_one.assert_awaited_once()
        assert pool.active_leases == 0

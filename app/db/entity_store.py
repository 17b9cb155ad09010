"""
app/db/entity_store.py

Purpose: Generic per-collection CRUD

- Upsert, point lookup, scans, removal and update primitives
- Each call leases its own connection and releases it on every exit path
- No retries; driver errors reach the caller unchanged
"""

from typing import Any, Dict, Iterable, List, Optional

from bson import ObjectId

from app.core.exceptions import NotFoundError
from app.core.logging import get_logger
from app.core.tracing import TraceContext, start_span
from app.db.mongo import MongoPool

logger = get_logger(__name__)


class EntityStore:
    """CRUD over one collection, documents keyed by `_id`."""

    def __init__(self, pool: MongoPool, collection: str):
        self.pool = pool
        self.collection = collection

    def _span(self, operation: str, ctx: Optional[TraceContext], **tags):
        return start_span(
            f"mongodb: {operation}",
            ctx,
            db_type="mongodb",
            collection=self.collection,
            **tags,
        )

    async def upsert(self, id: ObjectId, document: Dict[str, Any], *, ctx: Optional[TraceContext] = None) -> None:
        """Inserts or replaces the document with `_id` = `id`."""
        with self._span("upsert", ctx, entity_id=str(id)):
            async with self.pool.lease() as lease:
                await lease.collection(self.collection).replace_one(
                    {"_id": id},
                    {**document, "_id": id},
                    upsert=True,
                )

    async def find_by_id(self, id: ObjectId, *, ctx: Optional[TraceContext] = None) -> Dict[str, Any]:
        """
        Raises:
            NotFoundError: If no document has this id.
        """
        with self._span("find by id", ctx, entity_id=str(id)):
            async with self.pool.lease() as lease:
                doc = await lease.collection(self.collection).find_one({"_id": id})
            if doc is None:
                raise NotFoundError(details={"collection": self.collection, "id": str(id)})
            return doc

    async def find_one(self, filter: Dict[str, Any], *, ctx: Optional[TraceContext] = None) -> Dict[str, Any]:
        """
        Raises:
            NotFoundError: If nothing matches `filter`.
        """
        with self._span("find one", ctx):
            async with self.pool.lease() as lease:
                doc = await lease.collection(self.collection).find_one(filter)
            if doc is None:
                raise NotFoundError(details={"collection": self.collection})
            return doc

    async def find_all(
        self,
        filter: Optional[Dict[str, Any]] = None,
        *,
        ctx: Optional[TraceContext] = None
    ) -> List[Dict[str, Any]]:
        with self._span("find all", ctx) as span:
            async with self.pool.lease() as lease:
                cursor = lease.collection(self.collection).find(filter or {})
                docs = await cursor.to_list(length=None)
            span.set_attribute("result.count", len(docs))
            return docs

    async def find_many(self, ids: Iterable[ObjectId], *, ctx: Optional[TraceContext] = None) -> List[Dict[str, Any]]:
        """Batched membership query; ids with no document are simply absent."""
        return await self.find_all({"_id": {"$in": list(ids)}}, ctx=ctx)

    async def remove(self, id: ObjectId, *, ctx: Optional[TraceContext] = None) -> None:
        """
        Raises:
            NotFoundError: If no document was removed.
        """
        with self._span("remove", ctx, entity_id=str(id)):
            async with self.pool.lease() as lease:
                result = await lease.collection(self.collection).delete_one({"_id": id})
            if result.deleted_count == 0:
                raise NotFoundError(details={"collection": self.collection, "id": str(id)})

    async def remove_many(self, ids: Iterable[ObjectId], *, ctx: Optional[TraceContext] = None) -> int:
        ids = list(ids)
        with self._span("remove many", ctx) as span:
            async with self.pool.lease() as lease:
                result = await lease.collection(self.collection).delete_many({"_id": {"$in": ids}})
            span.set_attribute("result.count", result.deleted_count)
            return result.deleted_count

    async def update_one(self, id: ObjectId, update: Dict[str, Any], *, ctx: Optional[TraceContext] = None) -> None:
        """
        Applies an update document to one record.

        Raises:
            NotFoundError: If no document has this id.
        """
        with self._span("update", ctx, entity_id=str(id)):
            async with self.pool.lease() as lease:
                result = await lease.collection(self.collection).update_one({"_id": id}, update)
            if result.matched_count == 0:
                raise NotFoundError(details={"collection": self.collection, "id": str(id)})

    async def update_many(
        self,
        filter: Dict[str, Any],
        update: Dict[str, Any],
        *,
        ctx: Optional[TraceContext] = None
    ) -> int:
        with self._span("update many", ctx) as span:
            async with self.pool.lease() as lease:
                result = await lease.collection(self.collection).update_many(filter, update)
            span.set_attribute("result.count", result.modified_count)
            return result.modified_count

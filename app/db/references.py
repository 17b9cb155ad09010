"""
app/db/references.py

Purpose: Referential integrity between customers, addresses and cards

- Adds/removes single ids in a customer's reference lists ($addToSet / $pull)
- Creates standalone or linked addresses and cards (insert, then link)
- Deletes entities, cascading from customers to their addresses and cards

None of these steps is atomic across collections. A failure between steps
can leave an orphaned address/card or a dangling reference; nothing here
repairs that later.
"""

from enum import Enum
from typing import Optional, Union

from bson import ObjectId
from pymongo.errors import PyMongoError

from app.core.exceptions import InvalidEntityError, UserStoreError
from app.core.logging import get_logger
from app.core.tracing import TraceContext, start_span
from app.db.entity_store import EntityStore
from app.db.identifiers import decode_id
from app.db.mongo import ADDRESSES, CARDS, CUSTOMERS
from app.db.records import AddressRecord, CardRecord, CustomerRecord
from app.models.address import Address
from app.models.card import Card

logger = get_logger(__name__)


class EntityKind(str, Enum):
    CUSTOMERS = CUSTOMERS
    ADDRESSES = ADDRESSES
    CARDS = CARDS

    @classmethod
    def parse(cls, value: Union["EntityKind", str]) -> "EntityKind":
        try:
            return cls(value)
        except ValueError:
            raise InvalidEntityError(details={"entity": str(value)}) from None

    @property
    def is_root(self) -> bool:
        return self is EntityKind.CUSTOMERS


# Reference list fields on a customer document
REFERENCE_FIELDS = (ADDRESSES, CARDS)


def _as_object_id(value: Union[ObjectId, str]) -> ObjectId:
    if isinstance(value, ObjectId):
        return value
    return decode_id(value)


class ReferenceManager:
    def __init__(self, customers: EntityStore, addresses: EntityStore, cards: EntityStore):
        self.customers = customers
        self.addresses = addresses
        self.cards = cards

    def _store_for(self, kind: EntityKind) -> EntityStore:
        return {
            EntityKind.CUSTOMERS: self.customers,
            EntityKind.ADDRESSES: self.addresses,
            EntityKind.CARDS: self.cards,
        }[kind]

    @staticmethod
    def _check_field(attr: str) -> None:
        if attr not in REFERENCE_FIELDS:
            raise ValueError(f"Not a reference field: {attr}")

    async def append_attribute_id(
        self,
        attr: str,
        id: ObjectId,
        user_id: Union[ObjectId, str],
        *,
        ctx: Optional[TraceContext] = None
    ) -> None:
        """
        Adds `id` to the user's `attr` list. Adding an id that is already
        present leaves the list unchanged.

        Raises:
            InvalidIdentifierError: If `user_id` is malformed.
            NotFoundError: If the user does not exist.
        """
        self._check_field(attr)
        await self.customers.update_one(
            _as_object_id(user_id),
            {"$addToSet": {attr: id}},
            ctx=ctx,
        )

    async def remove_attribute_id(
        self,
        attr: str,
        id: ObjectId,
        user_id: Union[ObjectId, str],
        *,
        ctx: Optional[TraceContext] = None
    ) -> None:
        """Removes `id` from the user's `attr` list."""
        self._check_field(attr)
        await self.customers.update_one(
            _as_object_id(user_id),
            {"$pull": {attr: id}},
            ctx=ctx,
        )

    async def create_card(self, card: Card, user_id: str = "", *, ctx: Optional[TraceContext] = None) -> Card:
        """
        Stores a card and, when `user_id` is given, links it to that user.

        If linking fails the card stays stored but unreferenced and the link
        error is raised.
        """
        with start_span("mongodb: create card", ctx, collection=CARDS, user_id=user_id):
            owner = decode_id(user_id) if user_id else None
            record = CardRecord.from_card(card, ObjectId())
            await self.cards.upsert(record.id, record.to_document(), ctx=ctx)
            if owner is not None:
                await self.append_attribute_id(CARDS, record.id, owner, ctx=ctx)
            return record.to_card()

    async def create_address(
        self,
        address: Address,
        user_id: str = "",
        *,
        ctx: Optional[TraceContext] = None
    ) -> Address:
        """
        Stores an address and, when `user_id` is given, links it to that user.

        If linking fails the address stays stored but unreferenced and the
        link error is raised.
        """
        with start_span("mongodb: create address", ctx, collection=ADDRESSES, user_id=user_id):
            owner = decode_id(user_id) if user_id else None
            record = AddressRecord.from_address(address, ObjectId())
            await self.addresses.upsert(record.id, record.to_document(), ctx=ctx)
            if owner is not None:
                await self.append_attribute_id(ADDRESSES, record.id, owner, ctx=ctx)
            return record.to_address()

    async def delete(
        self,
        kind: Union[EntityKind, str],
        id: str,
        *,
        ctx: Optional[TraceContext] = None
    ) -> None:
        """
        Deletes a customer (cascading to its addresses and cards) or a single
        address/card (pulling it out of every customer first).

        Raises:
            InvalidEntityError: If `kind` is not a known collection.
            InvalidIdentifierError: If `id` is malformed; nothing is modified.
            NotFoundError: If the entity does not exist.
        """
        ctx = ctx or TraceContext()
        kind = EntityKind.parse(kind)
        with start_span("mongodb: delete entity", ctx, collection=kind.value, entity_id=id):
            oid = decode_id(id)
            if kind.is_root:
                await self._delete_customer(oid, ctx)
            else:
                await self._delete_attribute(kind, oid, ctx)

    async def _delete_customer(self, oid: ObjectId, ctx: TraceContext) -> None:
        record = CustomerRecord.from_document(await self.customers.find_by_id(oid, ctx=ctx))

        # Failures here leave orphans behind; the customer is removed regardless.
        for store, ids in ((self.addresses, record.address_ids), (self.cards, record.card_ids)):
            try:
                await store.remove_many(ids, ctx=ctx)
            except (PyMongoError, UserStoreError) as e:
                logger.warning(
                    f"Cascade delete of {store.collection} for customer {oid} failed: {e}",
                    extra=ctx.log_extra(collection=store.collection, user_id=str(oid), error=str(e)),
                )

        await self.customers.remove(oid, ctx=ctx)

    async def _delete_attribute(self, kind: EntityKind, oid: ObjectId, ctx: TraceContext) -> None:
        # No reverse index: every customer document is scanned.
        await self.customers.update_many({}, {"$pull": {kind.value: oid}}, ctx=ctx)
        await self._store_for(kind).remove(oid, ctx=ctx)

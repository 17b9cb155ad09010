"""
app/services/user_service.py

Purpose: User aggregate persistence

- Creates users together with their nested addresses and cards
- Reads users, addresses and cards with ids translated to hex strings
- Hydrates a user's address/card references
- Delegates linking and cascade deletes to the ReferenceManager
- Startup (dial + indexes), ping and health
"""

import time
from typing import Any, Dict, List, Optional, Tuple

from bson import ObjectId
from pymongo.errors import DuplicateKeyError, PyMongoError

from app.core.exceptions import (
    DuplicateUsernameError,
    PartialAggregateFailure,
    UserStoreError,
)
from app.core.logging import get_logger
from app.core.tracing import TraceContext, start_span
from app.db.entity_store import EntityStore
from app.db.identifiers import decode_id
from app.db.indexes import ensure_indexes
from app.db.mongo import ADDRESSES, CARDS, CUSTOMERS, MongoPool
from app.db.records import AddressRecord, CardRecord, CustomerRecord
from app.db.references import EntityKind, ReferenceManager
from app.models.address import Address
from app.models.card import Card
from app.models.user import User

logger = get_logger(__name__)

# Failures a database round trip may raise
STORE_ERRORS = (PyMongoError, UserStoreError)


class UserService:
    """
    Storage facade for the user aggregate.

    A user document lives in `customers`; its addresses and cards live in
    their own collections and are referenced by id. Writes spanning
    collections are sequential and not atomic.
    """

    def __init__(self, pool: MongoPool):
        self.pool = pool
        self.customers = EntityStore(pool, CUSTOMERS)
        self.addresses = EntityStore(pool, ADDRESSES)
        self.cards = EntityStore(pool, CARDS)
        self.references = ReferenceManager(self.customers, self.addresses, self.cards)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def init(self) -> None:
        """Dials the database and ensures the unique username index."""
        await self.pool.connect()
        await ensure_indexes(self.pool)

    async def ping(self) -> None:
        await self.pool.ping()

    async def health(self) -> List[Dict[str, Any]]:
        """Health entries for this service and its database."""
        now = time.strftime("%Y-%m-%d %H:%M:%S", time.gmtime())
        db_status = "OK"
        try:
            await self.ping()
        except STORE_ERRORS as e:
            logger.error(f"Database health check failed: {str(e)}")
            db_status = "err"
        return [
            {"service": "user", "status": "OK", "time": now},
            {"service": "user-db", "status": db_status, "time": now},
        ]

    def close(self) -> None:
        self.pool.close()

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    async def create_user(self, user: User, *, ctx: Optional[TraceContext] = None) -> User:
        """
        Stores a user and its nested cards and addresses.

        Each nested item is written on its own; any failure, including a
        document that cannot be encoded, is collected rather than aborting.
        If the user document itself cannot be written, the nested documents
        just created are removed (best effort) and the user write error is
        raised.

        Returns:
            The stored user with its id and nested ids assigned.

        Raises:
            DuplicateUsernameError: If the username is taken.
            PartialAggregateFailure: If the user was stored but some nested
                writes failed. The user keeps the references that succeeded.
        """
        ctx = ctx or TraceContext()
        with start_span("mongodb: create user", ctx, collection=CUSTOMERS, username=user.username):
            record = CustomerRecord.from_user(user, ObjectId())

            cards, card_errors = await self._create_cards(user.cards, ctx)
            addresses, address_errors = await self._create_addresses(user.addresses, ctx)
            record.card_ids = [c.id for c in cards]
            record.address_ids = [a.id for a in addresses]

            try:
                await self.customers.upsert(record.id, record.to_document(), ctx=ctx)
            except Exception as e:
                await self._clean_attributes(record, ctx)
                if isinstance(e, DuplicateKeyError):
                    raise DuplicateUsernameError(details={"username": user.username}) from e
                raise

            created = record.to_user()
            created.addresses = [a.to_address() for a in addresses]
            created.cards = [c.to_card() for c in cards]

            if card_errors or address_errors:
                raise PartialAggregateFailure(created, card_errors=card_errors, address_errors=address_errors)

            logger.info(
                f"Created user {created.id}",
                extra=ctx.log_extra(user_id=created.id, collection=CUSTOMERS)
            )
            return created

    async def _create_cards(
        self,
        cards: List[Card],
        ctx: TraceContext
    ) -> Tuple[List[CardRecord], List[Exception]]:
        created, errors = [], []
        for card in cards:
            record = CardRecord.from_card(card, ObjectId())
            try:
                await self.cards.upsert(record.id, record.to_document(), ctx=ctx)
            except Exception as e:
                errors.append(e)
                continue
            created.append(record)
        return created, errors

    async def _create_addresses(
        self,
        addresses: List[Address],
        ctx: TraceContext
    ) -> Tuple[List[AddressRecord], List[Exception]]:
        created, errors = [], []
        for address in addresses:
            record = AddressRecord.from_address(address, ObjectId())
            try:
                await self.addresses.upsert(record.id, record.to_document(), ctx=ctx)
            except Exception as e:
                errors.append(e)
                continue
            created.append(record)
        return created, errors

    async def _clean_attributes(self, record: CustomerRecord, ctx: TraceContext) -> None:
        # The user write error takes precedence; cleanup failures are only logged.
        for store, ids in ((self.addresses, record.address_ids), (self.cards, record.card_ids)):
            try:
                await store.remove_many(ids, ctx=ctx)
            except Exception as e:
                logger.warning(
                    f"Could not clean up {store.collection} after failed user write: {e}",
                    extra=ctx.log_extra(collection=store.collection, error=str(e))
                )

    async def get_user(self, id: str, *, ctx: Optional[TraceContext] = None) -> User:
        """
        Raises:
            InvalidIdentifierError: If `id` is malformed.
            NotFoundError: If no user has this id.
        """
        with start_span("mongodb: find user by id", ctx, collection=CUSTOMERS, user_id=id):
            doc = await self.customers.find_by_id(decode_id(id), ctx=ctx)
            return CustomerRecord.from_document(doc).to_user()

    async def get_user_by_name(self, name: str, *, ctx: Optional[TraceContext] = None) -> User:
        """
        Raises:
            NotFoundError: If no user has this username.
        """
        with start_span("mongodb: find user by name", ctx, collection=CUSTOMERS, username=name):
            doc = await self.customers.find_one({"username": name}, ctx=ctx)
            return CustomerRecord.from_document(doc).to_user()

    async def get_users(self, *, ctx: Optional[TraceContext] = None) -> List[User]:
        docs = await self.customers.find_all(ctx=ctx)
        return [CustomerRecord.from_document(doc).to_user() for doc in docs]

    async def get_user_attributes(self, user: User, *, ctx: Optional[TraceContext] = None) -> User:
        """
        Loads the addresses and cards a user references.

        Returns a copy of `user` whose addresses and cards are the stored
        documents, in reference order. References to documents that no
        longer exist are dropped without error.

        Raises:
            InvalidIdentifierError: If any reference id is malformed.
        """
        with start_span("mongodb: get user attributes", ctx, user_id=user.id):
            address_ids = [decode_id(a.id) for a in user.addresses]
            card_ids = [decode_id(c.id) for c in user.cards]

            address_docs = await self.addresses.find_many(address_ids, ctx=ctx)
            card_docs = await self.cards.find_many(card_ids, ctx=ctx)

            addresses = _in_reference_order(address_ids, address_docs)
            cards = _in_reference_order(card_ids, card_docs)

            return user.model_copy(update={
                "addresses": [AddressRecord.from_document(d).to_address() for d in addresses],
                "cards": [CardRecord.from_document(d).to_card() for d in cards],
            })

    # ------------------------------------------------------------------
    # Addresses and cards
    # ------------------------------------------------------------------

    async def create_card(self, card: Card, user_id: str = "", *, ctx: Optional[TraceContext] = None) -> Card:
        return await self.references.create_card(card, user_id, ctx=ctx)

    async def get_card(self, id: str, *, ctx: Optional[TraceContext] = None) -> Card:
        doc = await self.cards.find_by_id(decode_id(id), ctx=ctx)
        return CardRecord.from_document(doc).to_card()

    async def get_cards(self, *, ctx: Optional[TraceContext] = None) -> List[Card]:
        docs = await self.cards.find_all(ctx=ctx)
        return [CardRecord.from_document(doc).to_card() for doc in docs]

    async def create_address(
        self,
        address: Address,
        user_id: str = "",
        *,
        ctx: Optional[TraceContext] = None
    ) -> Address:
        return await self.references.create_address(address, user_id, ctx=ctx)

    async def get_address(self, id: str, *, ctx: Optional[TraceContext] = None) -> Address:
        doc = await self.addresses.find_by_id(decode_id(id), ctx=ctx)
        return AddressRecord.from_document(doc).to_address()

    async def get_addresses(self, *, ctx: Optional[TraceContext] = None) -> List[Address]:
        docs = await self.addresses.find_all(ctx=ctx)
        return [AddressRecord.from_document(doc).to_address() for doc in docs]

    async def delete(self, kind: EntityKind, id: str, *, ctx: Optional[TraceContext] = None) -> None:
        await self.references.delete(kind, id, ctx=ctx)


def _in_reference_order(ids: List[ObjectId], docs: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    by_id = {doc["_id"]: doc for doc in docs}
    return [by_id[i] for i in ids if i in by_id]

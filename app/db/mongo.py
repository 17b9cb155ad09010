"""
app/db/mongo.py

Purpose: MongoDB connection pool and scoped leases

- One Motor client per process, dialed once at startup with a bounded timeout
- Every storage operation checks out a Lease and releases it on every exit path
- Liveness check (ping)
- Collection names for the three persisted collections
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo.errors import ConnectionFailure, ServerSelectionTimeoutError

from app.core.exceptions import ConnectivityError
from app.core.logging import get_logger

logger = get_logger(__name__)

CUSTOMERS = "customers"
ADDRESSES = "addresses"
CARDS = "cards"


class Lease:
    """
    A checked-out handle on the pool's database.

    Leases are cheap and independent; each operation owns exactly one and the
    pool releases it when the operation's `async with` block exits.
    """

    def __init__(self, pool: "MongoPool", database: AsyncIOMotorDatabase):
        self._pool = pool
        self._database = database
        self.released = False

    @property
    def database(self) -> AsyncIOMotorDatabase:
        if self.released:
            raise RuntimeError("Lease used after release")
        return self._database

    def collection(self, name: str) -> AsyncIOMotorCollection:
        return self.database[name]

    def release(self) -> None:
        if not self.released:
            self.released = True
            self._pool._checkin()


class MongoPool:
    """
    Long-lived MongoDB client shared by all storage operations.

    The client is dialed once by connect() and never redialed.
    """

    def __init__(
        self,
        url: str,
        database_name: str,
        connect_timeout_seconds: int = 5,
        client_factory: Callable[..., AsyncIOMotorClient] = AsyncIOMotorClient,
    ):
        self.url = url
        self.database_name = database_name
        self.connect_timeout_seconds = connect_timeout_seconds
        self._client_factory = client_factory
        self._client: Optional[AsyncIOMotorClient] = None
        self._closed = False
        self._active_leases = 0

    @classmethod
    def from_client(cls, client: AsyncIOMotorClient, database_name: str) -> "MongoPool":
        """Wraps an already-constructed client (tests, scripts)."""
        pool = cls(url="", database_name=database_name)
        pool._client = client
        return pool

    @property
    def is_connected(self) -> bool:
        return self._client is not None and not self._closed

    @property
    def active_leases(self) -> int:
        return self._active_leases

    async def connect(self) -> None:
        """
        Dials MongoDB and verifies the connection with a ping.
        Called once during application startup.

        Raises:
            ConnectivityError: If the server is unreachable within the timeout,
                or the pool was already closed.
        """
        if self._closed:
            raise ConnectivityError("MongoDB pool is closed")

        if self._client is not None:
            logger.warning("MongoDB client already initialized")
            return

        timeout_ms = self.connect_timeout_seconds * 1000
        logger.info(f"Connecting to MongoDB database '{self.database_name}'")

        client = self._client_factory(
            self.url,
            serverSelectionTimeoutMS=timeout_ms,
            connectTimeoutMS=timeout_ms,
            retryWrites=False,
            retryReads=False,
        )
        try:
            await client.admin.command("ping")
        except (ConnectionFailure, ServerSelectionTimeoutError) as e:
            client.close()
            logger.critical(f"Failed to connect to MongoDB: {e}")
            raise ConnectivityError("Could not establish MongoDB connection") from e

        self._client = client
        logger.info(f"Connected to MongoDB: {self.database_name}")

    @asynccontextmanager
    async def lease(self) -> AsyncIterator[Lease]:
        """
        Checks out a lease for the duration of one operation.

        Raises:
            ConnectivityError: If the pool is not connected.
        """
        if not self.is_connected:
            raise ConnectivityError("MongoDB pool is not connected")

        lease = Lease(self, self._client[self.database_name])
        self._active_leases += 1
        try:
            yield lease
        finally:
            lease.release()

    def _checkin(self) -> None:
        self._active_leases -= 1

    async def ping(self) -> None:
        """
        Liveness check.

        Raises:
            ConnectivityError: If the pool is not connected.
            pymongo.errors.PyMongoError: If the server does not answer.
        """
        async with self.lease():
            await self._client.admin.command("ping")

    def close(self) -> None:
        """Closes the client. A closed pool cannot be reconnected."""
        if self._client is not None:
            logger.info("Closing MongoDB connection")
            self._client.close()
            self._client = None
        self._closed = True

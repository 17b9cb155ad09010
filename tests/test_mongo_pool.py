"""
Tests for MongoPool: dialing once, scoped leases and ping.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from pymongo.errors import ServerSelectionTimeoutError

from app.core.exceptions import ConnectivityError
from app.db.mongo import MongoPool, CUSTOMERS


def fake_client(ping_error=None):
    client = MagicMock()
    client.admin.command = AsyncMock(side_effect=ping_error, return_value={"ok": 1})
    return client


class TestConnect:
    @pytest.mark.asyncio
    async def test_connect_dials_with_bounded_timeout(self):
        client = fake_client()
        factory = MagicMock(return_value=client)
        pool = MongoPool("mongodb://db:27017/users", "users", connect_timeout_seconds=3, client_factory=factory)

        await pool.connect()

        factory.assert_called_once()
        kwargs = factory.call_args.kwargs
        assert factory.call_args.args == ("mongodb://db:27017/users",)
        assert kwargs["serverSelectionTimeoutMS"] == 3000
        assert kwargs["connectTimeoutMS"] == 3000
        client.admin.command.assert_awaited_once_with("ping")
        assert pool.is_connected

    @pytest.mark.asyncio
    async def test_connect_is_not_repeated(self):
        factory = MagicMock(return_value=fake_client())
        pool = MongoPool("mongodb://db/users", "users", client_factory=factory)

        await pool.connect()
        await pool.connect()

        factory.assert_called_once()

    @pytest.mark.asyncio
    async def test_unreachable_server_raises_connectivity_error(self):
        client = fake_client(ping_error=ServerSelectionTimeoutError("no servers"))
        pool = MongoPool("mongodb://db/users", "users", client_factory=MagicMock(return_value=client))

        with pytest.raises(ConnectivityError) as exc:
            await pool.connect()

        assert isinstance(exc.value.__cause__, ServerSelectionTimeoutError)
        client.close.assert_called_once()
        assert not pool.is_connected

    @pytest.mark.asyncio
    async def test_closed_pool_is_never_redialed(self):
        factory = MagicMock(return_value=fake_client())
        pool = MongoPool("mongodb://db/users", "users", client_factory=factory)
        await pool.connect()
        pool.close()

        with pytest.raises(ConnectivityError):
            await pool.connect()
        assert factory.call_count == 1


class TestLease:
    @pytest.mark.asyncio
    async def test_lease_gives_collection_access(self, pool, database):
        await database[CUSTOMERS].insert_one({"username": "alice"})

        async with pool.lease() as lease:
            doc = await lease.collection(CUSTOMERS).find_one({"username": "alice"})

        assert doc["username"] == "alice"

    @pytest.mark.asyncio
    async def test_lease_is_released_on_success(self, pool):
        async with pool.lease() as lease:
            assert pool.active_leases == 1
        assert lease.released
        assert pool.active_leases == 0

    @pytest.mark.asyncio
    async def test_lease_is_released_when_operation_raises(self, pool):
        with pytest.raises(RuntimeError, match="boom"):
            async with pool.lease() as lease:
                raise RuntimeError("boom")
        assert lease.released
        assert pool.active_leases == 0

    @pytest.mark.asyncio
    async def test_released_lease_cannot_be_used(self, pool):
        async with pool.lease() as lease:
            pass
        with pytest.raises(RuntimeError):
            lease.collection(CUSTOMERS)

    @pytest.mark.asyncio
    async def test_leases_are_independent(self, pool):
        async with pool.lease() as first:
            async with pool.lease() as second:
                assert first is not second
                assert pool.active_leases == 2
            assert second.released
            assert not first.released
        assert pool.active_leases == 0

    @pytest.mark.asyncio
    async def test_lease_without_connection_raises(self):
        pool = MongoPool("mongodb://db/users", "users")
        with pytest.raises(ConnectivityError):
            async with pool.lease():
                pass


class TestPing:
    @pytest.mark.asyncio
    async def test_ping_runs_admin_command(self):
        client = fake_client()
        pool = MongoPool.from_client(client, "users")

        await pool.ping()

        client.admin.command.assert_awaited_once_with("ping")
        assert pool.active_leases == 0

    @pytest.mark.asyncio
    async def test_ping_failure_propagates(self):
        error = ServerSelectionTimeoutError("gone")
        pool = MongoPool.from_client(fake_client(ping_error=error), "users")

        with pytest.raises(ServerSelectionTimeoutError):
            await pool.ping()
        assert pool.active_leases == 0

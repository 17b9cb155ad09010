import logfire
import pytest
from mongomock_motor import AsyncMongoMockClient

from app.db.indexes import ensure_indexes
from app.db.mongo import MongoPool
from app.services.user_service import UserService


@pytest.fixture(scope="session", autouse=True)
def local_tracing():
    """Spans stay in-process during tests."""
    logfire.configure(send_to_logfire=False, console=False)


@pytest.fixture
def mongo_client():
    """Fresh in-memory MongoDB for each test."""
    return AsyncMongoMockClient()


@pytest.fixture
def pool(mongo_client):
    return MongoPool.from_client(mongo_client, "users")


@pytest.fixture
def database(mongo_client):
    """Direct access to the collections, bypassing the store."""
    return mongo_client["users"]


@pytest.fixture
async def service(pool):
    await ensure_indexes(pool)
    return UserService(pool)

"""
app/db/indexes.py

Purpose: Database index management

- Unique username index on customers
- Idempotent, safe to run on every startup
"""

from pymongo import ASCENDING

from app.db.mongo import MongoPool, CUSTOMERS
from app.core.logging import get_logger

logger = get_logger(__name__)

USERNAME_INDEX = "username_unique"


async def ensure_indexes(pool: MongoPool):
    """
    Creates the indexes the store relies on.
    create_index is a no-op when an identical index exists.
    """
    try:
        async with pool.lease() as lease:
            customers = lease.collection(CUSTOMERS)

            await customers.create_index(
                [("username", ASCENDING)],
                unique=True,
                name=USERNAME_INDEX
            )
            logger.debug("Ensured unique index on customers.username")

            indexes = await customers.index_information()
            logger.info(f"Index summary: customers={len(indexes)}")

    except Exception as e:
        logger.error(f"Could not ensure customers indexes: {e}", exc_info=True)
        raise

"""
Database initialization script - indexes for the user store

Run once (or on every deploy, it is idempotent):
    python scripts/init_db.py
"""

import asyncio
import sys
from pathlib import Path

from dotenv import load_dotenv

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

# Load environment variables
load_dotenv()

import logging

from app.core.config import settings, validate_settings
from app.db.indexes import ensure_indexes
from app.db.mongo import MongoPool, CUSTOMERS, ADDRESSES, CARDS

logging.basicConfig(level=logging.INFO, format='%(levelname)s: %(message)s')
logger = logging.getLogger(__name__)


async def init_db():
    """Dial MongoDB, ensure indexes and report collection sizes"""
    validate_settings()
    pool = MongoPool(
        settings.mongodb_url,
        settings.MONGODB_DB_NAME,
        connect_timeout_seconds=settings.MONGO_CONNECT_TIMEOUT_SECONDS,
    )

    try:
        await pool.connect()
        logger.info("Connected successfully")

        await ensure_indexes(pool)
        logger.info("Indexes ensured")

        async with pool.lease() as lease:
            for name in (CUSTOMERS, ADDRESSES, CARDS):
                count = await lease.collection(name).count_documents({})
                logger.info(f"  {name}: {count} documents")

    except Exception as e:
        logger.error(f"Initialization failed: {e}")
        raise
    finally:
        pool.close()


if __name__ == "__main__":
    asyncio.run(init_db())

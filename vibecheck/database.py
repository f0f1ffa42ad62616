from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import ASCENDING, DESCENDING
from vibecheck.config import settings
import logging

logger = logging.getLogger(__name__)


class Database:
    client: AsyncIOMotorClient | None = None

    @classmethod
    async def connect_db(cls):
        """Connect to MongoDB"""
        try:
            cls.client = AsyncIOMotorClient(
                settings.MONGODB_URL,
                serverSelectionTimeoutMS=5000,
                connectTimeoutMS=5000,
                socketTimeoutMS=5000,
                tz_aware=True,
            )

            # Test connection
            await cls.client.admin.command("ping")
            logger.info("✅ Successfully connected to MongoDB")

            await cls.create_indexes()

        except Exception as e:
            cls.client = None
            logger.critical(f"❌ Failed to connect to MongoDB: {e}")
            raise

    @classmethod
    async def close_db(cls):
        """Close MongoDB connection"""
        if cls.client is not None:
            cls.client.close()
            cls.client = None
            logger.info("MongoDB connection closed")

    @classmethod
    def get_database(cls):
        """Get database instance (FAIL FAST)"""
        if cls.client is None:
            raise RuntimeError(
                "Database not connected. connect_db() was not called or failed."
            )
        return cls.client[settings.DATABASE_NAME]

    @classmethod
    async def create_indexes(cls):
        """Create indexes for the admin viewer queries"""
        db = cls.get_database()

        await db.events.create_index([("timestamp", DESCENDING)])
        await db.events.create_index([("action", ASCENDING), ("timestamp", DESCENDING)])
        await db.events.create_index([("userId", ASCENDING), ("timestamp", DESCENDING)])

        logger.info("✅ Event indexes created successfully")


# Dependency
async def get_database():
    return Database.get_database()

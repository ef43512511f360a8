"""
CFC Push Chatbot - Database Module

MongoDB connection management using Motor (async driver).
Menus and welcome messages are written by the management service and only
read here; sessions and daily analytics reports are owned by this service.
"""

import logging

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import PyMongoError

from app.config import settings

logger = logging.getLogger(__name__)

SERVER_SELECTION_TIMEOUT_MS = 5000


class Database:
    """Motor client holder shared by the repositories."""

    client: AsyncIOMotorClient | None = None
    db: AsyncIOMotorDatabase | None = None

    async def connect(self) -> None:
        """
        Open the client and create the indexes this service relies on.

        Startup is not blocked by an unreachable server: the menu cache keeps
        serving its last snapshot and the repositories fail per call.
        """
        self.client = AsyncIOMotorClient(
            settings.MONGODB_URI,
            tz_aware=True,
            serverSelectionTimeoutMS=SERVER_SELECTION_TIMEOUT_MS,
        )
        self.db = self.client[settings.MONGODB_DATABASE]

        try:
            await self.client.admin.command("ping")
            await self.ensure_indexes()
            logger.info("Connected to MongoDB database '%s'", settings.MONGODB_DATABASE)
        except PyMongoError as e:
            logger.error("MongoDB not reachable at startup: %s", e)

    async def ensure_indexes(self) -> None:
        sessions = self.db["chatbot_sessions"]
        await sessions.create_index([("phone", ASCENDING), ("status", ASCENDING)])
        await sessions.create_index([("last_interaction", DESCENDING)])
        await self.db["daily_analytics_reports"].create_index("date", unique=True)

    async def disconnect(self) -> None:
        if self.client:
            self.client.close()
            self.client = None
            self.db = None
            logger.info("MongoDB connection closed")

    @property
    def is_connected(self) -> bool:
        return self.db is not None

    def get_database(self) -> AsyncIOMotorDatabase:
        if self.db is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self.db


database = Database()

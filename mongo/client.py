#!/usr/bin/env python3
"""Direct MongoDB client using Motor (async PyMongo)"""

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
import asyncio
import logging

# Configure logging
logger = logging.getLogger(__name__)
from mongo.constants import (
    DATABASE_NAME,
    MONGODB_CONNECTION_STRING,
)


class DirectMongoClient:
    """Process-wide Motor client with a persistent connection pool"""

    def __init__(self, connection_string: str = MONGODB_CONNECTION_STRING, database_name: str = DATABASE_NAME):
        self.client: AsyncIOMotorClient | None = None
        self.connected = False
        self.connection_string = connection_string
        self.database_name = database_name
        self._connect_lock = asyncio.Lock()

    async def connect(self):
        """Initialize MongoDB connection with persistent connection pool"""
        try:
            async with self._connect_lock:
                if self.connected and self.client:
                    return

                # Motor maintains persistent connections automatically
                self.client = AsyncIOMotorClient(
                    self.connection_string,
                    maxPoolSize=50,          # Max connections in pool
                    minPoolSize=5,           # Keep minimum connections alive
                    maxIdleTimeMS=45000,     # Keep idle connections for 45s
                    waitQueueTimeoutMS=5000, # Faster timeout for queue
                    serverSelectionTimeoutMS=5000,  # Faster server selection
                    connectTimeoutMS=10000,  # Connection timeout
                    socketTimeoutMS=20000,   # Socket timeout
                    tz_aware=True,
                )

                # Test connection
                await self.client.admin.command('ping')

                self.connected = True
                logger.info(f"Connected to MongoDB database '{self.database_name}'")

        except Exception as e:
            logger.error(f"Failed to connect to MongoDB: {e}")
            raise

    async def disconnect(self):
        """Disconnect from MongoDB"""
        if self.client:
            self.client.close()
        self.connected = False
        self.client = None

    @property
    def database(self) -> AsyncIOMotorDatabase:
        if not self.client:
            raise RuntimeError("MongoDB client not initialized. Call connect() first.")
        return self.client[self.database_name]


# Global MongoDB client instance
direct_mongo_client = DirectMongoClient()

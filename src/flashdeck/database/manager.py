"""
# Database Manager

MongoDB connection lifecycle for Flashdeck, built on **Motor**.

The `DatabaseManager` is instantiated once at import (`db_manager`) and connects lazily from the
FastAPI lifespan (or from the caller, when the core is used as a library):

```python
from flashdeck.database import db_manager

await db_manager.connect()
await db_manager.create_indexes()
folders = db_manager.get_owner_collection(settings.FOLDERS_COLLECTION, owner_id="user_123")
...
await db_manager.disconnect()
```
"""

import asyncio
import time
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo.errors import ConnectionFailure, PyMongoError, ServerSelectionTimeoutError

from flashdeck.config import settings
from flashdeck.database.owner_collection import OwnerScopedCollection
from flashdeck.managers.logging_manager import get_logger

db_logger = get_logger(prefix="[DATABASE]")
perf_logger = get_logger(prefix="[DB_PERFORMANCE]")
health_logger = get_logger(prefix="[DB_HEALTH]")


class DatabaseManager:
    """
    Manages the MongoDB client, database handle and collection access.

    **Lifecycle:**
    1. **Instantiation**: `client` and `database` are `None`.
    2. **Connection**: `connect()` creates the client with retry and verifies it with a ping.
    3. **Operations**: `get_collection()` / `get_owner_collection()`.
    4. **Shutdown**: `disconnect()`.

    Attributes:
        client (`Optional[AsyncIOMotorClient]`): Motor client, `None` until connected.
        database (`Optional[AsyncIOMotorDatabase]`): Selected database, `None` until connected.
    """

    def __init__(self):
        self.client: Optional[AsyncIOMotorClient] = None
        self.database: Optional[AsyncIOMotorDatabase] = None
        self._connection_retries = 3

    def _connection_string(self) -> str:
        if settings.MONGODB_USERNAME and settings.MONGODB_PASSWORD:
            password = settings.MONGODB_PASSWORD.get_secret_value()
            db_logger.debug("Using authenticated connection to MongoDB")
            return (
                f"mongodb://{settings.MONGODB_USERNAME}:{password}@"
                f"{settings.MONGODB_URL.replace('mongodb://', '')}"
            )
        db_logger.debug("Using unauthenticated connection to MongoDB")
        return settings.MONGODB_URL

    async def connect(self):
        """
        Establish the MongoDB connection with exponential backoff (1s, 2s between 3 attempts).

        Raises:
            ServerSelectionTimeoutError: MongoDB unreachable after all attempts.
            ConnectionFailure: Authentication failed or connection refused after all attempts.
        """
        if self.client is not None and self.database is not None:
            db_logger.debug("connect() called while already connected")
            return

        start_time = time.time()
        db_logger.info("Starting MongoDB connection process")

        for attempt in range(self._connection_retries):
            attempt_start = time.time()
            try:
                db_logger.info("Connection attempt %d/%d to MongoDB", attempt + 1, self._connection_retries)
                db_logger.info(
                    "MongoDB connection config - Database: %s, ServerTimeout: %dms, ConnTimeout: %dms",
                    settings.MONGODB_DATABASE,
                    settings.MONGODB_SERVER_SELECTION_TIMEOUT,
                    settings.MONGODB_CONNECTION_TIMEOUT,
                )

                self.client = AsyncIOMotorClient(
                    self._connection_string(),
                    serverSelectionTimeoutMS=settings.MONGODB_SERVER_SELECTION_TIMEOUT,
                    connectTimeoutMS=settings.MONGODB_CONNECTION_TIMEOUT,
                    tz_aware=True,
                )
                self.database = self.client[settings.MONGODB_DATABASE]

                ping_start = time.time()
                await self.client.admin.command("ping")
                ping_duration = time.time() - ping_start

                perf_logger.info(
                    "MongoDB connection established in %.3fs (ping: %.3fs)", time.time() - start_time, ping_duration
                )
                db_logger.info("Connected to MongoDB database: %s", settings.MONGODB_DATABASE)
                return

            except (ServerSelectionTimeoutError, ConnectionFailure) as e:
                perf_logger.warning("Connection attempt %d failed after %.3fs", attempt + 1, time.time() - attempt_start)
                db_logger.warning(
                    "Failed to connect to MongoDB (attempt %d/%d): %s", attempt + 1, self._connection_retries, e
                )
                self.client = None
                self.database = None
                if attempt == self._connection_retries - 1:
                    db_logger.error("All connection attempts failed after %.3fs", time.time() - start_time)
                    raise

                backoff_time = 2**attempt
                db_logger.info("Waiting %.1fs before retry (exponential backoff)", backoff_time)
                await asyncio.sleep(backoff_time)

    async def disconnect(self):
        """Close the client and release pooled connections. Safe to call when not connected."""
        if self.client is None:
            db_logger.warning("Disconnect called but no active MongoDB connection found")
            return

        start_time = time.time()
        self.client.close()
        self.client = None
        self.database = None
        perf_logger.info("MongoDB disconnection completed in %.3fs", time.time() - start_time)
        db_logger.info("Successfully disconnected from MongoDB")

    async def health_check(self) -> bool:
        """Ping the server; `False` when disconnected or unreachable."""
        if self.client is None:
            health_logger.warning("Health check requested without an active connection")
            return False

        start_time = time.time()
        try:
            await self.client.admin.command("ping")
            health_logger.debug("Database ping response time: %.3fs", time.time() - start_time)
            return True
        except PyMongoError as e:
            health_logger.error("Database health check failed after %.3fs: %s", time.time() - start_time, e)
            return False

    def get_collection(self, collection_name: str) -> AsyncIOMotorCollection:
        """
        Return a collection of the connected database.

        Raises:
            ConnectionError: If `connect()` has not been called.
        """
        if self.database is None:
            db_logger.error("Attempted to get collection '%s' without database connection", collection_name)
            raise ConnectionError("Database not connected. Call connect() first.")

        return self.database[collection_name]

    def get_owner_collection(self, collection_name: str, owner_id: str) -> OwnerScopedCollection:
        """Return `collection_name` wrapped so every read and write is scoped to `owner_id`."""
        return OwnerScopedCollection(self.get_collection(collection_name), owner_id)

    async def create_indexes(self):
        """Create the compound indexes backing the owner + parent conjunction queries."""
        start_time = time.time()
        folders = self.get_collection(settings.FOLDERS_COLLECTION)
        decks = self.get_collection(settings.DECKS_COLLECTION)

        await folders.create_index([("owner_id", 1), ("parent_id", 1)], name="owner_parent")
        await folders.create_index([("owner_id", 1), ("created_at", 1)], name="owner_created")
        await decks.create_index([("owner_id", 1), ("folder_id", 1)], name="owner_folder")

        perf_logger.info("Workspace indexes ensured in %.3fs", time.time() - start_time)


# Global database manager instance
db_manager = DatabaseManager()

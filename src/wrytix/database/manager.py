"""
# Database Management Module

`DatabaseManager` owns the lifecycle of the configured `DocumentStore`.

## Backends

- **`json`** (default): `JsonFileStore` rooted at `settings.DATA_DIR`.
- **`mongodb`**: `MongoStore` over a Motor client, with connection retries,
  transaction-support detection and unique index creation.

## Lifecycle

1. **Instantiation** (module load): `db_manager` created, no I/O.
2. **Connection** (startup): `connect()` builds the store. Failure here is
   fatal; the application refuses to start without persistence.
3. **Operations** (runtime): services use `db_manager.store`.
4. **Disconnection** (shutdown): `disconnect()` releases the client.

## Usage

```python
from wrytix.database import db_manager

await db_manager.connect()
posts = await db_manager.store.find("posts")
await db_manager.disconnect()
```
"""

import asyncio
import time
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient
from pymongo.errors import ConnectionFailure, PyMongoError, ServerSelectionTimeoutError

from wrytix.config import settings
from wrytix.database.json_store import JsonFileStore
from wrytix.database.mongo_store import MongoStore
from wrytix.database.store import DocumentStore
from wrytix.managers.logging_manager import get_logger

db_logger = get_logger(prefix="[DATABASE]")
health_logger = get_logger(prefix="[DB_HEALTH]")


class DatabaseManager:
    """
    Creates, exposes and closes the application's document store.

    Attributes:
        transactions_supported (`Optional[bool]`): Whether multi-document
            transactions are available. Always `True` for the JSON backend;
            detected on connect for MongoDB.
    """

    def __init__(self):
        self._store: Optional[DocumentStore] = None
        self._connection_retries = 3
        self.transactions_supported: Optional[bool] = None

    @property
    def store(self) -> DocumentStore:
        if self._store is None:
            raise RuntimeError("Database is not connected; call db_manager.connect() first")
        return self._store

    def use_store(self, store: DocumentStore) -> None:
        """Install an already-built store (used by the test suite)."""
        self._store = store
        self.transactions_supported = getattr(store, "transactions_supported", True)

    async def connect(self) -> None:
        """
        Build the configured store.

        For MongoDB, up to three attempts are made with exponential backoff
        (1s, 2s). After a successful ping the `hello` command decides whether
        the deployment supports transactions.

        Raises:
            ServerSelectionTimeoutError, ConnectionFailure: If MongoDB stays
                unreachable after all attempts.
        """
        if self._store is not None:
            return

        if settings.STORAGE_BACKEND == "json":
            store = JsonFileStore(settings.DATA_DIR)
            if not await store.health_check():
                raise RuntimeError(f"Data directory {settings.DATA_DIR} is not writable")
            self.use_store(store)
            db_logger.info("Using flat-file JSON store at %s", settings.DATA_DIR)
            return

        start_time = time.time()
        db_logger.info("Starting MongoDB connection process")

        for attempt in range(self._connection_retries):
            try:
                db_logger.info("Connection attempt %d/%d to MongoDB", attempt + 1, self._connection_retries)

                if settings.MONGODB_USERNAME and settings.MONGODB_PASSWORD:
                    password = settings.MONGODB_PASSWORD.get_secret_value()
                    connection_string = (
                        f"mongodb://{settings.MONGODB_USERNAME}:{password}@"
                        f"{settings.MONGODB_URL.replace('mongodb://', '')}"
                    )
                else:
                    connection_string = settings.MONGODB_URL

                client = AsyncIOMotorClient(
                    connection_string,
                    serverSelectionTimeoutMS=settings.MONGODB_SERVER_SELECTION_TIMEOUT,
                    connectTimeoutMS=settings.MONGODB_CONNECTION_TIMEOUT,
                    tz_aware=True,
                )
                await client.admin.command("ping")

                transactions_supported = await self._detect_transaction_support(client)
                store = MongoStore(client, client[settings.MONGODB_DATABASE], transactions_supported)
                await store.create_indexes()
                self.use_store(store)

                db_logger.info(
                    "Connected to MongoDB database %s in %.3fs (transactions supported: %s)",
                    settings.MONGODB_DATABASE,
                    time.time() - start_time,
                    transactions_supported,
                )
                return

            except (ServerSelectionTimeoutError, ConnectionFailure) as e:
                db_logger.error("Connection attempt %d failed: %s", attempt + 1, e)
                if attempt == self._connection_retries - 1:
                    raise
                await asyncio.sleep(2**attempt)

    @staticmethod
    async def _detect_transaction_support(client: AsyncIOMotorClient) -> bool:
        try:
            try:
                hello = await client.admin.command({"hello": 1})
            except PyMongoError:
                hello = await client.admin.command({"isMaster": 1})
        except PyMongoError as e:
            db_logger.warning("Could not detect transaction support, assuming none: %s", e)
            return False
        return bool(hello.get("setName")) or hello.get("msg") == "isdbgrid"

    async def disconnect(self) -> None:
        if self._store is None:
            return
        await self._store.close()
        self._store = None
        self.transactions_supported = None
        db_logger.info("Database connection closed")

    async def health_check(self) -> bool:
        if self._store is None:
            health_logger.warning("Health check requested before connect()")
            return False
        healthy = await self._store.health_check()
        if not healthy:
            health_logger.error("Database health check failed")
        return healthy


db_manager = DatabaseManager()

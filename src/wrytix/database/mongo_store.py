"""
# MongoDB Store

`DocumentStore` backend on top of **Motor**. Each collection maps to a Mongo
collection of the same name; the Mongo `_id` is projected out of every read so
documents look the same as in the flat-file backend.

**Transactions:**
When the deployment supports them (replica set or mongos, detected by
`DatabaseManager.connect()`), `transaction()` opens a client session and a
multi-document transaction; every store call made inside the block on the same
task is bound to that session. On standalone servers the block runs without a
transaction and a warning is logged.
"""

from contextlib import asynccontextmanager
from contextvars import ContextVar
from typing import Any, AsyncIterator, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorClientSession, AsyncIOMotorDatabase
from pymongo import ASCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError, PyMongoError

from wrytix.database.store import UNIQUE_FIELDS, DocumentStore, Query, Sort
from wrytix.errors import Conflict
from wrytix.managers.logging_manager import get_logger

logger = get_logger(prefix="[MONGO_STORE]")

NO_ID = {"_id": 0}

_active_session: ContextVar[Optional[AsyncIOMotorClientSession]] = ContextVar(
    "wrytix_mongo_session", default=None
)


class MongoStore(DocumentStore):
    """MongoDB backend for the document store contract."""

    def __init__(
        self,
        client: AsyncIOMotorClient,
        database: AsyncIOMotorDatabase,
        transactions_supported: bool = False,
    ):
        self.client = client
        self.database = database
        self.transactions_supported = transactions_supported

    def _collection(self, name: str):
        return self.database[name]

    @staticmethod
    def _session() -> Optional[AsyncIOMotorClientSession]:
        return _active_session.get()

    async def create_indexes(self) -> None:
        """Create unique indexes for every collection's unique fields."""
        for collection, fields in UNIQUE_FIELDS.items():
            for field in fields:
                try:
                    await self._collection(collection).create_index(
                        [(field, ASCENDING)],
                        unique=True,
                        # Documents without the field are not indexed
                        partialFilterExpression={field: {"$exists": True}},
                        name=f"{collection}_{field}_unique",
                    )
                except PyMongoError as e:
                    logger.warning("Failed to create index %s.%s: %s", collection, field, e)

    async def find(
        self, collection: str, query: Query = None, sort: Sort = None, limit: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        cursor = self._collection(collection).find(query or {}, NO_ID, session=self._session())
        if sort:
            cursor = cursor.sort(list(sort))
        if limit is not None:
            cursor = cursor.limit(limit)
        return await cursor.to_list(length=None)

    async def find_one(self, collection: str, query: Query) -> Optional[Dict[str, Any]]:
        return await self._collection(collection).find_one(query or {}, NO_ID, session=self._session())

    async def insert_one(self, collection: str, document: Dict[str, Any]) -> Dict[str, Any]:
        stored = dict(document)
        try:
            await self._collection(collection).insert_one(stored, session=self._session())
        except DuplicateKeyError as e:
            raise Conflict(f"Duplicate key in {collection}") from e
        stored.pop("_id", None)
        return stored

    async def update_one(
        self, collection: str, query: Query, changes: Dict[str, Any]
    ) -> Optional[Dict[str, Any]]:
        if not changes:
            return await self.find_one(collection, query)
        try:
            return await self._collection(collection).find_one_and_update(
                query or {},
                {"$set": changes},
                projection=NO_ID,
                return_document=ReturnDocument.AFTER,
                session=self._session(),
            )
        except DuplicateKeyError as e:
            raise Conflict(f"Duplicate key in {collection}") from e

    async def increment(
        self,
        collection: str,
        query: Query,
        field: str,
        amount: int = 1,
        changes: Optional[Dict[str, Any]] = None,
    ) -> Optional[Dict[str, Any]]:
        update: Dict[str, Any] = {"$inc": {field: amount}}
        if changes:
            update["$set"] = changes
        return await self._collection(collection).find_one_and_update(
            query or {},
            update,
            projection=NO_ID,
            return_document=ReturnDocument.AFTER,
            session=self._session(),
        )

    async def append_to_list(self, collection: str, query: Dict[str, Any], field: str, value: Any) -> Dict[str, Any]:
        return await self._collection(collection).find_one_and_update(
            query,
            {"$push": {field: value}},
            projection=NO_ID,
            upsert=True,
            return_document=ReturnDocument.AFTER,
            session=self._session(),
        )

    async def delete_one(self, collection: str, query: Query) -> Optional[Dict[str, Any]]:
        return await self._collection(collection).find_one_and_delete(
            query or {}, projection=NO_ID, session=self._session()
        )

    async def delete_many(self, collection: str, query: Query = None) -> int:
        result = await self._collection(collection).delete_many(query or {}, session=self._session())
        return result.deleted_count

    async def count(self, collection: str, query: Query = None) -> int:
        return await self._collection(collection).count_documents(query or {}, session=self._session())

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        if self._session() is not None:
            yield
            return

        if not self.transactions_supported:
            logger.warning("Transactions not supported by this deployment; running writes sequentially")
            yield
            return

        async with await self.client.start_session() as session:
            async with session.start_transaction():
                token = _active_session.set(session)
                try:
                    yield
                finally:
                    _active_session.reset(token)

    async def health_check(self) -> bool:
        try:
            await self.client.admin.command("ping")
            return True
        except PyMongoError as e:
            logger.error("MongoDB health check failed: %s", e)
            return False

    async def close(self) -> None:
        self.client.close()

"""
# Flat-File JSON Store

`DocumentStore` backend that keeps each collection in `<data_dir>/<name>.json`
as a JSON array.

**Write model:**
Every write rewrites the whole file through a temporary file and `os.replace`,
so readers never observe a half-written file. All read-modify-write sequences
are serialized through one store-wide `asyncio.Lock`; two concurrent requests
can no longer overwrite each other's changes.

**Transactions:**
Inside `transaction()` the lock is held for the whole block and every touched
collection is staged in memory. Collections that were written to are saved only
when the block exits without an exception; collections that were only read are
never rewritten. On error the staged data is discarded and the files on disk are
left as they were.
"""

import asyncio
import copy
import json
import os
from contextlib import asynccontextmanager
from contextvars import ContextVar
from pathlib import Path
from typing import Any, AsyncIterator, Callable, Dict, List, Optional, Set, Tuple

from wrytix.database.store import (
    UNIQUE_FIELDS,
    DocumentStore,
    Query,
    Sort,
    matches,
)
from wrytix.errors import Conflict
from wrytix.managers.logging_manager import get_logger

logger = get_logger(prefix="[JSON_STORE]")

# (store, staged collections, written collection names) for the transaction active on the current task
_active_transaction: ContextVar[
    Optional[Tuple["JsonFileStore", Dict[str, List[Dict[str, Any]]], Set[str]]]
] = ContextVar("wrytix_json_transaction", default=None)


def _sort_key(field: str) -> Callable[[Dict[str, Any]], Tuple[bool, Any]]:
    def key(document: Dict[str, Any]) -> Tuple[bool, Any]:
        value = document.get(field)
        return (value is None, value if value is not None else "")

    return key


class JsonFileStore(DocumentStore):
    """Flat-file backend: one JSON array per collection."""

    def __init__(self, data_dir: str):
        self.data_dir = Path(data_dir)
        self._lock = asyncio.Lock()

    # --- file access ---

    def _path(self, collection: str) -> Path:
        return self.data_dir / f"{collection}.json"

    def _read_file(self, collection: str) -> List[Dict[str, Any]]:
        path = self._path(collection)
        if not path.exists():
            return []
        text = path.read_text(encoding="utf-8")
        if not text.strip():
            return []
        data = json.loads(text)
        if not isinstance(data, list):
            raise ValueError(f"{path} does not contain a JSON array")
        return data

    def _write_file(self, collection: str, documents: List[Dict[str, Any]]) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        path = self._path(collection)
        tmp_path = path.with_suffix(".json.tmp")
        with open(tmp_path, "w", encoding="utf-8") as handle:
            json.dump(documents, handle, indent=2, default=str)
        os.replace(tmp_path, path)

    async def _load(self, collection: str) -> List[Dict[str, Any]]:
        staged = self._staged()
        if staged is not None:
            if collection not in staged:
                staged[collection] = await asyncio.to_thread(self._read_file, collection)
            return staged[collection]
        return await asyncio.to_thread(self._read_file, collection)

    def _staged(self) -> Optional[Dict[str, List[Dict[str, Any]]]]:
        active = _active_transaction.get()
        if active is not None and active[0] is self:
            return active[1]
        return None

    def _mark_written(self, collection: str) -> None:
        active = _active_transaction.get()
        if active is not None and active[0] is self:
            active[2].add(collection)

    async def _mutate(self, collection: str, operation: Callable[[List[Dict[str, Any]]], Any]) -> Any:
        """Run `operation` on the collection's documents and persist the result."""
        if self._staged() is not None:
            documents = await self._load(collection)
            result = operation(documents)
            self._mark_written(collection)
            return result

        async with self._lock:
            documents = await self._load(collection)
            result = operation(documents)
            await asyncio.to_thread(self._write_file, collection, documents)
            return result

    @staticmethod
    def _check_unique(
        collection: str, documents: List[Dict[str, Any]], candidate: Dict[str, Any], skip: Optional[int] = None
    ) -> None:
        for field in UNIQUE_FIELDS.get(collection, ()):
            value = candidate.get(field)
            if value is None:
                continue
            for index, existing in enumerate(documents):
                if index != skip and existing.get(field) == value:
                    raise Conflict(f"Duplicate {field} in {collection}")

    # --- DocumentStore ---

    async def find(
        self, collection: str, query: Query = None, sort: Sort = None, limit: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        documents = [copy.deepcopy(doc) for doc in await self._load(collection) if matches(doc, query)]
        for field, direction in reversed(list(sort or [])):
            documents.sort(key=_sort_key(field), reverse=direction < 0)
        if limit is not None:
            documents = documents[:limit]
        return documents

    async def find_one(self, collection: str, query: Query) -> Optional[Dict[str, Any]]:
        for document in await self._load(collection):
            if matches(document, query):
                return copy.deepcopy(document)
        return None

    async def insert_one(self, collection: str, document: Dict[str, Any]) -> Dict[str, Any]:
        stored = copy.deepcopy(document)

        def operation(documents: List[Dict[str, Any]]) -> Dict[str, Any]:
            self._check_unique(collection, documents, stored)
            documents.append(stored)
            return copy.deepcopy(stored)

        return await self._mutate(collection, operation)

    async def update_one(
        self, collection: str, query: Query, changes: Dict[str, Any]
    ) -> Optional[Dict[str, Any]]:
        def operation(documents: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
            for index, document in enumerate(documents):
                if matches(document, query):
                    updated = {**document, **copy.deepcopy(changes)}
                    self._check_unique(collection, documents, updated, skip=index)
                    documents[index] = updated
                    return copy.deepcopy(updated)
            return None

        return await self._mutate(collection, operation)

    async def increment(
        self,
        collection: str,
        query: Query,
        field: str,
        amount: int = 1,
        changes: Optional[Dict[str, Any]] = None,
    ) -> Optional[Dict[str, Any]]:
        def operation(documents: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
            for document in documents:
                if matches(document, query):
                    document[field] = (document.get(field) or 0) + amount
                    document.update(copy.deepcopy(changes or {}))
                    return copy.deepcopy(document)
            return None

        return await self._mutate(collection, operation)

    async def append_to_list(self, collection: str, query: Dict[str, Any], field: str, value: Any) -> Dict[str, Any]:
        def operation(documents: List[Dict[str, Any]]) -> Dict[str, Any]:
            for document in documents:
                if matches(document, query):
                    document.setdefault(field, []).append(copy.deepcopy(value))
                    return copy.deepcopy(document)
            created = {**query, field: [copy.deepcopy(value)]}
            documents.append(created)
            return copy.deepcopy(created)

        return await self._mutate(collection, operation)

    async def delete_one(self, collection: str, query: Query) -> Optional[Dict[str, Any]]:
        def operation(documents: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
            for index, document in enumerate(documents):
                if matches(document, query):
                    return documents.pop(index)
            return None

        return await self._mutate(collection, operation)

    async def delete_many(self, collection: str, query: Query = None) -> int:
        def operation(documents: List[Dict[str, Any]]) -> int:
            kept = [doc for doc in documents if not matches(doc, query)]
            removed = len(documents) - len(kept)
            documents[:] = kept
            return removed

        return await self._mutate(collection, operation)

    async def count(self, collection: str, query: Query = None) -> int:
        return sum(1 for doc in await self._load(collection) if matches(doc, query))

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        if self._staged() is not None:
            # Nested blocks join the outer transaction
            yield
            return

        async with self._lock:
            staged: Dict[str, List[Dict[str, Any]]] = {}
            written: Set[str] = set()
            token = _active_transaction.set((self, staged, written))
            try:
                yield
            finally:
                _active_transaction.reset(token)

            for collection in sorted(written):
                await asyncio.to_thread(self._write_file, collection, staged[collection])
            logger.debug("Committed transaction writing %s", sorted(written))

    async def health_check(self) -> bool:
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            return os.access(self.data_dir, os.W_OK)
        except OSError as e:
            logger.error("Data directory %s unavailable: %s", self.data_dir, e)
            return False

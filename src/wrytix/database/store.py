"""
# Document Store Contract

`DocumentStore` is the single persistence contract used by every service.
Two backends implement it:

- `JsonFileStore`: one JSON array file per collection, atomic full-file rewrite.
- `MongoStore`: Motor collections with unique indexes.

Queries are equality-match dictionaries (`{"slug": "hello-world"}`); `None`
matches every document. Documents are plain dicts; backend-specific keys such
as Mongo's `_id` never leak out of the store.

Multi-document state transitions (approving a submission, approving a
deletion) run inside `transaction()`, so either every write inside the block
becomes visible or none does.
"""

from abc import ABC, abstractmethod
from typing import Any, AsyncContextManager, Dict, List, Optional, Sequence, Tuple

# Collection names
USERS = "users"
PENDING_USERS = "pending_users"
PENDING_DELETIONS = "pending_deletions"
POSTS = "posts"
POST_SUBMISSIONS = "post_submissions"
ADS = "ads"
COMMENTS = "comments"
LOGS = "logs"
SESSIONS = "sessions"

COLLECTIONS = (
    USERS,
    PENDING_USERS,
    PENDING_DELETIONS,
    POSTS,
    POST_SUBMISSIONS,
    ADS,
    COMMENTS,
    LOGS,
    SESSIONS,
)

# Fields whose values must be unique within a collection
UNIQUE_FIELDS: Dict[str, Tuple[str, ...]] = {
    USERS: ("id", "username", "email"),
    PENDING_USERS: ("id", "username", "email"),
    PENDING_DELETIONS: ("id",),
    POSTS: ("id", "slug"),
    POST_SUBMISSIONS: ("id", "slug"),
    ADS: ("id",),
    COMMENTS: ("slug",),
    LOGS: ("id",),
    SESSIONS: ("token",),
}

Query = Optional[Dict[str, Any]]
Sort = Optional[Sequence[Tuple[str, int]]]

ASCENDING = 1
DESCENDING = -1


def matches(document: Dict[str, Any], query: Query) -> bool:
    """Return True when every key in `query` equals the document's value."""
    if not query:
        return True
    return all(document.get(key) == value for key, value in query.items())


class DocumentStore(ABC):
    """Async persistence contract shared by the flat-file and MongoDB backends."""

    @abstractmethod
    async def find(
        self, collection: str, query: Query = None, sort: Sort = None, limit: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        """Return all documents matching `query`, optionally sorted and limited."""

    @abstractmethod
    async def find_one(self, collection: str, query: Query) -> Optional[Dict[str, Any]]:
        """Return the first matching document or `None`."""

    @abstractmethod
    async def insert_one(self, collection: str, document: Dict[str, Any]) -> Dict[str, Any]:
        """
        Insert a document and return it.

        Raises:
            Conflict: If a unique field collides with an existing document.
        """

    @abstractmethod
    async def update_one(
        self, collection: str, query: Query, changes: Dict[str, Any]
    ) -> Optional[Dict[str, Any]]:
        """Shallow-merge `changes` into the first match; return the updated document or `None`."""

    @abstractmethod
    async def increment(
        self,
        collection: str,
        query: Query,
        field: str,
        amount: int = 1,
        changes: Optional[Dict[str, Any]] = None,
    ) -> Optional[Dict[str, Any]]:
        """Atomically add `amount` to a numeric field (and apply `changes`); return the updated document."""

    @abstractmethod
    async def append_to_list(self, collection: str, query: Dict[str, Any], field: str, value: Any) -> Dict[str, Any]:
        """Append `value` to a list field, creating the document from `query` when absent."""

    @abstractmethod
    async def delete_one(self, collection: str, query: Query) -> Optional[Dict[str, Any]]:
        """Delete the first match and return it, or `None` when nothing matched."""

    @abstractmethod
    async def delete_many(self, collection: str, query: Query = None) -> int:
        """Delete every match and return how many documents were removed."""

    @abstractmethod
    async def count(self, collection: str, query: Query = None) -> int:
        """Count matching documents."""

    @abstractmethod
    def transaction(self) -> AsyncContextManager[None]:
        """Group the enclosed operations into one all-or-nothing unit."""

    @abstractmethod
    async def health_check(self) -> bool:
        """Return True when the backing storage is reachable."""

    async def close(self) -> None:
        """Release backend resources."""

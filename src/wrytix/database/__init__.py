"""
# Database Package

Persistence layer for Wrytix.

- **`store`**: the `DocumentStore` contract and collection names.
- **`json_store`**: flat-file backend.
- **`mongo_store`**: MongoDB backend.
- **`manager`**: the `db_manager` singleton that picks and owns the backend.
"""

from wrytix.database.manager import DatabaseManager, db_manager

__all__ = ["DatabaseManager", "db_manager"]

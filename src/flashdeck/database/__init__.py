"""
# Database Package

Persistence layer for Flashdeck on **Motor** (async MongoDB driver).

- **`manager`**: `DatabaseManager` and the module-level `db_manager` singleton.
- **`owner_collection`**: `OwnerScopedCollection`, which confines queries and writes to one owner.
- **`operations`**: `run_store_operation`, the timeout/transient-error guard around store calls.
"""

from flashdeck.database.manager import DatabaseManager, db_manager

__all__ = ["DatabaseManager", "db_manager"]

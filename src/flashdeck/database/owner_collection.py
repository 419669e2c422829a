"""
# Owner-Scoped Collection

A wrapper around `AsyncIOMotorCollection` that confines every operation to one owner.

- **Reads** (`find`, `find_one`, `count_documents`): `owner_id` is added to the filter.
- **Inserts**: `owner_id` is stamped on the document.
- **Updates / deletes**: the filter is restricted to the owner, and updates may not rewrite `owner_id`.

```python
folders = OwnerScopedCollection(db.folders, "user_123")
await folders.find_one({"_id": folder_id})
# Actual query: {"_id": folder_id, "owner_id": "user_123"}
```
"""

from typing import Any, Dict, List, Optional, Union

from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorCursor

from flashdeck.managers.logging_manager import get_logger

logger = get_logger(prefix="[Owner Collection]")

OWNER_FIELD = "owner_id"


class OwnerScopedCollection:
    """
    Owner isolation layer over a Motor collection.

    Attributes:
        _collection (`AsyncIOMotorCollection`): The underlying collection.
        owner_id (`str`): Owner every operation is restricted to.
    """

    def __init__(self, collection: AsyncIOMotorCollection, owner_id: str):
        if not owner_id:
            raise ValueError("owner_id must be a non-empty string")
        self._collection = collection
        self.owner_id = owner_id

    @property
    def name(self) -> str:
        return self._collection.name

    def _add_owner_filter(self, filter_dict: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        scoped = dict(filter_dict or {})
        scoped[OWNER_FIELD] = self.owner_id
        return scoped

    def _guard_update(self, update: Union[Dict[str, Any], List[Dict[str, Any]]]):
        # Update documents and aggregation-pipeline updates are both checked stage by stage
        stages = update if isinstance(update, list) else [update]
        for stage in stages:
            for operator, fields in stage.items():
                if isinstance(fields, dict) and OWNER_FIELD in fields:
                    raise ValueError(f"{operator} may not modify {OWNER_FIELD}")
        return update

    async def find_one(self, filter: Optional[Dict[str, Any]] = None, *args, **kwargs) -> Optional[Dict[str, Any]]:
        result = await self._collection.find_one(self._add_owner_filter(filter), *args, **kwargs)
        logger.debug("find_one on %s for owner %s: %s", self.name, self.owner_id, "found" if result else "not found")
        return result

    def find(self, filter: Optional[Dict[str, Any]] = None, *args, **kwargs) -> AsyncIOMotorCursor:
        return self._collection.find(self._add_owner_filter(filter), *args, **kwargs)

    async def count_documents(self, filter: Optional[Dict[str, Any]] = None, *args, **kwargs) -> int:
        count = await self._collection.count_documents(self._add_owner_filter(filter), *args, **kwargs)
        logger.debug("count_documents on %s for owner %s: %d", self.name, self.owner_id, count)
        return count

    async def insert_one(self, document: Dict[str, Any], *args, **kwargs):
        document = dict(document)
        document[OWNER_FIELD] = self.owner_id
        result = await self._collection.insert_one(document, *args, **kwargs)
        logger.debug("insert_one on %s for owner %s: inserted_id=%s", self.name, self.owner_id, result.inserted_id)
        return result

    async def update_one(self, filter: Dict[str, Any], update: Dict[str, Any], *args, **kwargs):
        result = await self._collection.update_one(
            self._add_owner_filter(filter), self._guard_update(update), *args, **kwargs
        )
        logger.debug(
            "update_one on %s for owner %s: matched=%d modified=%d",
            self.name,
            self.owner_id,
            result.matched_count,
            result.modified_count,
        )
        return result

    async def find_one_and_update(self, filter: Dict[str, Any], update, *args, **kwargs) -> Optional[Dict[str, Any]]:
        result = await self._collection.find_one_and_update(
            self._add_owner_filter(filter), self._guard_update(update), *args, **kwargs
        )
        logger.debug(
            "find_one_and_update on %s for owner %s: %s", self.name, self.owner_id, "updated" if result else "not found"
        )
        return result

    async def delete_one(self, filter: Dict[str, Any], *args, **kwargs):
        result = await self._collection.delete_one(self._add_owner_filter(filter), *args, **kwargs)
        logger.debug("delete_one on %s for owner %s: deleted=%d", self.name, self.owner_id, result.deleted_count)
        return result

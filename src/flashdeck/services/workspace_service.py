"""
# Workspace Service

Durable folder/deck hierarchy for one owner, with capacity limits and display ordering.

## Key Features

### 1. Capacity Limits
- **Folders**: at most `FOLDER_LIMIT` (50) per owner, counted across the whole tree.
- **Decks**: at most `DECK_LIMIT_PER_FOLDER` (75) per owner in one folder; the root is its own bucket.
- **Cards**: 1 to `MAX_CARDS_PER_DECK` (25) per deck; larger decks are rejected, never truncated.

Capacity checks count and then insert without a transaction. Two concurrent creations by the same
owner can both pass the count, so a limit may be overshot by (concurrent callers - 1). This is accepted.

### 2. Display Ordering
Children are fetched in creation order and sorted client-side: favorites first, then the display
name in case-sensitive code-point order. The sort is stable, so equal names keep creation order.

### 3. Breadcrumbs
`resolve_path()` walks `parent_id` one read at a time. A missing ancestor ends the walk as if the
root had been reached.

## Usage Example

```python
service = WorkspaceService()
folder = await service.create_folder("Biology", parent_id=None, owner_id="user_123")
await service.create_deck("Cells", cards, folder_id=folder.id, owner_id="user_123")
contents = await service.list_children(folder.id, owner_id="user_123")
```
"""

from typing import Any, Dict, Iterable, List, Optional, Sequence, TypeVar, Union

from pydantic import ValidationError
from pymongo import ReturnDocument

from flashdeck.config import settings
from flashdeck.database import DatabaseManager, db_manager
from flashdeck.database.operations import run_store_operation
from flashdeck.database.owner_collection import OwnerScopedCollection
from flashdeck.errors import (
    CapacityExceededError,
    InvalidArgumentError,
    NotEmptyError,
    NotFoundError,
    UnauthenticatedError,
)
from flashdeck.managers.logging_manager import get_logger
from flashdeck.models.workspace_models import Card, Deck, EntryKind, Folder, FolderContents

logger = get_logger(prefix="[WorkspaceService]")

Entry = TypeVar("Entry", Folder, Deck)


def sort_for_display(entries: Iterable[Entry], name_field: str) -> List[Entry]:
    """Favorites first, then by `name_field`. Relies on `sorted` being stable."""
    return sorted(entries, key=lambda entry: (not entry.is_favorite, getattr(entry, name_field)))


def normalize_cards(cards: Sequence[Union[Card, Dict[str, Any]]], max_cards: int) -> List[Card]:
    """
    Validate a card list for storage.

    Raises:
        InvalidArgumentError: Empty list, more than `max_cards` entries, or a blank question/answer.
    """
    if not cards:
        raise InvalidArgumentError("A deck needs at least one card")
    if len(cards) > max_cards:
        raise InvalidArgumentError(f"A deck holds at most {max_cards} cards, got {len(cards)}")

    normalized = []
    for index, card in enumerate(cards):
        if isinstance(card, Card):
            normalized.append(card)
            continue
        try:
            normalized.append(Card.model_validate(card))
        except ValidationError as e:
            raise InvalidArgumentError(f"Card {index + 1} is invalid: {e.errors()[0]['msg']}") from e
    return normalized


def validate_topic(topic: Optional[str], max_length: int) -> str:
    if not topic or not topic.strip():
        raise InvalidArgumentError("Deck topic must not be empty")
    topic = topic.strip()
    if len(topic) > max_length:
        raise InvalidArgumentError(f"Deck topic is limited to {max_length} characters")
    return topic


def validate_folder_name(name: Optional[str]) -> str:
    if not name or not name.strip():
        raise InvalidArgumentError("Folder name must not be empty")
    return name.strip()


class WorkspaceService:
    """
    Folder and deck storage scoped by owner.

    Every public method takes the `owner_id`; documents of other owners are invisible to it.
    Store failures and timeouts surface as `TransientError`; nothing is retried here.
    """

    def __init__(self, database: Optional[DatabaseManager] = None, timeout: Optional[float] = None):
        self._db = database if database is not None else db_manager
        self.timeout = timeout if timeout is not None else settings.STORE_OPERATION_TIMEOUT_SECONDS
        self.folders_collection = settings.FOLDERS_COLLECTION
        self.decks_collection = settings.DECKS_COLLECTION
        self.folder_limit = settings.FOLDER_LIMIT
        self.deck_limit_per_folder = settings.DECK_LIMIT_PER_FOLDER
        self.max_cards_per_deck = settings.MAX_CARDS_PER_DECK
        self.max_topic_length = settings.MAX_TOPIC_LENGTH

    def _collection(self, kind: EntryKind, owner_id: str) -> OwnerScopedCollection:
        if not owner_id or not owner_id.strip():
            raise UnauthenticatedError("An owner id is required for workspace access")
        name = self.folders_collection if kind == EntryKind.FOLDER else self.decks_collection
        return self._db.get_owner_collection(name, owner_id)

    async def _run(self, description: str, operation):
        return await run_store_operation(description, operation, self.timeout)

    # --- Creation ---

    async def create_folder(self, name: str, parent_id: Optional[str], owner_id: str) -> Folder:
        """
        Create a folder under `parent_id` (root when `None`).

        Raises:
            InvalidArgumentError: Blank name.
            CapacityExceededError: The owner already has `FOLDER_LIMIT` folders.
            NotFoundError: `parent_id` is not one of the owner's folders.
        """
        name = validate_folder_name(name)
        folders = self._collection(EntryKind.FOLDER, owner_id)

        folder_count = await self._run("count folders", folders.count_documents({}))
        if folder_count >= self.folder_limit:
            logger.info("Owner %s hit the folder limit (%d)", owner_id, self.folder_limit)
            raise CapacityExceededError(
                f"Limit of {self.folder_limit} folders reached. Unable to create a new one.", self.folder_limit
            )

        if parent_id is not None:
            parent = await self._run("find parent folder", folders.find_one({"_id": parent_id}))
            if parent is None:
                raise NotFoundError("folder", parent_id)

        folder = Folder(owner_id=owner_id, name=name, parent_id=parent_id)
        await self._run("insert folder", folders.insert_one(folder.model_dump(by_alias=True)))

        logger.info("Created folder %s for owner %s", folder.id, owner_id)
        return folder

    async def create_deck(
        self,
        topic: str,
        cards: Sequence[Union[Card, Dict[str, Any]]],
        folder_id: Optional[str],
        owner_id: str,
    ) -> Deck:
        """
        Save a deck in `folder_id` (root when `None`).

        Raises:
            InvalidArgumentError: Blank or overlong topic, empty or oversized card list, blank card.
            CapacityExceededError: The folder already holds `DECK_LIMIT_PER_FOLDER` of the owner's decks.
            NotFoundError: `folder_id` is not one of the owner's folders.
        """
        topic = validate_topic(topic, self.max_topic_length)
        card_list = normalize_cards(cards, self.max_cards_per_deck)
        decks = self._collection(EntryKind.DECK, owner_id)

        deck_count = await self._run("count decks", decks.count_documents({"folder_id": folder_id}))
        if deck_count >= self.deck_limit_per_folder:
            logger.info("Owner %s hit the deck limit in folder %s", owner_id, folder_id)
            raise CapacityExceededError(
                f"Limit of {self.deck_limit_per_folder} decks reached in this folder.", self.deck_limit_per_folder
            )

        if folder_id is not None:
            folders = self._collection(EntryKind.FOLDER, owner_id)
            folder = await self._run("find folder", folders.find_one({"_id": folder_id}))
            if folder is None:
                raise NotFoundError("folder", folder_id)

        deck = Deck(owner_id=owner_id, topic=topic, cards=card_list, folder_id=folder_id)
        await self._run("insert deck", decks.insert_one(deck.model_dump(by_alias=True)))

        logger.info("Created deck %s (%d cards) for owner %s", deck.id, len(card_list), owner_id)
        return deck

    # --- Queries ---

    async def get_deck(self, deck_id: str, owner_id: str) -> Deck:
        decks = self._collection(EntryKind.DECK, owner_id)
        doc = await self._run("find deck", decks.find_one({"_id": deck_id}))
        if doc is None:
            raise NotFoundError("deck", deck_id)
        return Deck(**doc)

    async def list_children(self, folder_id: Optional[str], owner_id: str) -> FolderContents:
        """Direct sub-folders and decks of `folder_id` (root when `None`), each in display order."""
        folders = self._collection(EntryKind.FOLDER, owner_id)
        decks = self._collection(EntryKind.DECK, owner_id)

        folder_cursor = folders.find({"parent_id": folder_id}).sort("created_at", 1)
        folder_docs = await self._run("list folders", folder_cursor.to_list(length=None))
        deck_cursor = decks.find({"folder_id": folder_id}).sort("created_at", 1)
        deck_docs = await self._run("list decks", deck_cursor.to_list(length=None))

        return FolderContents(
            folders=sort_for_display((Folder(**doc) for doc in folder_docs), "name"),
            decks=sort_for_display((Deck(**doc) for doc in deck_docs), "topic"),
        )

    async def resolve_path(self, folder_id: Optional[str], owner_id: str) -> List[Folder]:
        """
        Ancestor chain from the root down to `folder_id`, inclusive.

        A missing ancestor truncates the chain there; a revisited id stops the walk.
        """
        if folder_id is None:
            return []

        folders = self._collection(EntryKind.FOLDER, owner_id)
        path: List[Folder] = []
        seen = set()
        current_id: Optional[str] = folder_id
        while current_id is not None:
            if current_id in seen:
                logger.error("Cycle detected in folder chain of %s at %s", folder_id, current_id)
                break
            seen.add(current_id)
            doc = await self._run("find folder", folders.find_one({"_id": current_id}))
            if doc is None:
                if path:
                    logger.warning("Folder %s references missing parent %s", path[-1].id, current_id)
                break
            folder = Folder(**doc)
            path.append(folder)
            current_id = folder.parent_id

        path.reverse()
        return path

    # --- Deletion ---

    async def delete_folder(self, folder_id: str, owner_id: str) -> None:
        """
        Raises:
            NotFoundError: No such folder for this owner.
            NotEmptyError: The folder still has sub-folders or decks.
        """
        folders = self._collection(EntryKind.FOLDER, owner_id)
        doc = await self._run("find folder", folders.find_one({"_id": folder_id}))
        if doc is None:
            raise NotFoundError("folder", folder_id)

        contents = await self.list_children(folder_id, owner_id)
        if not contents.is_empty():
            raise NotEmptyError(folder_id)

        await self._run("delete folder", folders.delete_one({"_id": folder_id}))
        logger.info("Deleted folder %s for owner %s", folder_id, owner_id)

    async def delete_deck(self, deck_id: str, owner_id: str) -> bool:
        """Remove a deck unconditionally. Returns whether a document was deleted."""
        decks = self._collection(EntryKind.DECK, owner_id)
        result = await self._run("delete deck", decks.delete_one({"_id": deck_id}))
        deleted = result.deleted_count > 0
        logger.info("Delete deck %s for owner %s: %s", deck_id, owner_id, "deleted" if deleted else "absent")
        return deleted

    # --- Mutation ---

    async def rename_folder(self, folder_id: str, new_name: str, owner_id: str) -> None:
        new_name = validate_folder_name(new_name)
        folders = self._collection(EntryKind.FOLDER, owner_id)
        result = await self._run("rename folder", folders.update_one({"_id": folder_id}, {"$set": {"name": new_name}}))
        if result.matched_count == 0:
            raise NotFoundError("folder", folder_id)

    async def rename_deck(self, deck_id: str, new_topic: str, owner_id: str) -> None:
        new_topic = validate_topic(new_topic, self.max_topic_length)
        decks = self._collection(EntryKind.DECK, owner_id)
        result = await self._run("rename deck", decks.update_one({"_id": deck_id}, {"$set": {"topic": new_topic}}))
        if result.matched_count == 0:
            raise NotFoundError("deck", deck_id)

    async def toggle_favorite(self, entry_id: str, kind: EntryKind, owner_id: str) -> bool:
        """
        Flip the favorite flag of a folder or deck and return the new value.

        The flip is one pipeline update evaluated server-side, so concurrent calls each flip once.
        """
        kind = EntryKind(kind)
        collection = self._collection(kind, owner_id)
        doc = await self._run(
            f"toggle {kind.value} favorite",
            collection.find_one_and_update(
                {"_id": entry_id},
                [{"$set": {"is_favorite": {"$not": ["$is_favorite"]}}}],
                return_document=ReturnDocument.AFTER,
            ),
        )
        if doc is None:
            raise NotFoundError(kind.value, entry_id)

        is_favorite = bool(doc.get("is_favorite"))
        logger.debug("%s %s favorite -> %s", kind.value, entry_id, is_favorite)
        return is_favorite

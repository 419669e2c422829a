"""
# Workspace Models

Data structures for the folder/deck hierarchy.

## Domain Model Overview

1.  **Folder**: A node in the owner's tree. `parent_id=None` places it at the root.
2.  **Deck**: A named, ordered list of cards living in a folder (or at the root, `folder_id=None`).
3.  **Card**: An immutable question/answer pair. Cards are edited by replacing them.

Documents are stored with snake_case fields and the entity id under `_id`.

## Usage Examples

```python
card = Card(question="2+2", answer="4")
deck = Deck(owner_id="user_123", topic="Arithmetic", cards=[card], folder_id=None)
await collection.insert_one(deck.model_dump(by_alias=True))
```
"""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _not_blank(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValueError(f"{field_name} must not be empty")
    return value


class EntryKind(str, Enum):
    """Which collection a workspace entry lives in."""

    FOLDER = "folder"
    DECK = "deck"


class Card(BaseModel):
    """
    A single question/answer pair.

    Cards are frozen: editing a card means replacing it in the deck's card list.
    """

    question: str = Field(..., min_length=1, description="Prompt shown first")
    answer: str = Field(..., min_length=1, description="Answer revealed after flipping")

    class Config:
        frozen = True
        json_schema_extra = {"example": {"question": "2+2", "answer": "4"}}

    @field_validator("question", "answer")
    @classmethod
    def not_blank(cls, v: str, info) -> str:
        return _not_blank(v, info.field_name)


class Folder(BaseModel):
    """
    Model representing a folder in an owner's workspace tree.

    **Fields:**
    *   **id**: Unique UUID for the folder.
    *   **parent_id**: Enclosing folder, or `None` at the root.
    """

    id: str = Field(default_factory=lambda: str(uuid4()), alias="_id", description="Unique identifier for the folder")
    owner_id: str = Field(..., min_length=1, description="Account or guest id owning the folder")
    name: str = Field(..., min_length=1, description="Display name")
    parent_id: Optional[str] = Field(None, description="Parent folder id, None for the root")
    is_favorite: bool = Field(False, description="Favorites sort before other folders")
    created_at: datetime = Field(default_factory=_utcnow, description="Timestamp of creation")

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "id": "123e4567-e89b-12d3-a456-426614174000",
                "owner_id": "user_123",
                "name": "Biology",
                "parent_id": None,
                "is_favorite": False,
                "created_at": "2024-01-01T00:00:00Z",
            }
        }

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        return _not_blank(v, "name")


class Deck(BaseModel):
    """
    Model representing a deck of flashcards.

    **Fields:**
    *   **topic**: Display name of the deck (also the generation topic).
    *   **cards**: Ordered cards; never empty.
    *   **folder_id**: Enclosing folder, or `None` at the root.
    """

    id: str = Field(default_factory=lambda: str(uuid4()), alias="_id", description="Unique identifier for the deck")
    owner_id: str = Field(..., min_length=1, description="Account or guest id owning the deck")
    topic: str = Field(..., min_length=1, description="Title of the deck")
    cards: List[Card] = Field(..., min_length=1, description="Ordered question/answer pairs")
    folder_id: Optional[str] = Field(None, description="Containing folder id, None for the root")
    is_favorite: bool = Field(False, description="Favorites sort before other decks")
    created_at: datetime = Field(default_factory=_utcnow, description="Timestamp of creation")

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "id": "123e4567-e89b-12d3-a456-426614174001",
                "owner_id": "user_123",
                "topic": "Arithmetic",
                "cards": [{"question": "2+2", "answer": "4"}],
                "folder_id": None,
                "is_favorite": False,
                "created_at": "2024-01-01T00:00:00Z",
            }
        }

    @field_validator("topic")
    @classmethod
    def topic_not_blank(cls, v: str) -> str:
        return _not_blank(v, "topic")


class FolderContents(BaseModel):
    """Direct children of a folder (or of the root), each list already in display order."""

    folders: List[Folder] = Field(default_factory=list)
    decks: List[Deck] = Field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.folders and not self.decks


class CreateFolderRequest(BaseModel):
    """Request model for creating a folder."""

    name: str = Field(..., description="Folder name")
    parent_id: Optional[str] = Field(None, description="Parent folder id, omitted for the root")


class CreateDeckRequest(BaseModel):
    """Request model for saving a deck of generated cards."""

    topic: str = Field(..., description="Deck title")
    cards: List[Card] = Field(..., description="Cards to store")
    folder_id: Optional[str] = Field(None, description="Target folder id, omitted for the root")


class RenameRequest(BaseModel):
    """Request model for renaming a folder or deck."""

    name: str = Field(..., description="New display name")


class FavoriteResponse(BaseModel):
    id: str
    kind: EntryKind
    is_favorite: bool

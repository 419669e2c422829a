"""
# Models Package

Pydantic schemas validated at the store boundary.

- **`workspace_models`**: `Folder`, `Deck`, `Card`, `FolderContents` and request bodies.
- **`quota_models`**: `QuotaRecord`, `QuotaStatus`.
- **`generation_models`**: `GenerationRequest`, `FilePayload`, `GenerationResponse`.
"""

from flashdeck.models.generation_models import FilePayload, GenerationRequest, GenerationResponse
from flashdeck.models.quota_models import QuotaRecord, QuotaStatus
from flashdeck.models.workspace_models import Card, Deck, EntryKind, Folder, FolderContents

__all__ = [
    "Card",
    "Deck",
    "EntryKind",
    "FilePayload",
    "Folder",
    "FolderContents",
    "GenerationRequest",
    "GenerationResponse",
    "QuotaRecord",
    "QuotaStatus",
]

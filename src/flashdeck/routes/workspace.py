"""
# Workspace Routes

REST endpoints over the folder/deck hierarchy. Every endpoint is scoped to the caller's identity.

## API Endpoints

### Browsing
- `GET /workspace/contents?folder_id=` - Sub-folders and decks of a folder (root when omitted)
- `GET /workspace/folders/{folder_id}/path` - Breadcrumb from the root to the folder
- `GET /workspace/decks/{deck_id}` - One deck with its cards

### Management
- `POST /workspace/folders` / `POST /workspace/decks` - Create
- `PATCH /workspace/folders/{id}` / `PATCH /workspace/decks/{id}` - Rename
- `DELETE /workspace/folders/{id}` / `DELETE /workspace/decks/{id}` - Delete
- `POST /workspace/folders/{id}/favorite` / `POST /workspace/decks/{id}/favorite` - Toggle favorite

Errors are rendered by the application-level `FlashdeckError` handler.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response

from flashdeck.models.workspace_models import (
    CreateDeckRequest,
    CreateFolderRequest,
    Deck,
    EntryKind,
    FavoriteResponse,
    Folder,
    FolderContents,
    RenameRequest,
)
from flashdeck.routes.dependencies import get_identity, get_workspace_service
from flashdeck.services.workspace_service import WorkspaceService

router = APIRouter(prefix="/workspace", tags=["Workspace"])


@router.get("/contents", response_model=FolderContents)
async def list_contents(
    folder_id: Optional[str] = Query(None, description="Folder to list, root when omitted"),
    owner_id: str = Depends(get_identity),
    service: WorkspaceService = Depends(get_workspace_service),
):
    """List the direct children of a folder."""
    return await service.list_children(folder_id, owner_id)


@router.get("/folders/{folder_id}/path", response_model=List[Folder])
async def get_folder_path(
    folder_id: str,
    owner_id: str = Depends(get_identity),
    service: WorkspaceService = Depends(get_workspace_service),
):
    """Get the breadcrumb of a folder, root first."""
    return await service.resolve_path(folder_id, owner_id)


@router.post("/folders", response_model=Folder, status_code=201)
async def create_folder(
    body: CreateFolderRequest,
    owner_id: str = Depends(get_identity),
    service: WorkspaceService = Depends(get_workspace_service),
):
    """Create a folder."""
    return await service.create_folder(body.name, body.parent_id, owner_id)


@router.patch("/folders/{folder_id}", status_code=204)
async def rename_folder(
    folder_id: str,
    body: RenameRequest,
    owner_id: str = Depends(get_identity),
    service: WorkspaceService = Depends(get_workspace_service),
):
    """Rename a folder."""
    await service.rename_folder(folder_id, body.name, owner_id)
    return Response(status_code=204)


@router.delete("/folders/{folder_id}", status_code=204)
async def delete_folder(
    folder_id: str,
    owner_id: str = Depends(get_identity),
    service: WorkspaceService = Depends(get_workspace_service),
):
    """Delete an empty folder."""
    await service.delete_folder(folder_id, owner_id)
    return Response(status_code=204)


@router.post("/folders/{folder_id}/favorite", response_model=FavoriteResponse)
async def toggle_folder_favorite(
    folder_id: str,
    owner_id: str = Depends(get_identity),
    service: WorkspaceService = Depends(get_workspace_service),
):
    is_favorite = await service.toggle_favorite(folder_id, EntryKind.FOLDER, owner_id)
    return FavoriteResponse(id=folder_id, kind=EntryKind.FOLDER, is_favorite=is_favorite)


@router.post("/decks", response_model=Deck, status_code=201)
async def create_deck(
    body: CreateDeckRequest,
    owner_id: str = Depends(get_identity),
    service: WorkspaceService = Depends(get_workspace_service),
):
    """Save a deck of cards."""
    return await service.create_deck(body.topic, body.cards, body.folder_id, owner_id)


@router.get("/decks/{deck_id}", response_model=Deck)
async def get_deck(
    deck_id: str,
    owner_id: str = Depends(get_identity),
    service: WorkspaceService = Depends(get_workspace_service),
):
    """Get a specific deck."""
    return await service.get_deck(deck_id, owner_id)


@router.patch("/decks/{deck_id}", status_code=204)
async def rename_deck(
    deck_id: str,
    body: RenameRequest,
    owner_id: str = Depends(get_identity),
    service: WorkspaceService = Depends(get_workspace_service),
):
    """Rename a deck."""
    await service.rename_deck(deck_id, body.name, owner_id)
    return Response(status_code=204)


@router.delete("/decks/{deck_id}", status_code=204)
async def delete_deck(
    deck_id: str,
    owner_id: str = Depends(get_identity),
    service: WorkspaceService = Depends(get_workspace_service),
):
    """Delete a deck."""
    await service.delete_deck(deck_id, owner_id)
    return Response(status_code=204)


@router.post("/decks/{deck_id}/favorite", response_model=FavoriteResponse)
async def toggle_deck_favorite(
    deck_id: str,
    owner_id: str = Depends(get_identity),
    service: WorkspaceService = Depends(get_workspace_service),
):
    is_favorite = await service.toggle_favorite(deck_id, EntryKind.DECK, owner_id)
    return FavoriteResponse(id=deck_id, kind=EntryKind.DECK, is_favorite=is_favorite)

"""
# Guest Deck Routes

Decks kept for callers without an account, keyed by their `X-Guest-Id`. Guest decks have no folders.

- `GET /guest/decks` - The guest's decks, newest first
- `POST /guest/decks` - Save a deck (at most `GUEST_DECK_LIMIT`)
- `DELETE /guest/decks/{deck_id}` - Delete a deck

The endpoints are plain `def` so the file I/O runs in the threadpool.
"""

from typing import List

from fastapi import APIRouter, Depends, Response

from flashdeck.errors import NotFoundError
from flashdeck.models.workspace_models import CreateDeckRequest, Deck
from flashdeck.routes.dependencies import get_guest_deck_store
from flashdeck.services.guest_deck_store import GuestDeckStore

router = APIRouter(prefix="/guest", tags=["Guest"])


@router.get("/decks", response_model=List[Deck])
def list_guest_decks(store: GuestDeckStore = Depends(get_guest_deck_store)):
    """List the guest's decks."""
    return store.list_decks()


@router.post("/decks", response_model=Deck, status_code=201)
def save_guest_deck(body: CreateDeckRequest, store: GuestDeckStore = Depends(get_guest_deck_store)):
    """Save a deck for the guest. `folder_id` is ignored."""
    return store.save_deck(body.topic, body.cards)


@router.delete("/decks/{deck_id}", status_code=204)
def delete_guest_deck(deck_id: str, store: GuestDeckStore = Depends(get_guest_deck_store)):
    """Delete one of the guest's decks."""
    if not store.delete_deck(deck_id):
        raise NotFoundError("deck", deck_id)
    return Response(status_code=204)

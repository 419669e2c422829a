"""
# Guest Deck Store

Deck storage for callers using a guest id instead of an account. Each guest's decks live in their own
JSON file (`GUEST_DECKS_DIR/<guest id>.json`), have no folders, and are capped at `GUEST_DECK_LIMIT` (75).

A file that cannot be parsed is moved aside to `<guest id>.json.corrupt-<unix time>` and read as empty,
so the next save starts a fresh file without destroying the unreadable one.

```python
store = GuestDeckStore("guest_3f2a...")
deck = store.save_deck("Photosynthesis", cards)
decks = store.list_decks()          # newest first
store.delete_deck(deck.id)
```
"""

import json
import os
import re
import time
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from pydantic import ValidationError

from flashdeck.config import settings
from flashdeck.errors import CapacityExceededError, TransientError, UnauthenticatedError
from flashdeck.managers.logging_manager import get_logger
from flashdeck.models.workspace_models import Card, Deck
from flashdeck.services.identity import is_guest_id
from flashdeck.services.workspace_service import normalize_cards, validate_topic

logger = get_logger(prefix="[GuestDeckStore]")

# Guest ids become file names
_SAFE_GUEST_ID = re.compile(r"^[A-Za-z0-9_-]{1,128}$")


class GuestDeckStore:
    """JSON-file backed decks for one guest session."""

    def __init__(
        self,
        guest_id: str,
        directory: Optional[Union[str, Path]] = None,
        limit: Optional[int] = None,
    ):
        guest_id = (guest_id or "").strip()
        if not is_guest_id(guest_id) or not _SAFE_GUEST_ID.match(guest_id):
            raise UnauthenticatedError("A valid guest id is required for guest decks")

        self.guest_id = guest_id
        self.directory = Path(directory or settings.GUEST_DECKS_DIR)
        self.path = self.directory / f"{guest_id}.json"
        self.limit = limit if limit is not None else settings.GUEST_DECK_LIMIT
        self.max_cards_per_deck = settings.MAX_CARDS_PER_DECK
        self.max_topic_length = settings.MAX_TOPIC_LENGTH

    def _quarantine(self, error: Exception) -> None:
        corrupt_path = self.path.with_name(f"{self.path.name}.corrupt-{int(time.time())}")
        try:
            os.replace(self.path, corrupt_path)
        except OSError as e:
            logger.error("Unable to move unreadable guest decks %s aside: %s", self.path, e)
            raise TransientError("Guest decks are unreadable and could not be set aside") from e
        logger.error("Unreadable guest decks in %s (%s), moved to %s", self.path, error, corrupt_path)

    def _read(self) -> List[Deck]:
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        except OSError as e:
            logger.error("Unable to read guest decks from %s: %s", self.path, e)
            raise TransientError("Unable to read guest decks") from e

        try:
            raw = json.loads(text)
            return [Deck(**entry) for entry in raw]
        except (ValueError, TypeError, ValidationError) as e:
            self._quarantine(e)
            return []

    def _write(self, decks: List[Deck]) -> None:
        payload: List[Dict[str, Any]] = [deck.model_dump(by_alias=True, mode="json") for deck in decks]
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError as e:
            logger.error("Unable to write guest decks to %s: %s", self.path, e)
            raise TransientError("Unable to save guest decks") from e

    def list_decks(self) -> List[Deck]:
        """All of this guest's decks, most recently created first."""
        return sorted(self._read(), key=lambda deck: deck.created_at, reverse=True)

    def save_deck(self, topic: str, cards: Sequence[Union[Card, Dict[str, Any]]]) -> Deck:
        """
        Raises:
            InvalidArgumentError: Blank or overlong topic, empty or oversized card list.
            CapacityExceededError: `GUEST_DECK_LIMIT` decks already stored.
            TransientError: The file could not be read or written.
        """
        topic = validate_topic(topic, self.max_topic_length)
        card_list = normalize_cards(cards, self.max_cards_per_deck)

        existing = self._read()
        if len(existing) >= self.limit:
            raise CapacityExceededError(f"Limit of {self.limit} decks reached in guest mode.", self.limit)

        deck = Deck(
            id=f"guest_{int(time.time() * 1000)}_{uuid.uuid4().hex[:6]}",
            owner_id=self.guest_id,
            topic=topic,
            cards=card_list,
            folder_id=None,
        )
        self._write(existing + [deck])
        logger.info("Saved guest deck %s for %s (%d cards)", deck.id, self.guest_id, len(card_list))
        return deck

    def delete_deck(self, deck_id: str) -> bool:
        """Remove a guest deck. Returns whether it existed."""
        existing = self._read()
        remaining = [deck for deck in existing if deck.id != deck_id]
        if len(remaining) == len(existing):
            return False
        self._write(remaining)
        return True

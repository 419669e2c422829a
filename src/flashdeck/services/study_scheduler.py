"""
# Adaptive Study Scheduler

Drives one study pass over a fixed set of cards until every card is mastered.

## Mastery Rules

Each card carries a mastery score in `[0, MASTERY_THRESHOLD]` (threshold 3), starting at 0.

- **Correct**: `score = min(MASTERY_THRESHOLD, score + 1)`.
- **Incorrect**: `score = 0`. A miss wipes all progress on the card, it does not decrement.
- **Selection**: after session start and after every answer, the next card is drawn uniformly at
  random among cards still below the threshold. The card just answered may be drawn again.
- **Completion**: once every score equals the threshold there is no current card and the session is
  `COMPLETE`. Answering then is a no-op.

A session lives in memory only, belongs to one caller, and is discarded when the caller is done.

## Usage Example

```python
session = StudySession.from_deck(deck)
while not session.is_complete:
    card = session.current_card()
    session.answer(user_was_right(card))
mastered, total = session.progress()
```
"""

import random
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from flashdeck.managers.logging_manager import get_logger
from flashdeck.models.workspace_models import Card, Deck

logger = get_logger(prefix="[StudyScheduler]")

MASTERY_THRESHOLD = 3


class StudyState(str, Enum):
    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"


class StudySession:
    """
    In-memory mastery tracker for one pass over a deck.

    Args:
        cards: The cards to study, in deck order. An empty list yields a session that is complete
            on entry; callers should not start sessions for empty decks.
        rng: Source of randomness for card selection. Defaults to a fresh `random.Random()`.
    """

    def __init__(self, cards: Sequence[Card], rng: Optional[random.Random] = None):
        self._cards: List[Card] = list(cards)
        self._scores: List[int] = [0] * len(self._cards)
        self._rng = rng or random.Random()
        self._current_index: Optional[int] = None
        self.answers_given = 0
        self._draw_next()

    @classmethod
    def from_deck(cls, deck: Deck, rng: Optional[random.Random] = None) -> "StudySession":
        return cls(deck.cards, rng=rng)

    def _draw_next(self) -> None:
        eligible = [index for index, score in enumerate(self._scores) if score < MASTERY_THRESHOLD]
        self._current_index = self._rng.choice(eligible) if eligible else None

    @property
    def state(self) -> StudyState:
        return StudyState.COMPLETE if self._current_index is None else StudyState.IN_PROGRESS

    @property
    def is_complete(self) -> bool:
        return self.state == StudyState.COMPLETE

    def current_card(self) -> Optional[Card]:
        """The card to present, or `None` once the session is complete."""
        if self._current_index is None:
            return None
        return self._cards[self._current_index]

    def current_index(self) -> Optional[int]:
        """Position of the presented card in the deck, or `None` once complete."""
        return self._current_index

    def answer(self, is_correct: bool) -> bool:
        """
        Record the outcome for the presented card and draw the next one.

        Returns:
            bool: `False` when the session was already complete and nothing changed.
        """
        if self._current_index is None:
            logger.debug("answer() called on a completed session; ignoring")
            return False

        index = self._current_index
        if is_correct:
            self._scores[index] = min(MASTERY_THRESHOLD, self._scores[index] + 1)
        else:
            self._scores[index] = 0
        self.answers_given += 1

        self._draw_next()
        if self._current_index is None:
            logger.debug("Session complete after %d answers over %d cards", self.answers_given, len(self._cards))
        return True

    def progress(self) -> Tuple[int, int]:
        """`(mastered, total)` where mastered counts cards at the threshold."""
        mastered = sum(1 for score in self._scores if score == MASTERY_THRESHOLD)
        return mastered, len(self._cards)

    def scores(self) -> List[int]:
        """Snapshot of the mastery scores in deck order."""
        return list(self._scores)

"""
# Flashdeck

Workspace store, generation admission control and adaptive study sessions for AI-generated flashcards.

## Package Layout

- **`config`**: Pydantic Settings (`settings`).
- **`database`**: Motor connection management and owner-scoped collections.
- **`models`**: Pydantic schemas for folders, decks, cards, quota records and generation requests.
- **`services`**: `WorkspaceService`, `AdmissionGate`, `StudySession`, `GenerationService`,
  `GuestDeckStore` and identity helpers.
- **`routes`** / **`main`**: The FastAPI surface.
"""

__version__ = "1.0.0"

"""
# Generation Models

Request/response shapes for card generation. The generative provider itself is external; these models
only describe what the caller sends and what comes back.
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from flashdeck.models.workspace_models import Card

ALLOWED_MIME_TYPES = (
    "application/pdf",
    "text/plain",
    "text/markdown",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.openxmlformats-officedocument.presentationml.presentation",
)


class FilePayload(BaseModel):
    """An uploaded document, base64-encoded."""

    mime_type: str = Field(..., description="MIME type of the document")
    data: str = Field(..., description="Base64-encoded document body")


class GenerationRequest(BaseModel):
    """
    Request model for generating cards from a topic and/or a document.

    Field constraints are checked by `GenerationService` so that violations surface as
    `InvalidArgumentError` rather than schema errors.
    """

    topic: str = Field("", description="Subject to generate cards about")
    num_cards: int = Field(..., description="Number of cards requested (1-25)")
    file: Optional[FilePayload] = Field(None, description="Optional source document")

    class Config:
        json_schema_extra = {"example": {"topic": "Photosynthesis", "num_cards": 10}}


class GenerationResponse(BaseModel):
    cards: List[Card]

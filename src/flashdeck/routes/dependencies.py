"""
FastAPI dependencies shared by the Flashdeck routers.

The identity headers are set by the upstream identity layer: `X-User-Id` for signed-in accounts,
`X-Guest-Id` for guests. Services are built per request so tests can swap them through
`app.dependency_overrides`.
"""

from typing import Optional

from fastapi import Header, HTTPException, Request

from flashdeck.services.admission_gate import AdmissionGate
from flashdeck.services.generation_service import GenerationService
from flashdeck.services.guest_deck_store import GuestDeckStore
from flashdeck.services.identity import resolve_identity
from flashdeck.services.workspace_service import WorkspaceService


async def get_identity(
    x_user_id: Optional[str] = Header(None), x_guest_id: Optional[str] = Header(None)
) -> str:
    """Resolve the caller's identity or fail with `UnauthenticatedError`."""
    return resolve_identity(x_user_id, x_guest_id)


def get_workspace_service() -> WorkspaceService:
    return WorkspaceService()


def get_admission_gate() -> AdmissionGate:
    return AdmissionGate()


def get_generation_service(request: Request) -> GenerationService:
    provider = getattr(request.app.state, "card_provider", None)
    if provider is None:
        raise HTTPException(status_code=503, detail="Card generation is not configured")
    return GenerationService(provider=provider)


def get_guest_deck_store(x_guest_id: Optional[str] = Header(None)) -> GuestDeckStore:
    """The deck file of the guest named by `X-Guest-Id`; a missing or malformed id is `UnauthenticatedError`."""
    return GuestDeckStore(x_guest_id or "")

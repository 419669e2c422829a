"""
# Generation Routes

- `POST /generation/flashcards` - Generate cards for a topic or document (consumes one quota call)
- `GET /generation/quota` - Remaining generation calls in the caller's window
- `POST /generation/guest-id` - Mint a guest id for a caller without an account
"""

from typing import Optional

from fastapi import APIRouter, Depends, Header

from flashdeck.models.generation_models import GenerationRequest, GenerationResponse
from flashdeck.models.quota_models import QuotaStatus
from flashdeck.routes.dependencies import get_admission_gate, get_generation_service, get_identity
from flashdeck.services.admission_gate import AdmissionGate
from flashdeck.services.generation_service import GenerationService
from flashdeck.services.identity import new_guest_id

router = APIRouter(prefix="/generation", tags=["Generation"])


@router.post("/flashcards", response_model=GenerationResponse)
async def generate_flashcards(
    body: GenerationRequest,
    x_user_id: Optional[str] = Header(None),
    x_guest_id: Optional[str] = Header(None),
    service: GenerationService = Depends(get_generation_service),
):
    """Generate question/answer cards."""
    cards = await service.generate_cards(body, user_id=x_user_id, guest_id=x_guest_id)
    return GenerationResponse(cards=cards)


@router.get("/quota", response_model=QuotaStatus)
async def get_quota(
    identity: str = Depends(get_identity),
    gate: AdmissionGate = Depends(get_admission_gate),
):
    """Get the caller's generation allowance."""
    return await gate.get_status(identity)


@router.post("/guest-id")
async def create_guest_id():
    """Mint a guest id. The caller keeps it locally and sends it as `X-Guest-Id`."""
    return {"guest_id": new_guest_id()}

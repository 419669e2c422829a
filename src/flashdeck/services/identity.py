"""Resolution of the key used for ownership and quota: the account id, else the guest id."""

import uuid
from typing import Optional

from flashdeck.errors import UnauthenticatedError

GUEST_ID_PREFIX = "guest_"


def new_guest_id() -> str:
    """Mint a guest identifier for a caller without an account. Callers persist it locally."""
    return f"{GUEST_ID_PREFIX}{uuid.uuid4().hex}"


def is_guest_id(identity: str) -> bool:
    return identity.startswith(GUEST_ID_PREFIX)


def resolve_identity(user_id: Optional[str], guest_id: Optional[str]) -> str:
    """
    Pick the identity to charge and scope by.

    Blank strings count as absent. The account id wins when both are present.

    Raises:
        UnauthenticatedError: Neither id is usable.
    """
    if user_id and user_id.strip():
        return user_id.strip()
    if guest_id and guest_id.strip():
        return guest_id.strip()
    raise UnauthenticatedError("Identification required")

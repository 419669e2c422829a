from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class QuotaRecord(BaseModel):
    """
    Per-identity generation counter for the current fixed window.

    `revision` increases on every write and is the compare-and-swap token used by the admission gate.
    """

    identity: str = Field(..., alias="_id", description="Account id or guest id")
    count: int = Field(..., ge=0, description="Calls consumed in the current window")
    window_expires_at: datetime = Field(..., description="When the current window lapses")
    revision: int = Field(0, ge=0, description="Write counter used for optimistic concurrency")
    updated_at: Optional[datetime] = Field(None, description="Timestamp of the last write")

    class Config:
        populate_by_name = True


class QuotaStatus(BaseModel):
    """
    Read-only view of an identity's allowance.
    """

    identity: str
    limit: int
    used: int
    remaining: int
    resets_at: Optional[datetime] = Field(None, description="None when no window is open")

"""
# Error Kinds

Every failure the core reports to its callers is one of the tagged errors below. Services raise them;
the HTTP layer renders them through a single exception handler using `code` and `status_code`.

| Error | code | HTTP |
|---|---|---|
| `InvalidArgumentError` | `invalid_argument` | 400 |
| `UnauthenticatedError` | `unauthenticated` | 401 |
| `NotFoundError` | `not_found` | 404 |
| `CapacityExceededError` | `capacity_exceeded` | 409 |
| `NotEmptyError` | `not_empty` | 409 |
| `QuotaExceededError` | `quota_exceeded` | 429 |
| `PromptTemplateError` | `prompt_template` | 500 |
| `TransientError` | `transient` | 503 |
"""

from datetime import datetime
from typing import Any, Dict, Optional


class FlashdeckError(Exception):
    """Base exception for all Flashdeck errors."""

    code = "internal"
    retryable = False

    def __init__(self, message: str, status_code: int = 500) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.code, "message": self.message}


class InvalidArgumentError(FlashdeckError):
    """Malformed input: empty name or topic, oversized deck, disallowed content type."""

    code = "invalid_argument"

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=400)


class UnauthenticatedError(FlashdeckError):
    """Neither an account id nor a guest id was supplied."""

    code = "unauthenticated"

    def __init__(self, message: str = "Identification required") -> None:
        super().__init__(message, status_code=401)


class NotFoundError(FlashdeckError):
    """Referenced id is absent (or belongs to another owner)."""

    code = "not_found"

    def __init__(self, kind: str, entry_id: Optional[str] = None, *, message: Optional[str] = None) -> None:
        self.kind = kind
        self.entry_id = entry_id
        if message:
            super().__init__(message, status_code=404)
        elif entry_id is not None:
            super().__init__(f"{kind.capitalize()} with id {entry_id} not found", status_code=404)
        else:
            super().__init__(f"{kind.capitalize()} not found", status_code=404)


class CapacityExceededError(FlashdeckError):
    """A folder, deck, guest-deck or card limit has been reached."""

    code = "capacity_exceeded"

    def __init__(self, message: str, limit: int) -> None:
        self.limit = limit
        super().__init__(message, status_code=409)


class NotEmptyError(FlashdeckError):
    """A folder still holds sub-folders or decks."""

    code = "not_empty"

    def __init__(self, folder_id: str) -> None:
        self.folder_id = folder_id
        super().__init__(f"Folder {folder_id} is not empty", status_code=409)


class QuotaExceededError(FlashdeckError):
    """The admission gate refused a generation call; `resets_at` is when the window lapses."""

    code = "quota_exceeded"

    def __init__(self, identity: str, limit: int, resets_at: datetime) -> None:
        self.identity = identity
        self.limit = limit
        self.resets_at = resets_at
        super().__init__(
            f"Call limit of {limit} reached. Please try again after {resets_at.strftime('%H:%M:%S')} UTC.",
            status_code=429,
        )

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload["resets_at"] = self.resets_at.isoformat()
        return payload


class PromptTemplateError(FlashdeckError):
    """A system instruction document exists but carries no usable template."""

    code = "prompt_template"

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=500)


class TransientError(FlashdeckError):
    """Storage or network failure; safe to retry."""

    code = "transient"
    retryable = True

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=503)

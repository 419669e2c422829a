"""
# Admission Gate

Caps how many expensive generation calls one identity may issue per fixed window
(`GENERATION_CALL_LIMIT` calls per `GENERATION_WINDOW_SECONDS`, 200 per 5 hours by default).

## Window Rules

For each call, against the identity's record:

- **No record**: create `{count: 1, window_expires_at: now + window}` and allow.
- **Window lapsed** (`now >= window_expires_at`): reset to `{count: 1, window_expires_at: now + window}`.
- **Unreadable record** (fields missing or malformed): logged and reset like a lapsed window.
- **Limit reached** (`count >= limit`): refuse with `QuotaExceededError` carrying the reset time.
- **Otherwise**: increment `count` and allow.

This is a fixed window, not a sliding log: an identity can spend up to twice the limit across a
window boundary.

## Atomicity

The read-modify-write is a single-document compare-and-swap. A fresh record is created with
`insert_one` (a concurrent creator makes it fail with `DuplicateKeyError`); an existing record is
replaced with `update_one` filtered on its `revision` (a concurrent writer makes it match nothing).
Either conflict re-reads and retries, up to `QUOTA_MAX_CAS_RETRIES` times.

## Usage Example

```python
gate = AdmissionGate()
record = await gate.check_and_consume("user_123")   # raises QuotaExceededError when exhausted
```
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional

from pydantic import ValidationError
from pymongo.errors import DuplicateKeyError

from flashdeck.config import settings
from flashdeck.database import DatabaseManager, db_manager
from flashdeck.database.operations import run_store_operation
from flashdeck.errors import QuotaExceededError, TransientError, UnauthenticatedError
from flashdeck.managers.logging_manager import get_logger
from flashdeck.models.quota_models import QuotaRecord, QuotaStatus

logger = get_logger(prefix="[AdmissionGate]")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # Records written by a client without tz_aware come back naive
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _parse_record(doc: Dict[str, Any]) -> Optional[QuotaRecord]:
    """The stored record, or `None` when it is unreadable and must be treated as a fresh window."""
    try:
        return QuotaRecord(**doc)
    except ValidationError as e:
        logger.warning("Unreadable quota record for %s, resetting its window: %s", doc.get("_id"), e.errors()[0]["msg"])
        return None


def _revision_of(doc: Dict[str, Any]) -> int:
    revision = doc.get("revision")
    if isinstance(revision, int) and not isinstance(revision, bool) and revision >= 0:
        return revision
    return 0


class AdmissionGate:
    """
    Per-identity generation quota persisted in the `QUOTA_COLLECTION` collection, one document per identity.
    """

    def __init__(
        self,
        database: Optional[DatabaseManager] = None,
        clock: Optional[Callable[[], datetime]] = None,
        timeout: Optional[float] = None,
        limit: Optional[int] = None,
        window: Optional[timedelta] = None,
    ):
        self._db = database if database is not None else db_manager
        self._clock = clock or utcnow
        self.timeout = timeout if timeout is not None else settings.STORE_OPERATION_TIMEOUT_SECONDS
        self.limit = limit if limit is not None else settings.GENERATION_CALL_LIMIT
        self.window = window if window is not None else settings.quota_window
        self.max_retries = settings.QUOTA_MAX_CAS_RETRIES
        self.collection_name = settings.QUOTA_COLLECTION

    async def _run(self, description: str, operation):
        return await run_store_operation(description, operation, self.timeout)

    async def check_and_consume(self, identity: str) -> QuotaRecord:
        """
        Consume one call from `identity`'s allowance.

        Returns:
            QuotaRecord: The record as written by this call.

        Raises:
            UnauthenticatedError: Blank identity.
            QuotaExceededError: The window's limit is already reached.
            TransientError: Store failure, timeout, or persistent write contention.
        """
        if not identity or not identity.strip():
            raise UnauthenticatedError("An identity is required to request generation")

        collection = self._db.get_collection(self.collection_name)

        for attempt in range(1, self.max_retries + 1):
            now = self._clock()
            doc = await self._run("read quota record", collection.find_one({"_id": identity}))

            if doc is None:
                record = QuotaRecord(
                    identity=identity, count=1, window_expires_at=now + self.window, revision=1, updated_at=now
                )
                try:
                    await self._run("create quota record", collection.insert_one(record.model_dump(by_alias=True)))
                except DuplicateKeyError:
                    logger.debug("Quota record for %s created concurrently (attempt %d)", identity, attempt)
                    continue
                logger.info("Opened quota window for %s until %s", identity, record.window_expires_at.isoformat())
                return record

            current = _parse_record(doc)
            revision = _revision_of(doc)

            if current is None or now >= _as_utc(current.window_expires_at):
                count, window_expires_at = 1, now + self.window
            elif current.count >= self.limit:
                expires_at = _as_utc(current.window_expires_at)
                logger.warning("Quota exhausted for %s (%d/%d), resets at %s", identity, current.count, self.limit, expires_at)
                raise QuotaExceededError(identity, self.limit, expires_at)
            else:
                count, window_expires_at = current.count + 1, _as_utc(current.window_expires_at)

            record = QuotaRecord(
                identity=identity,
                count=count,
                window_expires_at=window_expires_at,
                revision=revision + 1,
                updated_at=now,
            )
            if "revision" in doc:
                swap_filter = {"_id": identity, "revision": doc["revision"]}
            else:
                swap_filter = {"_id": identity, "revision": {"$exists": False}}
            result = await self._run(
                "update quota record",
                collection.update_one(
                    swap_filter,
                    {
                        "$set": {
                            "count": record.count,
                            "window_expires_at": record.window_expires_at,
                            "revision": record.revision,
                            "updated_at": record.updated_at,
                        }
                    },
                ),
            )
            if result.matched_count == 1:
                if count == 1:
                    logger.info("Reset quota window for %s until %s", identity, window_expires_at.isoformat())
                return record

            logger.debug("Quota record for %s changed concurrently (attempt %d)", identity, attempt)

        logger.error("Gave up consuming quota for %s after %d conflicting attempts", identity, self.max_retries)
        raise TransientError(f"Quota record for {identity} is under contention, retry later")

    async def get_status(self, identity: str) -> QuotaStatus:
        """Read-only view of the allowance; a missing or lapsed window reports the full limit."""
        if not identity or not identity.strip():
            raise UnauthenticatedError("An identity is required to read the quota")

        collection = self._db.get_collection(self.collection_name)
        doc = await self._run("read quota record", collection.find_one({"_id": identity}))

        record = _parse_record(doc) if doc is not None else None
        if record is None:
            return QuotaStatus(identity=identity, limit=self.limit, used=0, remaining=self.limit)

        expires_at = _as_utc(record.window_expires_at)
        if self._clock() >= expires_at:
            return QuotaStatus(identity=identity, limit=self.limit, used=0, remaining=self.limit)

        used = min(record.count, self.limit)
        return QuotaStatus(
            identity=identity, limit=self.limit, used=used, remaining=self.limit - used, resets_at=expires_at
        )

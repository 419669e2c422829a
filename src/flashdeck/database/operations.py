"""Timeout and transport-failure handling shared by every store call."""

import asyncio
from typing import Awaitable, TypeVar

from pymongo.errors import ConnectionFailure, ExecutionTimeout

from flashdeck.errors import TransientError
from flashdeck.managers.logging_manager import get_logger

logger = get_logger(prefix="[DATABASE]")

T = TypeVar("T")


async def run_store_operation(description: str, operation: Awaitable[T], timeout: float) -> T:
    """
    Await `operation` under `timeout` seconds.

    Timeouts, network errors and server-side time limits are re-raised as `TransientError`; every
    other exception (duplicate keys included) propagates unchanged.
    """
    try:
        return await asyncio.wait_for(operation, timeout=timeout)
    except asyncio.TimeoutError as e:
        logger.warning("%s timed out after %.1fs", description, timeout)
        raise TransientError(f"{description} timed out after {timeout:.1f}s") from e
    except (ConnectionFailure, ExecutionTimeout) as e:
        logger.warning("%s failed with a transport error: %s", description, e)
        raise TransientError(f"{description} failed: {e}") from e

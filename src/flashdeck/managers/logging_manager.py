"""
# Logging Manager

Central logging setup for Flashdeck. Every module obtains its logger here:

```python
from flashdeck.managers.logging_manager import get_logger

logger = get_logger(prefix="[WorkspaceService]")
logger.info("Created folder %s for owner %s", folder_id, owner_id)
```

The root `flashdeck` logger is configured once, on first use, from `settings.LOG_LEVEL`.
Prefixed loggers are `logging.LoggerAdapter` instances that prepend the prefix to each message.
"""

import logging
import sys
from typing import Any, Dict, MutableMapping, Optional, Tuple

from flashdeck.config import settings

ROOT_LOGGER_NAME = "flashdeck"
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

_configured = False


class PrefixedLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that prepends a fixed prefix such as `[DATABASE]` to every message."""

    def __init__(self, logger: logging.Logger, prefix: str):
        super().__init__(logger, {"prefix": prefix})
        self.prefix = prefix

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        return f"{self.prefix} {msg}", kwargs


def _configure_root_logger() -> None:
    global _configured
    if _configured:
        return

    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
    root.propagate = True
    _configured = True


def get_logger(name: str = ROOT_LOGGER_NAME, prefix: Optional[str] = None):
    """
    Return a logger under the `flashdeck` hierarchy.

    Args:
        name: Logger name. Names outside the `flashdeck` namespace are nested under it.
        prefix: Optional text prepended to every message (e.g. `"[AdmissionGate]"`).

    Returns:
        A `logging.Logger`, or a `PrefixedLoggerAdapter` when a prefix is given.
    """
    _configure_root_logger()
    if name != ROOT_LOGGER_NAME and not name.startswith(ROOT_LOGGER_NAME + "."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    logger = logging.getLogger(name)
    if prefix:
        return PrefixedLoggerAdapter(logger, prefix)
    return logger


def log_application_lifecycle(event: str, details: Optional[Dict[str, Any]] = None) -> None:
    """Log an application lifecycle event (startup, shutdown, database ready) with its details."""
    lifecycle_logger = get_logger(prefix="[LIFECYCLE]")
    if details:
        rendered = ", ".join(f"{key}={value}" for key, value in details.items())
        lifecycle_logger.info("%s - %s", event, rendered)
    else:
        lifecycle_logger.info("%s", event)

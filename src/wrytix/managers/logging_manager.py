"""
# Logging Manager

Central logger factory for the application. Every module obtains its logger
through `get_logger()`, optionally with a prefix that tags each message with
the subsystem it came from (`[DATABASE]`, `[Moderation]`, ...).

## Usage

```python
from wrytix.managers.logging_manager import get_logger

logger = get_logger(prefix="[Ads]")
logger.info("Expired %d ads", count)
```

The root `Wrytix` logger is configured once, on first use, with a stream
handler and the level from `settings.DEFAULT_LOG_LEVEL`.
"""

import logging
import sys
from typing import Any, MutableMapping, Tuple

from wrytix.config import settings

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_configured = False


class PrefixedLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that prepends a fixed prefix to every message."""

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        prefix = self.extra.get("prefix") if self.extra else None
        if prefix:
            return f"{prefix} {msg}", kwargs
        return msg, kwargs


def _configure_root(name: str) -> None:
    global _configured
    if _configured:
        return

    root = logging.getLogger(name)
    level = logging.getLevelName(settings.DEFAULT_LOG_LEVEL.upper())
    if not isinstance(level, int):
        level = logging.INFO
    root.setLevel(level)

    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(level)
        handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
        root.addHandler(handler)

    root.propagate = True
    _configured = True


def get_logger(name: str = "Wrytix", prefix: str = "") -> PrefixedLoggerAdapter:
    """
    Return a configured application logger.

    Args:
        name: Logger name. Child names (`Wrytix.db`) inherit the root handler.
        prefix: Optional tag prepended to every message.

    Returns:
        PrefixedLoggerAdapter: A logger adapter usable like `logging.Logger`.
    """
    _configure_root(name.split(".")[0])
    return PrefixedLoggerAdapter(logging.getLogger(name), {"prefix": prefix})

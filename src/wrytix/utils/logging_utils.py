"""
Logging helpers shared by the application entry point.

- `RequestLoggingMiddleware`: one line per request with method, path, status
  and duration.
- `log_application_lifecycle`: structured startup/shutdown events.
- `log_error_with_context`: error logging with an operation context dict.
"""

import time
from typing import Any, Dict, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from wrytix.managers.logging_manager import get_logger

logger = get_logger(prefix="[Lifecycle]")
request_logger = get_logger(prefix="[Request]")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every HTTP request with its status code and duration."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        start = time.time()
        try:
            response = await call_next(request)
        except Exception:
            request_logger.error(
                "%s %s failed after %.3fs", request.method, request.url.path, time.time() - start, exc_info=True
            )
            raise
        request_logger.info(
            "%s %s -> %d (%.3fs)", request.method, request.url.path, response.status_code, time.time() - start
        )
        return response


def log_application_lifecycle(event: str, details: Optional[Dict[str, Any]] = None) -> None:
    """Log an application lifecycle event such as `startup_completed`."""
    if details:
        rendered = ", ".join(f"{key}={value}" for key, value in details.items())
        logger.info("%s: %s", event, rendered)
    else:
        logger.info("%s", event)


def log_error_with_context(error: BaseException, context: Optional[Dict[str, Any]] = None) -> None:
    """Log an exception together with the operation that produced it."""
    logger.error("%s: %s (context=%s)", type(error).__name__, error, context or {}, exc_info=error)

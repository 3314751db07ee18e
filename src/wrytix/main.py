"""
# Wrytix Application Entry Point

Builds the FastAPI application for the Wrytix CMS backend.

## Startup Sequence

1. Connect the document store selected by `STORAGE_BACKEND`. Failure here is
   fatal: the application refuses to serve without persistence.
2. Initialize the headline from `DEFAULT_HEADLINE`.
3. Spawn the background tasks:
   - **Ad expiry sweep** (`AD_EXPIRY_SWEEP_INTERVAL_SECONDS`, default 600s)
   - **Session cleanup** (`SESSION_CLEANUP_INTERVAL_SECONDS`, default 3600s)

On shutdown the tasks are cancelled and the store is closed.

## Error Handling

Every failure is returned as `{"error": "<message>"}`:

- `WrytixError` subclasses carry their own status (401, 403, 404, 409, 400, 500).
- Request body/query validation failures become 400.
- Anything unexpected is logged with its traceback and becomes 500.

## Running

```bash
uvicorn wrytix.main:app --host 0.0.0.0 --port 3000
```
"""

import asyncio
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from starlette.exceptions import HTTPException as StarletteHTTPException
import uvicorn

from wrytix.config import settings
from wrytix.database import db_manager
from wrytix.errors import WrytixError
from wrytix.managers.logging_manager import get_logger
from wrytix.routes.ads import router as ads_router
from wrytix.routes.auth import router as auth_router
from wrytix.routes.comments import router as comments_router
from wrytix.routes.logs import router as logs_router
from wrytix.routes.moderation import approve_user_router, deletions_router, pending_users_router
from wrytix.routes.posts import router as posts_router
from wrytix.routes.submissions import router as submissions_router
from wrytix.routes.system import router as system_router
from wrytix.routes.users import availability_router
from wrytix.routes.users import router as users_router
from wrytix.services.ad_service import periodic_ad_expiry
from wrytix.services.headline_service import headline_state
from wrytix.services.session_service import periodic_session_cleanup
from wrytix.utils.logging_utils import (
    RequestLoggingMiddleware,
    log_application_lifecycle,
    log_error_with_context,
)

logger = get_logger()


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Connect persistence, start periodic jobs, and tear both down on exit."""
    startup_start_time = time.time()
    log_application_lifecycle(
        "startup_initiated", {"storage_backend": settings.STORAGE_BACKEND, "port": settings.PORT}
    )

    try:
        db_connect_start = time.time()
        await db_manager.connect()
        log_application_lifecycle(
            "database_connected",
            {
                "backend": settings.STORAGE_BACKEND,
                "transactions_supported": db_manager.transactions_supported,
                "connection_duration": f"{time.time() - db_connect_start:.3f}s",
            },
        )
    except Exception as e:
        log_application_lifecycle("startup_failed", {"error": str(e), "error_type": type(e).__name__})
        log_error_with_context(e, {"operation": "database_connection"})
        raise

    headline_state.reset()

    background_tasks = {
        "ad_expiry": asyncio.create_task(periodic_ad_expiry()),
        "session_cleanup": asyncio.create_task(periodic_session_cleanup()),
    }
    log_application_lifecycle(
        "startup_completed",
        {
            "total_startup_duration": f"{time.time() - startup_start_time:.3f}s",
            "background_tasks": list(background_tasks),
        },
    )

    yield

    shutdown_start_time = time.time()
    log_application_lifecycle("shutdown_initiated", {"active_background_tasks": len(background_tasks)})
    for task_name, task in background_tasks.items():
        task.cancel()
    for task_name, task in background_tasks.items():
        try:
            await asyncio.wait_for(task, timeout=5.0)
        except asyncio.CancelledError:
            logger.info("Background task %s cancelled", task_name)
        except asyncio.TimeoutError:
            logger.warning("Background task %s cancellation timed out", task_name)
        except Exception as e:
            logger.error("Error during %s cleanup: %s", task_name, e)

    try:
        await db_manager.disconnect()
    except Exception as e:
        log_error_with_context(e, {"operation": "database_disconnection"})

    log_application_lifecycle(
        "shutdown_completed", {"total_shutdown_duration": f"{time.time() - shutdown_start_time:.3f}s"}
    )


app = FastAPI(
    title="Wrytix CMS API",
    description="Backend for the Wrytix blog: posts, editorial moderation, users, ads and audit logs.",
    version="1.0.0",
    lifespan=lifespan,
    openapi_tags=[
        {"name": "Auth", "description": "Login, logout and session verification"},
        {"name": "Posts", "description": "Published content"},
        {"name": "Post Submissions", "description": "Author drafts under editorial review"},
        {"name": "Users", "description": "Accounts and availability checks"},
        {"name": "Pending Users", "description": "Self-registrations awaiting approval"},
        {"name": "Pending Deletions", "description": "User deletion requests"},
        {"name": "Ads", "description": "Advertisements with automatic expiry"},
        {"name": "Comments", "description": "Per-post comment threads"},
        {"name": "Logs", "description": "Audit trail"},
        {"name": "System", "description": "Health, headline and diagnostics"},
    ],
)


# --- Exception handlers ---


@app.exception_handler(WrytixError)
async def wrytix_error_handler(request: Request, exc: WrytixError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
    else:
        message = "Invalid request"
    return JSONResponse(status_code=400, content={"error": message})


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    log_error_with_context(exc, {"method": request.method, "path": request.url.path})
    return JSONResponse(status_code=500, content={"error": "Server error"})


# --- Middleware ---

logger.info("Configuring CORS with origins: %s", settings.cors_origins)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    max_age=3600,
)
app.add_middleware(RequestLoggingMiddleware)


# --- Routers ---

routers_config = [
    ("system", system_router, "Banner, ping, health, headline and time check"),
    ("auth", auth_router, "Login, logout and session verification"),
    ("posts", posts_router, "Published posts and view counting"),
    ("submissions", submissions_router, "Post submission review workflow"),
    ("users", users_router, "User account management"),
    ("availability", availability_router, "Username and email availability"),
    ("pending_users", pending_users_router, "Self-registration review workflow"),
    ("approve_user", approve_user_router, "Pending user approval by id in body"),
    ("pending_deletions", deletions_router, "User deletion request workflow"),
    ("ads", ads_router, "Advertisements"),
    ("comments", comments_router, "Comment threads"),
    ("logs", logs_router, "Audit log access"),
]

included_routers = []
for router_name, router, description in routers_config:
    app.include_router(router)
    included_routers.append(router_name)
log_application_lifecycle("routers_configured", {"included_routers": included_routers})


# --- Metrics ---

if settings.METRICS_ENABLED:
    instrumentator = Instrumentator(
        should_group_status_codes=True,
        should_ignore_untemplated=True,
        should_respect_env_var=False,
    )
    instrumentator.instrument(app).expose(app, include_in_schema=False, endpoint="/metrics")
    log_application_lifecycle("prometheus_configured", {"metrics_endpoint": "/metrics"})


def run() -> None:
    uvicorn.run("wrytix.main:app", host=settings.HOST, port=settings.PORT, reload=settings.DEBUG, log_level="info")


if __name__ == "__main__":
    run()

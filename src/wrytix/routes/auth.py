"""
# Session Routes

- `POST /login`: verify credentials and set the HttpOnly session cookie.
- `POST /logout`: end the session and clear the cookie.
- `GET /verify-session`: return the current identity or 401.
"""

from fastapi import APIRouter, Depends, Request, Response

from wrytix.config import settings
from wrytix.errors import Unauthorized
from wrytix.managers.logging_manager import get_logger
from wrytix.models.cms_models import LoginRequest
from wrytix.routes.dependencies import Caller, get_caller
from wrytix.services.audit_service import audit_service
from wrytix.services.session_service import session_service

logger = get_logger(prefix="[Auth Routes]")

router = APIRouter(tags=["Auth"])


@router.post("/login")
async def login(body: LoginRequest, response: Response, caller: Caller = Depends(get_caller)):
    async with caller.on_failure("login-failed", body.username):
        token, identity = await session_service.login(body.username, body.password)

    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        max_age=settings.SESSION_TTL_HOURS * 3600,
        httponly=True,
        secure=settings.SESSION_COOKIE_SECURE,
        samesite="lax",
    )
    await audit_service.log_action(
        identity.username, "login", identity.username, ip=caller.ip, user_agent=caller.user_agent
    )
    logger.info("User %s logged in", identity.username)
    return {"message": "Login successful", "user": identity.to_dict()}


@router.post("/logout")
async def logout(request: Request, response: Response, caller: Caller = Depends(get_caller)):
    await session_service.logout(request.cookies.get(settings.SESSION_COOKIE_NAME))
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    if caller.identity:
        await caller.log("logout", caller.actor)
    return {"message": "Logged out"}


@router.get("/verify-session")
async def verify_session(caller: Caller = Depends(get_caller)):
    if caller.identity is None:
        raise Unauthorized("Unauthorized")
    return {"user": caller.identity.to_dict()}

"""
# Access Control Dependencies

FastAPI dependencies that identify the caller and enforce the per-endpoint
role sets of the CMS.

## Roles

Roles are **not** hierarchical. Every protected endpoint names its explicit
set, for example `require_roles(Role.ADMIN, Role.EDITOR)`.

- No session cookie, or an expired one: `Unauthorized` (401), audited as
  `login-required`.
- Session whose role is not in the set: `Forbidden` (403), audited as
  `access-denied`.

## Caller

Every dependency yields a `Caller`: the session identity (or `None` for
anonymous requests) plus the client address and user agent, and helpers that
write audit entries attributed to that caller.

```python
@router.delete("/{ad_id}")
async def delete_ad(ad_id: str, caller: Caller = Depends(require_admin)):
    async with caller.on_failure("ad-delete-failed", ad_id):
        deleted = await ad_service.delete_ad(ad_id)
    await caller.log("ad-deleted", ad_id)
```
"""

from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Callable, Dict, Optional

from fastapi import Depends, Request

from wrytix.config import settings
from wrytix.errors import Forbidden, InternalError, Unauthorized, WrytixError
from wrytix.managers.logging_manager import get_logger
from wrytix.models.cms_models import Role
from wrytix.services.audit_service import audit_service
from wrytix.services.session_service import Identity, session_service

logger = get_logger(prefix="[Access Control]")


@dataclass
class Caller:
    """The identity and client details behind one request."""

    identity: Optional[Identity]
    ip: Optional[str] = None
    user_agent: Optional[str] = None

    @property
    def actor(self) -> Optional[str]:
        return self.identity.username if self.identity else None

    @property
    def role(self) -> Optional[str]:
        return self.identity.role if self.identity else None

    async def log(self, action: str, target: Optional[str] = "", **metadata: Any) -> None:
        await audit_service.log_action(
            self.actor, action, target, ip=self.ip, user_agent=self.user_agent, **metadata
        )

    @asynccontextmanager
    async def on_failure(self, action: str, target: Optional[str] = "", **metadata: Any) -> AsyncIterator[None]:
        """
        Audit a failed operation under `action`, then re-raise.

        Expected errors keep their status; anything else is logged with a
        traceback and surfaced as `InternalError`.
        """
        try:
            yield
        except WrytixError as e:
            await self.log(action, target, error=e.message, **metadata)
            raise
        except Exception as e:
            logger.error("%s on %s failed: %s", action, target, e, exc_info=True)
            await self.log(action, target, error=str(e), **metadata)
            raise InternalError("Server error") from e


def client_ip(request: Request) -> Optional[str]:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


async def get_caller(request: Request) -> Caller:
    """Resolve the session cookie, if any. Never rejects the request."""
    token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    identity = await session_service.resolve(token)
    return Caller(identity=identity, ip=client_ip(request), user_agent=request.headers.get("user-agent"))


async def require_login(request: Request, caller: Caller = Depends(get_caller)) -> Caller:
    if caller.identity is None:
        await caller.log("login-required", request.url.path, method=request.method)
        raise Unauthorized("Unauthorized: please log in")
    return caller


def require_roles(*roles: Role) -> Callable[..., Any]:
    """Build a dependency admitting only sessions whose role is in `roles`."""
    allowed = {role.value for role in roles}

    async def role_gate(request: Request, caller: Caller = Depends(require_login)) -> Caller:
        if caller.role not in allowed:
            await caller.log(
                "access-denied",
                request.url.path,
                method=request.method,
                role=caller.role,
                required=sorted(allowed),
            )
            raise Forbidden("Forbidden: insufficient permissions")
        return caller

    return role_gate


def can_cancel_deletion(identity: Optional[Identity], request: Dict[str, Any]) -> bool:
    """Only the requester or an admin may withdraw a deletion request."""
    if identity is None:
        return False
    return identity.role == Role.ADMIN.value or request.get("requestedBy") == identity.username


require_admin = require_roles(Role.ADMIN)
require_editor_or_admin = require_roles(Role.ADMIN, Role.EDITOR)
require_author = require_roles(Role.AUTHOR)
require_contributor = require_roles(Role.AUTHOR, Role.EDITOR, Role.ADMIN)

"""
# Session Service

Password verification and opaque server-side sessions.

## Flow

1. `login()` checks the username/password against an **active** user
   (bcrypt via passlib) and stores a `sessions` document:
   `{token, userId, username, role, createdAt, expiresAt}`.
2. The token is handed to the client as an HttpOnly cookie.
3. `resolve()` maps a cookie token back to an `Identity`; expired sessions are
   deleted on sight.
4. `logout()` removes the session. `periodic_session_cleanup()` purges expired
   sessions in the background.
"""

import asyncio
import secrets
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Dict, Optional, Tuple

from passlib.context import CryptContext

from wrytix.config import settings
from wrytix.database import db_manager
from wrytix.database.store import SESSIONS, USERS
from wrytix.errors import Unauthorized, ValidationError
from wrytix.managers.logging_manager import get_logger
from wrytix.models.cms_models import UserStatus
from wrytix.utils.time_utils import parse_datetime, to_iso, utcnow

logger = get_logger(prefix="[SessionService]")

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=settings.BCRYPT_ROUNDS)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed: Optional[str]) -> bool:
    if not hashed:
        return False
    try:
        return pwd_context.verify(password, hashed)
    except ValueError:
        # Stored value is not a recognised hash
        return False


@dataclass(frozen=True)
class Identity:
    """The authenticated caller behind a session."""

    id: str
    username: str
    role: str

    def to_dict(self) -> Dict[str, str]:
        return {"id": self.id, "username": self.username, "role": self.role}


class SessionService:
    async def login(self, username: str, password: str) -> Tuple[str, Identity]:
        """
        Authenticate and open a session.

        Returns:
            The session token and the caller's identity.

        Raises:
            Unauthorized: Unknown user, inactive account or wrong password.
        """
        user = await db_manager.store.find_one(USERS, {"username": username})
        if not user or not verify_password(password, user.get("password")):
            raise Unauthorized("Invalid username or password")
        if user.get("status", UserStatus.ACTIVE.value) != UserStatus.ACTIVE.value:
            raise Unauthorized("Account is not active")

        now = utcnow()
        token = secrets.token_urlsafe(32)
        identity = Identity(id=user["id"], username=user["username"], role=user.get("role", "viewer"))
        await db_manager.store.insert_one(
            SESSIONS,
            {
                "token": token,
                "userId": identity.id,
                "username": identity.username,
                "role": identity.role,
                "createdAt": to_iso(now),
                "expiresAt": to_iso(now + timedelta(hours=settings.SESSION_TTL_HOURS)),
            },
        )
        logger.info("Session opened for %s", identity.username)
        return token, identity

    async def resolve(self, token: Optional[str]) -> Optional[Identity]:
        """Return the identity for a live session token, or `None`."""
        if not token:
            return None
        session = await db_manager.store.find_one(SESSIONS, {"token": token})
        if not session:
            return None
        if self._is_expired(session):
            await db_manager.store.delete_one(SESSIONS, {"token": token})
            logger.debug("Expired session for %s removed", session.get("username"))
            return None
        return Identity(id=session["userId"], username=session["username"], role=session["role"])

    async def logout(self, token: Optional[str]) -> bool:
        if not token:
            return False
        return await db_manager.store.delete_one(SESSIONS, {"token": token}) is not None

    async def revoke_user_sessions(self, user_id: str) -> int:
        return await db_manager.store.delete_many(SESSIONS, {"userId": user_id})

    async def purge_expired(self) -> int:
        removed = 0
        for session in await db_manager.store.find(SESSIONS):
            if self._is_expired(session):
                if await db_manager.store.delete_one(SESSIONS, {"token": session["token"]}):
                    removed += 1
        if removed:
            logger.info("Purged %d expired sessions", removed)
        return removed

    @staticmethod
    def _is_expired(session: Dict[str, Any]) -> bool:
        try:
            return parse_datetime(session.get("expiresAt"), "expiresAt") <= utcnow()
        except ValidationError:
            return True


session_service = SessionService()


async def periodic_session_cleanup() -> None:
    """Purge expired sessions every `SESSION_CLEANUP_INTERVAL_SECONDS`."""
    while True:
        await asyncio.sleep(settings.SESSION_CLEANUP_INTERVAL_SECONDS)
        try:
            await session_service.purge_expired()
        except Exception as e:
            logger.error("Session cleanup failed: %s", e, exc_info=True)

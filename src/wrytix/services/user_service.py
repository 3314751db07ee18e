"""
# User Service

Account CRUD and username/email availability.

Password hashes are stored under `password` and are stripped from every
document this service returns. Usernames and emails are unique; email
comparison is case-insensitive.
"""

import uuid
from typing import Any, Dict, List, Optional

from wrytix.database import db_manager
from wrytix.database.store import PENDING_USERS, USERS
from wrytix.errors import Conflict, NotFound, ValidationError
from wrytix.managers.logging_manager import get_logger
from wrytix.models.cms_models import CreateUserRequest, UpdateUserRequest
from wrytix.services.session_service import hash_password, session_service
from wrytix.utils.time_utils import to_iso, utcnow

logger = get_logger(prefix="[UserService]")

SECRET_FIELDS = ("password",)


def sanitize(document: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Return a copy of a user-like document without secret fields."""
    if document is None:
        return None
    return {key: value for key, value in document.items() if key not in SECRET_FIELDS}


def _same_email(a: Optional[str], b: Optional[str]) -> bool:
    return bool(a) and bool(b) and a.strip().lower() == b.strip().lower()


async def find_by_email(collection: str, email: str) -> Optional[Dict[str, Any]]:
    """Case-insensitive email lookup."""
    for document in await db_manager.store.find(collection):
        if _same_email(document.get("email"), email):
            return document
    return None


class UserService:
    async def list_users(self) -> List[Dict[str, Any]]:
        return [sanitize(user) for user in await db_manager.store.find(USERS)]

    async def get_user(self, user_id: str) -> Dict[str, Any]:
        user = await db_manager.store.find_one(USERS, {"id": user_id})
        if not user:
            raise NotFound("User not found")
        return sanitize(user)

    async def create_user(self, body: CreateUserRequest, actor: Optional[str] = None) -> Dict[str, Any]:
        """
        Create an account directly (admin path; no moderation).

        Raises:
            Conflict: If a user or a pending registration already holds the
                username or email.
        """
        for collection in (USERS, PENDING_USERS):
            if await db_manager.store.find_one(collection, {"username": body.username}):
                raise Conflict("Username already exists")
            if await find_by_email(collection, body.email):
                raise Conflict("Email already exists")

        document = body.to_document()
        document.update(
            {
                "id": uuid.uuid4().hex,
                "password": hash_password(body.password),
                "role": body.role.value,
                "status": body.status.value,
                "createdAt": to_iso(utcnow()),
                "createdBy": actor,
            }
        )
        user = await db_manager.store.insert_one(USERS, document)
        logger.info("User %s created with role %s", user["username"], user["role"])
        return sanitize(user)

    async def update_user(self, user_id: str, body: UpdateUserRequest) -> Dict[str, Any]:
        """
        Merge changes into an account. A supplied password is re-hashed.

        Role, status, password or username changes end the user's open sessions.
        A new username or email must not be held by another user or by a
        pending registration.
        """
        user = await db_manager.store.find_one(USERS, {"id": user_id})
        if not user:
            raise NotFound("User not found")

        changes = body.to_document()
        if "username" in changes and changes["username"] != user["username"]:
            for collection in (USERS, PENDING_USERS):
                if await db_manager.store.find_one(collection, {"username": changes["username"]}):
                    raise Conflict("Username already exists")
        if "email" in changes and not _same_email(changes["email"], user.get("email")):
            for collection in (USERS, PENDING_USERS):
                if await find_by_email(collection, changes["email"]):
                    raise Conflict("Email already exists")
        if "password" in changes:
            changes["password"] = hash_password(changes["password"])
        changes["updatedAt"] = to_iso(utcnow())

        updated = await db_manager.store.update_one(USERS, {"id": user_id}, changes)
        if updated is None:
            raise NotFound("User not found")
        if {"role", "status", "password", "username"} & set(changes):
            await session_service.revoke_user_sessions(user_id)
        return sanitize(updated)

    async def delete_user(self, user_id: str) -> Dict[str, Any]:
        removed = await db_manager.store.delete_one(USERS, {"id": user_id})
        if removed is None:
            raise NotFound("User not found")
        await session_service.revoke_user_sessions(user_id)
        return sanitize(removed)

    async def is_username_available(self, username: Optional[str]) -> bool:
        """True when no user or pending registration holds `username`."""
        if not username or not username.strip():
            raise ValidationError("Username is required")
        username = username.strip()
        for collection in (USERS, PENDING_USERS):
            if await db_manager.store.find_one(collection, {"username": username}):
                return False
        return True

    async def is_email_available(self, email: Optional[str]) -> bool:
        """True when no user or pending registration holds `email` (case-insensitive)."""
        if not email or not email.strip():
            raise ValidationError("Email is required")
        for collection in (USERS, PENDING_USERS):
            if await find_by_email(collection, email):
                return False
        return True


user_service = UserService()

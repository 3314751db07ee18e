"""
# User Routes

Account management (admins write, editors read) and public availability
checks used by the registration form.
"""

from typing import Optional

from fastapi import APIRouter, Depends, status

from wrytix.models.cms_models import CreateUserRequest, UpdateUserRequest
from wrytix.routes.dependencies import Caller, require_admin, require_editor_or_admin
from wrytix.services.user_service import user_service

router = APIRouter(prefix="/users", tags=["Users"])
availability_router = APIRouter(tags=["Users"])


@router.get("")
async def list_users(caller: Caller = Depends(require_editor_or_admin)):
    return await user_service.list_users()


@router.get("/{user_id}")
async def get_user(user_id: str, caller: Caller = Depends(require_editor_or_admin)):
    return await user_service.get_user(user_id)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_user(body: CreateUserRequest, caller: Caller = Depends(require_admin)):
    async with caller.on_failure("user-create-failed", body.username):
        user = await user_service.create_user(body, caller.actor)
    await caller.log("user-created", user["username"], role=user["role"])
    return {"message": "User created", "user": user}


@router.put("/{user_id}")
async def update_user(user_id: str, body: UpdateUserRequest, caller: Caller = Depends(require_admin)):
    async with caller.on_failure("user-update-failed", user_id):
        user = await user_service.update_user(user_id, body)
    changes = sorted(key for key in body.to_document() if key != "password")
    await caller.log("user-updated", user["username"], changes=changes)
    return {"message": "User updated", "user": user}


@router.delete("/{user_id}")
async def delete_user(user_id: str, caller: Caller = Depends(require_admin)):
    async with caller.on_failure("user-delete-failed", user_id):
        user = await user_service.delete_user(user_id)
    await caller.log("user-deleted", user["username"], email=user.get("email"))
    return {"message": "User deleted", "user": user}


@availability_router.get("/check-username")
async def check_username(username: Optional[str] = None):
    return {"available": await user_service.is_username_available(username)}


@availability_router.get("/check-email")
async def check_email(email: Optional[str] = None):
    return {"available": await user_service.is_email_available(email)}

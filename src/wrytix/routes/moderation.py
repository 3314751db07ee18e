"""
# Moderation Routes

## Pending users
- `POST /pendingUsers`: public self-registration.
- `GET /pendingUsers`, `GET /pendingUsers/{id}`: admin.
- `POST /pendingUsers/{id}/approve` and `POST /approve-user {pendingUserId}`:
  admin; both run the same approval.
- `DELETE /pendingUsers/{id}`: admin discard.

## Deletion requests
- `POST /pendingDeletions`, `GET /pendingDeletions`,
  `GET /pendingDeletions/{id}`: editor, admin.
- `POST /pendingDeletions/{id}/approve`, `.../reject`: admin.
- `DELETE /pendingDeletions/{id}`: the requester or an admin.
"""

from typing import Optional

from fastapi import APIRouter, Depends, status

from wrytix.errors import Forbidden
from wrytix.models.cms_models import ApproveUserRequest, DeletionRequest, RegistrationRequest
from wrytix.routes.dependencies import (
    Caller,
    can_cancel_deletion,
    get_caller,
    require_admin,
    require_editor_or_admin,
    require_login,
)
from wrytix.services.moderation_service import moderation_service

pending_users_router = APIRouter(prefix="/pendingUsers", tags=["Pending Users"])
approve_user_router = APIRouter(tags=["Pending Users"])
deletions_router = APIRouter(prefix="/pendingDeletions", tags=["Pending Deletions"])


# --- Pending users ---


@pending_users_router.post("", status_code=status.HTTP_201_CREATED)
async def submit_registration(body: RegistrationRequest, caller: Caller = Depends(get_caller)):
    async with caller.on_failure("pending-user-create-failed", body.email):
        pending = await moderation_service.submit_registration(body)
    await caller.log(
        "pending-user-created",
        pending.get("email") or pending["username"],
        username=pending["username"],
        submittedBy=pending.get("submittedBy"),
    )
    return {"message": "Pending request submitted", "request": pending}


@pending_users_router.get("")
async def list_pending_users(caller: Caller = Depends(require_admin)):
    return await moderation_service.list_pending_users()


@pending_users_router.get("/{pending_id}")
async def get_pending_user(pending_id: str, caller: Caller = Depends(require_admin)):
    return await moderation_service.get_pending_user(pending_id)


async def approve(pending_id: Optional[str], caller: Caller) -> dict:
    async with caller.on_failure("user-approve-failed", pending_id):
        user = await moderation_service.approve_pending_user(pending_id, caller.actor)
    await caller.log("user-approved", user["username"], email=user.get("email"), role=user["role"])
    return {"message": "User approved", "user": user}


@pending_users_router.post("/{pending_id}/approve")
async def approve_pending_user(pending_id: str, caller: Caller = Depends(require_admin)):
    return await approve(pending_id, caller)


@approve_user_router.post("/approve-user")
async def approve_user(body: ApproveUserRequest, caller: Caller = Depends(require_admin)):
    return await approve(body.pending_user_id, caller)


@pending_users_router.delete("/{pending_id}")
async def discard_pending_user(pending_id: str, caller: Caller = Depends(require_admin)):
    async with caller.on_failure("pending-user-delete-failed", pending_id):
        pending = await moderation_service.discard_pending_user(pending_id)
    await caller.log("pending-user-deleted", pending.get("email") or pending["username"], reason="Admin action")
    return {"message": "Pending user deleted", "request": pending}


# --- Deletion requests ---


@deletions_router.post("", status_code=status.HTTP_201_CREATED)
async def request_deletion(body: DeletionRequest, caller: Caller = Depends(require_editor_or_admin)):
    async with caller.on_failure("user-delete-request-failed", body.user_id):
        request = await moderation_service.request_deletion(body, caller.identity)
    await caller.log(
        "user-delete-requested",
        request["userId"],
        reason=request["reason"],
        targetUsername=request.get("targetUsername"),
        targetEmail=request.get("targetEmail"),
        targetRole=request.get("targetRole"),
    )
    return {"message": "Delete request submitted", "request": request}


@deletions_router.get("")
async def list_deletions(caller: Caller = Depends(require_editor_or_admin)):
    return await moderation_service.list_deletions()


@deletions_router.get("/{request_id}")
async def get_deletion(request_id: str, caller: Caller = Depends(require_editor_or_admin)):
    return await moderation_service.get_deletion(request_id)


@deletions_router.post("/{request_id}/approve")
async def approve_deletion(request_id: str, caller: Caller = Depends(require_admin)):
    async with caller.on_failure("user-delete-approve-failed", request_id):
        request = await moderation_service.approve_deletion(request_id)
    await caller.log(
        "user-delete-approved",
        request.get("targetUsername") or request["userId"],
        userId=request["userId"],
        requestedBy=request.get("requestedBy"),
    )
    return {"message": "User deleted", "request": request}


@deletions_router.post("/{request_id}/reject")
async def reject_deletion(request_id: str, caller: Caller = Depends(require_admin)):
    async with caller.on_failure("user-delete-reject-failed", request_id):
        request = await moderation_service.reject_deletion(request_id)
    await caller.log(
        "user-delete-rejected",
        request.get("targetUsername") or request["userId"],
        requestedBy=request.get("requestedBy"),
    )
    return {"message": "Delete request rejected", "request": request}


@deletions_router.delete("/{request_id}")
async def cancel_deletion(request_id: str, caller: Caller = Depends(require_login)):
    async with caller.on_failure("user-delete-cancel-failed", request_id):
        request = await moderation_service.get_deletion(request_id)
        if not can_cancel_deletion(caller.identity, request):
            raise Forbidden("Only the requester or an admin can cancel this request")
        request = await moderation_service.cancel_deletion(request_id)
    await caller.log("user-delete-cancelled", request.get("targetUsername") or request["userId"])
    return {"message": "Delete request cancelled", "request": request}

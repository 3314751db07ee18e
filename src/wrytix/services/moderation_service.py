"""
# Moderation Service

The three review workflows of the CMS. Each multi-document transition runs in
one store transaction, so clients never observe a half-applied decision.

## Pending users (`proposed -> approved | discarded`)

Public self-registration creates a `pending_users` record. An admin approval
creates the `users` record (`status=active`, `approvedBy`, `approvedAt`) and
removes the pending record in the same transaction. Both HTTP approval
endpoints call `approve_pending_user`.

## Deletion requests (`pending -> approved | rejected | cancelled`)

Editors and admins ask for a user to be removed. The request snapshots the
target's identity so it stays readable after the user is gone. Approval fails
with `NotFound` when the target has already disappeared, leaving the request
in place.

## Post submissions (`pending -> approved | rejected`)

Authors submit drafts. Approval turns the draft into a post and removes the
submission; rejection is terminal and keeps the submission for the author to
read the editor's comments.
"""

import uuid
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from wrytix.database import db_manager
from wrytix.database.store import (
    PENDING_DELETIONS,
    PENDING_USERS,
    POST_SUBMISSIONS,
    POSTS,
    SESSIONS,
    USERS,
)
from wrytix.errors import Conflict, Forbidden, NotFound, ValidationError
from wrytix.managers.logging_manager import get_logger
from wrytix.models.cms_models import (
    CreateSubmissionRequest,
    DeletionRequest,
    RegistrationRequest,
    Role,
    SubmissionStatus,
    UpdateSubmissionRequest,
    UserStatus,
)
from wrytix.services.post_service import build_post
from wrytix.services.session_service import Identity, hash_password
from wrytix.services.user_service import find_by_email, sanitize
from wrytix.utils.time_utils import parse_optional_datetime, to_iso, utcnow

logger = get_logger(prefix="[Moderation]")

# Fields an author may change on their own submission
AUTHOR_EDITABLE_FIELDS = {"title", "content", "category", "thumbnail", "schedule"}


class SubmissionOutcome(str, Enum):
    """What an `update_submission` call did."""

    APPROVED = "approved"
    REJECTED = "rejected"
    UPDATED = "updated"


class ModerationService:
    # --- Pending users ---

    async def submit_registration(self, body: RegistrationRequest) -> Dict[str, Any]:
        """
        Record a self-registration for admin review.

        Raises:
            Conflict: The username or email is held by a user or another
                pending registration.
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
                "createdAt": to_iso(utcnow()),
            }
        )
        document.setdefault("pdfFilename", None)
        document.setdefault("pdfOriginalName", None)
        pending = await db_manager.store.insert_one(PENDING_USERS, document)
        logger.info("Registration received for %s", pending["username"])
        return sanitize(pending)

    async def list_pending_users(self) -> List[Dict[str, Any]]:
        return [sanitize(pending) for pending in await db_manager.store.find(PENDING_USERS)]

    async def get_pending_user(self, pending_id: str) -> Dict[str, Any]:
        pending = await db_manager.store.find_one(PENDING_USERS, {"id": pending_id})
        if not pending:
            raise NotFound("Pending user not found")
        return sanitize(pending)

    async def approve_pending_user(self, pending_id: Optional[str], approver: str) -> Dict[str, Any]:
        """
        Promote a pending registration to an active user.

        Raises:
            ValidationError: No pending id was given.
            NotFound: The pending registration does not exist.
            Conflict: A user already holds the username or email. The pending
                registration is left untouched.
        """
        if not pending_id:
            raise ValidationError("pendingUserId is required")

        async with db_manager.store.transaction():
            pending = await db_manager.store.find_one(PENDING_USERS, {"id": pending_id})
            if not pending:
                raise NotFound("Pending user not found")
            if await db_manager.store.find_one(USERS, {"username": pending["username"]}) or (
                pending.get("email") and await find_by_email(USERS, pending["email"])
            ):
                raise Conflict("A user with this username or email already exists")

            now = to_iso(utcnow())
            user = {
                "id": uuid.uuid4().hex,
                "username": pending["username"],
                "email": pending.get("email"),
                "password": pending["password"],
                "role": pending.get("role") or Role.AUTHOR.value,
                "status": UserStatus.ACTIVE.value,
                "fullName": pending.get("fullName"),
                "avatar": pending.get("avatar"),
                "createdAt": now,
                "requestedAt": pending.get("createdAt"),
                "approvedBy": approver,
                "approvedAt": now,
            }
            stored = await db_manager.store.insert_one(USERS, user)
            await db_manager.store.delete_one(PENDING_USERS, {"id": pending_id})

        logger.info("Pending user %s approved by %s", stored["username"], approver)
        return sanitize(stored)

    async def discard_pending_user(self, pending_id: str) -> Dict[str, Any]:
        removed = await db_manager.store.delete_one(PENDING_USERS, {"id": pending_id})
        if removed is None:
            raise NotFound("Pending user not found")
        return sanitize(removed)

    # --- Deletion requests ---

    async def request_deletion(self, body: DeletionRequest, requester: Identity) -> Dict[str, Any]:
        """
        File a request to delete a user.

        Target identity fields are copied from the live user when it exists,
        otherwise from the client-supplied `target*` values.
        """
        if not body.user_id or not body.reason:
            raise ValidationError("Missing userId or reason")

        target = await db_manager.store.find_one(USERS, {"id": body.user_id}) or {}
        request = {
            "id": uuid.uuid4().hex,
            "userId": body.user_id,
            "reason": body.reason,
            "targetUsername": target.get("username", body.target_username),
            "targetEmail": target.get("email", body.target_email),
            "targetRole": target.get("role", body.target_role),
            "targetFullName": target.get("fullName", body.target_full_name),
            "targetAvatar": target.get("avatar", body.target_avatar),
            "requestedBy": requester.username,
            "createdAt": to_iso(utcnow()),
            "status": "pending",
        }
        return await db_manager.store.insert_one(PENDING_DELETIONS, request)

    async def list_deletions(self) -> List[Dict[str, Any]]:
        return await db_manager.store.find(PENDING_DELETIONS)

    async def get_deletion(self, request_id: str) -> Dict[str, Any]:
        request = await db_manager.store.find_one(PENDING_DELETIONS, {"id": request_id})
        if not request:
            raise NotFound("Delete request not found")
        return request

    async def approve_deletion(self, request_id: str) -> Dict[str, Any]:
        """
        Delete the target user and close the request.

        Raises:
            NotFound: The request or its target user no longer exists. The
                request is left as it was.
        """
        async with db_manager.store.transaction():
            request = await db_manager.store.find_one(PENDING_DELETIONS, {"id": request_id})
            if not request:
                raise NotFound("Delete request not found")
            if not await db_manager.store.find_one(USERS, {"id": request["userId"]}):
                raise NotFound("Target user not found")

            await db_manager.store.delete_one(USERS, {"id": request["userId"]})
            await db_manager.store.delete_one(PENDING_DELETIONS, {"id": request_id})
            await db_manager.store.delete_many(SESSIONS, {"userId": request["userId"]})

        logger.info("User %s deleted on request %s", request.get("targetUsername"), request_id)
        return request

    async def reject_deletion(self, request_id: str) -> Dict[str, Any]:
        removed = await db_manager.store.delete_one(PENDING_DELETIONS, {"id": request_id})
        if removed is None:
            raise NotFound("Delete request not found")
        return removed

    async def cancel_deletion(self, request_id: str) -> Dict[str, Any]:
        """Withdraw a request. Callers check ownership with `can_cancel_deletion` first."""
        removed = await db_manager.store.delete_one(PENDING_DELETIONS, {"id": request_id})
        if removed is None:
            raise NotFound("Delete request not found")
        return removed

    # --- Post submissions ---

    async def submit_post(self, body: CreateSubmissionRequest, author: Identity) -> Dict[str, Any]:
        """
        Raises:
            Conflict: The slug is used by a post or another submission.
            ValidationError: The schedule can not be parsed.
        """
        parse_optional_datetime(body.schedule, "schedule")
        if await db_manager.store.find_one(POSTS, {"slug": body.slug}):
            raise Conflict("A post with this slug already exists")
        if await db_manager.store.find_one(POST_SUBMISSIONS, {"slug": body.slug}):
            raise Conflict("A submission with this slug already exists")

        document = body.to_document()
        document.update(
            {
                "id": uuid.uuid4().hex,
                "slug": body.slug,
                "status": SubmissionStatus.PENDING.value,
                "submittedBy": author.username,
                "editorComments": "",
                "createdAt": to_iso(utcnow()),
            }
        )
        return await db_manager.store.insert_one(POST_SUBMISSIONS, document)

    async def list_submissions(self, viewer: Identity) -> List[Dict[str, Any]]:
        """Authors see their own submissions; editors and admins see all."""
        if viewer.role == Role.AUTHOR.value:
            return await db_manager.store.find(POST_SUBMISSIONS, {"submittedBy": viewer.username})
        return await db_manager.store.find(POST_SUBMISSIONS)

    async def get_submission(self, submission_id: str, viewer: Identity) -> Dict[str, Any]:
        submission = await db_manager.store.find_one(POST_SUBMISSIONS, {"id": submission_id})
        if not submission:
            raise NotFound("Submission not found")
        if viewer.role == Role.AUTHOR.value and submission.get("submittedBy") != viewer.username:
            raise Forbidden("You can only view your own submissions")
        return submission

    async def update_submission(
        self, submission_id: str, body: UpdateSubmissionRequest, actor: Identity
    ) -> Tuple[SubmissionOutcome, Dict[str, Any]]:
        """
        Edit a submission or record a review decision.

        Returns:
            The outcome and either the created post (`APPROVED`) or the
            updated submission.

        Raises:
            NotFound: The submission does not exist.
            Conflict: The submission was already rejected, or approval would
                duplicate an existing post slug.
            Forbidden: An author touched someone else's submission or tried to
                set `status`/`editorComments`.
        """
        changes = body.to_document()

        async with db_manager.store.transaction():
            submission = await db_manager.store.find_one(POST_SUBMISSIONS, {"id": submission_id})
            if not submission:
                raise NotFound("Submission not found")
            if submission.get("status") == SubmissionStatus.REJECTED.value:
                raise Conflict("Submission has already been rejected")

            if actor.role == Role.AUTHOR.value:
                if submission.get("submittedBy") != actor.username:
                    raise Forbidden("You can only edit your own submissions")
                if set(changes) - AUTHOR_EDITABLE_FIELDS:
                    raise Forbidden("Authors cannot change review fields")

            if "schedule" in changes:
                schedule = parse_optional_datetime(changes["schedule"], "schedule")
                changes["schedule"] = to_iso(schedule) if schedule else None

            if changes.get("status") == SubmissionStatus.APPROVED.value:
                if await db_manager.store.find_one(POSTS, {"slug": submission["slug"]}):
                    raise Conflict("A post with this slug already exists")
                merged = {**submission, **changes, "author": submission.get("submittedBy")}
                post = build_post(merged)
                post["submittedBy"] = submission.get("submittedBy")
                post["approvedBy"] = actor.username
                stored = await db_manager.store.insert_one(POSTS, post)
                await db_manager.store.delete_one(POST_SUBMISSIONS, {"id": submission_id})
                logger.info("Submission %s approved as post %s", submission_id, stored["slug"])
                return SubmissionOutcome.APPROVED, stored

            changes["updatedAt"] = to_iso(utcnow())
            updated = await db_manager.store.update_one(POST_SUBMISSIONS, {"id": submission_id}, changes)

        if changes.get("status") == SubmissionStatus.REJECTED.value:
            return SubmissionOutcome.REJECTED, updated
        return SubmissionOutcome.UPDATED, updated

    async def delete_submission(self, submission_id: str, actor: Identity) -> Dict[str, Any]:
        submission = await db_manager.store.find_one(POST_SUBMISSIONS, {"id": submission_id})
        if not submission:
            raise NotFound("Submission not found")
        if actor.role == Role.AUTHOR.value and submission.get("submittedBy") != actor.username:
            raise Forbidden("You can only delete your own submissions")
        await db_manager.store.delete_one(POST_SUBMISSIONS, {"id": submission_id})
        return submission


moderation_service = ModerationService()

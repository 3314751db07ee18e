"""
# Post Submission Routes

Authors submit drafts; editors and admins review them.

- `POST /postSubmissions` (author)
- `GET /postSubmissions`, `GET /postSubmissions/{id}` (author: own only; editor, admin: all)
- `PUT /postSubmissions/{id}`: edit, or set `status` to `approved`/`rejected` (editor, admin)
- `DELETE /postSubmissions/{id}` (author: own only; editor, admin)

Approval publishes the draft as a post and removes the submission; the
response then carries the new post.
"""

from fastapi import APIRouter, Depends, status

from wrytix.models.cms_models import CreateSubmissionRequest, UpdateSubmissionRequest
from wrytix.routes.dependencies import Caller, require_author, require_contributor
from wrytix.services.moderation_service import SubmissionOutcome, moderation_service

router = APIRouter(prefix="/postSubmissions", tags=["Post Submissions"])

OUTCOME_ACTIONS = {
    SubmissionOutcome.APPROVED: "post-approved",
    SubmissionOutcome.REJECTED: "post-rejected",
    SubmissionOutcome.UPDATED: "submission-updated",
}


@router.post("", status_code=status.HTTP_201_CREATED)
async def submit_post(body: CreateSubmissionRequest, caller: Caller = Depends(require_author)):
    async with caller.on_failure("post-submit-failed", body.slug):
        submission = await moderation_service.submit_post(body, caller.identity)
    await caller.log("post-submitted", submission["slug"], title=submission["title"])
    return {"message": "Post submitted for approval", "post": submission}


@router.get("")
async def list_submissions(caller: Caller = Depends(require_contributor)):
    return await moderation_service.list_submissions(caller.identity)


@router.get("/{submission_id}")
async def get_submission(submission_id: str, caller: Caller = Depends(require_contributor)):
    return await moderation_service.get_submission(submission_id, caller.identity)


@router.put("/{submission_id}")
async def update_submission(
    submission_id: str, body: UpdateSubmissionRequest, caller: Caller = Depends(require_contributor)
):
    async with caller.on_failure("submission-update-failed", submission_id):
        outcome, document = await moderation_service.update_submission(submission_id, body, caller.identity)

    await caller.log(OUTCOME_ACTIONS[outcome], document.get("slug"), title=document.get("title"))
    if outcome is SubmissionOutcome.APPROVED:
        return {"message": "Submission approved and published", "post": document}
    return {"message": "Submission updated", "submission": document}


@router.delete("/{submission_id}")
async def delete_submission(submission_id: str, caller: Caller = Depends(require_contributor)):
    async with caller.on_failure("submission-delete-failed", submission_id):
        submission = await moderation_service.delete_submission(submission_id, caller.identity)
    await caller.log("submission-deleted", submission.get("slug"), title=submission.get("title"))
    return {"message": "Submission deleted", "submission": submission}

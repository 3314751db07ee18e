"""Public comment threads: `GET /comments?slug=` and `POST /comments`."""

from typing import Optional

from fastapi import APIRouter, Depends, status

from wrytix.models.cms_models import CommentRequest
from wrytix.routes.dependencies import Caller, get_caller
from wrytix.services.comment_service import comment_service

router = APIRouter(prefix="/comments", tags=["Comments"])


@router.get("")
async def get_comments(slug: Optional[str] = None):
    return await comment_service.get_comments(slug)


@router.post("", status_code=status.HTTP_201_CREATED)
async def add_comment(body: CommentRequest, caller: Caller = Depends(get_caller)):
    async with caller.on_failure("comment-add-failed", body.slug):
        entry = await comment_service.add_comment(body)
    await caller.log("comment-added", body.slug, username=entry["username"])
    return {"message": "Comment added", "comment": entry}

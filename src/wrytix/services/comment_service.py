"""Per-post comment threads: one `{slug, comments: [...]}` document per post, append-only."""

from typing import Any, Dict, List, Optional

from wrytix.database import db_manager
from wrytix.database.store import COMMENTS
from wrytix.errors import ValidationError
from wrytix.models.cms_models import CommentRequest
from wrytix.utils.time_utils import parse_optional_datetime, to_iso, utcnow


class CommentService:
    async def get_comments(self, slug: Optional[str]) -> List[Dict[str, Any]]:
        if not slug:
            raise ValidationError("Missing slug")
        thread = await db_manager.store.find_one(COMMENTS, {"slug": slug})
        return thread.get("comments", []) if thread else []

    async def add_comment(self, body: CommentRequest) -> Dict[str, Any]:
        if not body.slug or not body.username or not body.comment:
            raise ValidationError("Missing fields")
        timestamp = parse_optional_datetime(body.timestamp, "timestamp") or utcnow()
        entry = {
            "username": body.username,
            "comment": body.comment,
            "timestamp": to_iso(timestamp),
        }
        await db_manager.store.append_to_list(COMMENTS, {"slug": body.slug}, "comments", entry)
        return entry


comment_service = CommentService()

"""
# Post Service

Published content. A post's `isPublished` flag is derived from its `schedule`
(falling back to `createdAt`) and recomputed on every read, so a post
scheduled for the future appears on its own once the time passes.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from wrytix.database import db_manager
from wrytix.database.store import POSTS
from wrytix.errors import Conflict, NotFound, ValidationError
from wrytix.managers.logging_manager import get_logger
from wrytix.models.cms_models import CreatePostRequest, UpdatePostRequest
from wrytix.utils.time_utils import parse_datetime, parse_optional_datetime, to_iso, utcnow

logger = get_logger(prefix="[PostService]")


def is_published(post: Dict[str, Any], now: Optional[datetime] = None) -> bool:
    """True when the post's schedule (or creation time) is not in the future."""
    value = post.get("schedule") or post.get("createdAt")
    if not value:
        return False
    try:
        return parse_datetime(value) <= (now or utcnow())
    except ValidationError:
        return False


def with_publish_state(post: Dict[str, Any], now: Optional[datetime] = None) -> Dict[str, Any]:
    post["isPublished"] = is_published(post, now)
    return post


def build_post(fields: Dict[str, Any], now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Build a new post document from client or submission fields.

    `schedule` defaults to `now`; an unparseable schedule raises
    `ValidationError`.
    """
    now = now or utcnow()
    schedule = parse_optional_datetime(fields.get("schedule"), "schedule") or now
    post = {
        "id": uuid.uuid4().hex,
        "slug": fields["slug"],
        "title": fields.get("title", ""),
        "author": fields.get("author"),
        "category": fields.get("category"),
        "thumbnail": fields.get("thumbnail"),
        "content": fields.get("content", ""),
        "source": fields.get("source"),
        "featured": bool(fields.get("featured", False)),
        "schedule": to_iso(schedule),
        "createdAt": to_iso(now),
        "views": 0,
        "lastViewed": None,
    }
    return with_publish_state(post, now)


class PostService:
    async def list_published(self) -> List[Dict[str, Any]]:
        now = utcnow()
        posts = [with_publish_state(post, now) for post in await db_manager.store.find(POSTS)]
        return [post for post in posts if post["isPublished"]]

    async def list_all(self) -> List[Dict[str, Any]]:
        now = utcnow()
        return [with_publish_state(post, now) for post in await db_manager.store.find(POSTS)]

    async def get_post(self, slug: str) -> Dict[str, Any]:
        post = await db_manager.store.find_one(POSTS, {"slug": slug})
        if not post:
            raise NotFound("Post not found")
        return with_publish_state(post)

    async def create_post(self, body: CreatePostRequest, actor: Optional[str] = None) -> Dict[str, Any]:
        """
        Raises:
            Conflict: A post already uses the slug.
            ValidationError: The schedule can not be parsed.
        """
        fields = body.to_document()
        fields["slug"] = body.slug
        fields.setdefault("author", actor)
        post = build_post(fields)

        async with db_manager.store.transaction():
            if await db_manager.store.find_one(POSTS, {"slug": post["slug"]}):
                raise Conflict("A post with this slug already exists")
            stored = await db_manager.store.insert_one(POSTS, post)

        logger.info("Post %s created by %s", stored["slug"], actor)
        return stored

    async def update_post(self, slug: str, body: UpdatePostRequest) -> Dict[str, Any]:
        changes = body.to_document()
        if "schedule" in changes:
            schedule = parse_optional_datetime(changes["schedule"], "schedule")
            if schedule is None:
                changes.pop("schedule")
            else:
                changes["schedule"] = to_iso(schedule)
        changes["updatedAt"] = to_iso(utcnow())

        updated = await db_manager.store.update_one(POSTS, {"slug": slug}, changes)
        if updated is None:
            raise NotFound("Post not found")
        return with_publish_state(updated)

    async def delete_post(self, slug: str) -> Dict[str, Any]:
        removed = await db_manager.store.delete_one(POSTS, {"slug": slug})
        if removed is None:
            raise NotFound("Post not found")
        return removed

    async def record_view(self, slug: str) -> Dict[str, Any]:
        """Atomically increment `views` and stamp `lastViewed`."""
        post = await db_manager.store.increment(
            POSTS, {"slug": slug}, "views", 1, changes={"lastViewed": to_iso(utcnow())}
        )
        if post is None:
            raise NotFound("Post not found")
        return with_publish_state(post)


post_service = PostService()

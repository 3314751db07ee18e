"""
# System Routes

Banner, liveness/health probes, the site headline and a publish-time debug
view.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from wrytix.database import db_manager
from wrytix.database.store import POSTS
from wrytix.models.cms_models import HeadlineUpdateRequest
from wrytix.routes.dependencies import Caller, get_caller, require_editor_or_admin
from wrytix.services.headline_service import headline_state
from wrytix.services.post_service import is_published
from wrytix.utils.time_utils import to_iso, utcnow

router = APIRouter(tags=["System"])


@router.get("/")
async def root():
    return {"message": "Wrytix backend is running"}


@router.get("/ping")
async def ping(caller: Caller = Depends(get_caller)):
    await caller.log("ping", "server")
    return {"message": "pong", "time": to_iso(utcnow())}


@router.get("/health")
async def health():
    healthy = await db_manager.health_check()
    body = {"status": "healthy" if healthy else "unhealthy", "database": healthy}
    return JSONResponse(status_code=200 if healthy else 503, content=body)


@router.get("/debug/timecheck")
async def timecheck():
    now = utcnow()
    posts = await db_manager.store.find(POSTS, limit=None)
    sample = posts[0] if posts else None
    return {
        "serverTime": to_iso(now),
        "serverTimestamp": int(now.timestamp() * 1000),
        "postsCount": len(posts),
        "samplePost": (
            {
                "slug": sample.get("slug"),
                "schedule": sample.get("schedule"),
                "isPublished": is_published(sample, now),
            }
            if sample
            else None
        ),
    }


@router.get("/headline")
async def get_headline():
    return {"text": headline_state.text}


@router.put("/headline")
async def update_headline(body: HeadlineUpdateRequest, caller: Caller = Depends(require_editor_or_admin)):
    async with caller.on_failure("update-headline-failed", "invalid input"):
        text = await headline_state.update(body.text)
    await caller.log("update-headline", text)
    return {"message": "Headline updated successfully", "text": text}

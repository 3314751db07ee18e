"""
# Post Routes

| Method | Path                 | Access         |
|--------|----------------------|----------------|
| GET    | `/posts`             | public (published only) |
| GET    | `/posts/all`         | admin, editor  |
| GET    | `/posts/{slug}`      | public         |
| POST   | `/posts/{slug}/view` | public         |
| POST   | `/posts`             | admin, editor  |
| PUT    | `/posts/{slug}`      | admin, editor  |
| DELETE | `/posts/{slug}`      | admin, editor  |
"""

from fastapi import APIRouter, Depends, status

from wrytix.models.cms_models import CreatePostRequest, UpdatePostRequest
from wrytix.routes.dependencies import Caller, require_editor_or_admin
from wrytix.services.post_service import post_service

router = APIRouter(prefix="/posts", tags=["Posts"])


@router.get("")
async def list_published_posts():
    return await post_service.list_published()


# Declared before /{slug} so "all" is not taken as a slug
@router.get("/all")
async def list_all_posts(caller: Caller = Depends(require_editor_or_admin)):
    return await post_service.list_all()


@router.get("/{slug}")
async def get_post(slug: str):
    return await post_service.get_post(slug)


@router.post("/{slug}/view")
async def record_view(slug: str):
    post = await post_service.record_view(slug)
    return {"views": post["views"], "lastViewed": post["lastViewed"]}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_post(body: CreatePostRequest, caller: Caller = Depends(require_editor_or_admin)):
    async with caller.on_failure("post-create-failed", body.slug):
        post = await post_service.create_post(body, caller.actor)
    await caller.log("post-created", post["slug"], title=post["title"], scheduled=post["schedule"])
    return {"message": "Post created", "post": post}


@router.put("/{slug}")
async def update_post(slug: str, body: UpdatePostRequest, caller: Caller = Depends(require_editor_or_admin)):
    async with caller.on_failure("post-update-failed", slug):
        post = await post_service.update_post(slug, body)
    await caller.log("post-updated", slug, changes=sorted(body.to_document()))
    return {"message": "Post updated", "post": post}


@router.delete("/{slug}")
async def delete_post(slug: str, caller: Caller = Depends(require_editor_or_admin)):
    async with caller.on_failure("post-delete-failed", slug):
        post = await post_service.delete_post(slug)
    await caller.log("post-deleted", slug, title=post.get("title"))
    return {"message": "Deleted", "post": post}

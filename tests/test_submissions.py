"""
Tests for the post submission review workflow.
"""
from datetime import timedelta

import pytest

from wrytix.database import db_manager
from wrytix.database.store import POST_SUBMISSIONS, POSTS
from wrytix.services.audit_service import audit_service
from wrytix.utils.time_utils import to_iso, utcnow


async def submit(author, slug="a-1", **extra):
    payload = {"title": "First", "slug": slug, "content": "Body", **extra}
    return await author.post("/postSubmissions", json=payload)


@pytest.mark.asyncio
async def test_submit_creates_pending_submission(login_as):
    author = await login_as("author")

    response = await submit(author)

    assert response.status_code == 201
    submission = response.json()["post"]
    assert submission["status"] == "pending"
    assert submission["submittedBy"] == author.user["username"]
    assert submission["editorComments"] == ""
    assert len(await audit_service.list_logs(action="post-submitted")) == 1


@pytest.mark.asyncio
async def test_submit_rejects_duplicate_slug(login_as):
    author = await login_as("author")
    editor = await login_as("editor")
    await submit(author, slug="taken")
    await editor.post("/posts", json={"title": "Live", "slug": "live"})

    assert (await submit(author, slug="taken")).status_code == 409
    assert (await submit(author, slug="live")).status_code == 409


@pytest.mark.asyncio
async def test_submit_requires_title_and_slug(login_as):
    author = await login_as("author")

    response = await author.post("/postSubmissions", json={"content": "no title"})

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_approval_publishes_post_and_removes_submission(login_as):
    """A draft scheduled yesterday is live as soon as it is approved."""
    author = await login_as("author")
    editor = await login_as("editor")
    yesterday = to_iso(utcnow() - timedelta(days=1))
    submission_id = (await submit(author, schedule=yesterday)).json()["post"]["id"]

    response = await editor.put(f"/postSubmissions/{submission_id}", json={"status": "approved"})

    assert response.status_code == 200
    post = (await author.get("/posts/a-1")).json()
    assert post["isPublished"] is True
    assert post["author"] == author.user["username"]
    assert (await editor.get(f"/postSubmissions/{submission_id}")).status_code == 404
    assert len(await audit_service.list_logs(action="post-approved")) == 1


@pytest.mark.asyncio
async def test_approval_of_future_schedule_is_unpublished(login_as):
    author = await login_as("author")
    editor = await login_as("editor")
    tomorrow = to_iso(utcnow() + timedelta(days=1))
    submission_id = (await submit(author, schedule=tomorrow)).json()["post"]["id"]

    response = await editor.put(f"/postSubmissions/{submission_id}", json={"status": "approved"})

    assert response.json()["post"]["isPublished"] is False
    assert [post["slug"] for post in (await author.get("/posts")).json()] == []
    assert [post["slug"] for post in (await editor.get("/posts/all")).json()] == ["a-1"]


@pytest.mark.asyncio
async def test_approval_conflict_keeps_submission(login_as, store):
    author = await login_as("author")
    editor = await login_as("editor")
    submission_id = (await submit(author)).json()["post"]["id"]
    await store.insert_one(POSTS, {"id": "p1", "slug": "a-1", "title": "Squatter"})

    response = await editor.put(f"/postSubmissions/{submission_id}", json={"status": "approved"})

    assert response.status_code == 409
    assert await store.find_one(POST_SUBMISSIONS, {"id": submission_id}) is not None
    assert await audit_service.list_logs(action="post-approved") == []


@pytest.mark.asyncio
async def test_rejection_is_terminal(login_as):
    author = await login_as("author")
    editor = await login_as("editor")
    submission_id = (await submit(author)).json()["post"]["id"]

    response = await editor.put(
        f"/postSubmissions/{submission_id}", json={"status": "rejected", "editorComments": "Needs sources"}
    )

    assert response.status_code == 200
    stored = await db_manager.store.find_one(POST_SUBMISSIONS, {"id": submission_id})
    assert stored["status"] == "rejected"
    assert stored["editorComments"] == "Needs sources"
    assert await db_manager.store.count(POSTS) == 0
    assert len(await audit_service.list_logs(action="post-rejected")) == 1

    again = await editor.put(f"/postSubmissions/{submission_id}", json={"status": "approved"})
    assert again.status_code == 409


@pytest.mark.asyncio
async def test_author_edits_own_content_only(login_as):
    author = await login_as("author")
    other = await login_as("author")
    submission_id = (await submit(author)).json()["post"]["id"]

    edited = await author.put(f"/postSubmissions/{submission_id}", json={"title": "Better"})
    self_approve = await author.put(f"/postSubmissions/{submission_id}", json={"status": "approved"})
    foreign = await other.put(f"/postSubmissions/{submission_id}", json={"title": "Mine now"})

    assert edited.status_code == 200
    assert edited.json()["submission"]["title"] == "Better"
    assert self_approve.status_code == 403
    assert foreign.status_code == 403
    assert len(await audit_service.list_logs(action="submission-updated")) == 1


@pytest.mark.asyncio
async def test_authors_see_only_their_submissions(login_as):
    author = await login_as("author")
    other = await login_as("author")
    editor = await login_as("editor")
    mine = (await submit(author, slug="mine")).json()["post"]["id"]
    await submit(other, slug="theirs")

    assert [s["slug"] for s in (await author.get("/postSubmissions")).json()] == ["mine"]
    assert len((await editor.get("/postSubmissions")).json()) == 2
    assert (await other.get(f"/postSubmissions/{mine}")).status_code == 403


@pytest.mark.asyncio
async def test_delete_submission_ownership(login_as):
    author = await login_as("author")
    other = await login_as("author")
    editor = await login_as("editor")
    first = (await submit(author, slug="one")).json()["post"]["id"]
    second = (await submit(author, slug="two")).json()["post"]["id"]

    assert (await other.delete(f"/postSubmissions/{first}")).status_code == 403
    assert (await author.delete(f"/postSubmissions/{first}")).status_code == 200
    assert (await editor.delete(f"/postSubmissions/{second}")).status_code == 200
    assert (await editor.delete(f"/postSubmissions/{second}")).status_code == 404
    assert len(await audit_service.list_logs(action="submission-deleted")) == 2

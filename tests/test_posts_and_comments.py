"""
Tests for posts, view counting and comment threads.
"""
from datetime import timedelta

import pytest

from wrytix.database.store import POSTS
from wrytix.services.audit_service import audit_service
from wrytix.services.post_service import is_published
from wrytix.utils.time_utils import to_iso, utcnow


@pytest.mark.asyncio
async def test_create_post_defaults_schedule_to_now(login_as):
    editor = await login_as("editor")

    response = await editor.post("/posts", json={"title": "Hello", "slug": "Hello-World"})

    assert response.status_code == 201
    post = response.json()["post"]
    assert post["slug"] == "hello-world"
    assert post["isPublished"] is True
    assert post["author"] == editor.user["username"]
    assert post["views"] == 0
    assert len(await audit_service.list_logs(action="post-created")) == 1


@pytest.mark.asyncio
async def test_create_post_validation(login_as):
    editor = await login_as("editor")
    await editor.post("/posts", json={"title": "Hello", "slug": "hello"})

    duplicate = await editor.post("/posts", json={"title": "Again", "slug": "hello"})
    bad_date = await editor.post("/posts", json={"title": "Later", "slug": "later", "schedule": "next tuesday"})

    assert duplicate.status_code == 409
    assert bad_date.status_code == 400
    assert bad_date.json() == {"error": "Invalid schedule format"}
    assert len(await audit_service.list_logs(action="post-create-failed")) == 2


@pytest.mark.asyncio
async def test_publish_state_is_recomputed_on_read(client, store):
    """A stale stored flag never wins over the schedule."""
    past = to_iso(utcnow() - timedelta(minutes=1))
    future = to_iso(utcnow() + timedelta(days=1))
    await store.insert_one(POSTS, {"id": "1", "slug": "due", "schedule": past, "isPublished": False})
    await store.insert_one(POSTS, {"id": "2", "slug": "later", "schedule": future, "isPublished": True})

    published = (await client.get("/posts")).json()

    assert [post["slug"] for post in published] == ["due"]
    assert (await client.get("/posts/later")).json()["isPublished"] is False


def test_is_published_falls_back_to_created_at():
    now = utcnow()

    assert is_published({"createdAt": to_iso(now - timedelta(hours=1))}, now)
    assert not is_published({"schedule": "garbage"}, now)
    assert not is_published({}, now)


@pytest.mark.asyncio
async def test_update_and_delete_post(login_as):
    editor = await login_as("editor")
    await editor.post("/posts", json={"title": "Hello", "slug": "hello"})
    tomorrow = to_iso(utcnow() + timedelta(days=1))

    updated = await editor.put("/posts/hello", json={"title": "Hi", "schedule": tomorrow})
    deleted = await editor.delete("/posts/hello")

    assert updated.json()["post"]["title"] == "Hi"
    assert updated.json()["post"]["isPublished"] is False
    assert deleted.status_code == 200
    assert (await editor.get("/posts/hello")).status_code == 404
    assert (await editor.put("/posts/hello", json={"title": "x"})).status_code == 404
    assert len(await audit_service.list_logs(action="post-update-failed")) == 1


@pytest.mark.asyncio
async def test_view_counter(client, login_as):
    editor = await login_as("editor")
    await editor.post("/posts", json={"title": "Hello", "slug": "hello"})

    await client.post("/posts/hello/view")
    response = await client.post("/posts/hello/view")

    assert response.json()["views"] == 2
    assert response.json()["lastViewed"]
    assert (await client.post("/posts/missing/view")).status_code == 404


@pytest.mark.asyncio
async def test_comments_are_appended_per_slug(client):
    await client.post("/comments", json={"slug": "hello", "username": "ann", "comment": "First!"})
    await client.post(
        "/comments",
        json={"slug": "hello", "username": "bob", "comment": "Second", "timestamp": "2024-05-01T10:00:00Z"},
    )
    await client.post("/comments", json={"slug": "other", "username": "cy", "comment": "Elsewhere"})

    thread = (await client.get("/comments", params={"slug": "hello"})).json()

    assert [entry["username"] for entry in thread] == ["ann", "bob"]
    assert thread[1]["timestamp"] == "2024-05-01T10:00:00.000Z"
    assert (await client.get("/comments", params={"slug": "empty"})).json() == []


@pytest.mark.asyncio
async def test_comment_validation(client):
    assert (await client.get("/comments")).status_code == 400
    response = await client.post("/comments", json={"slug": "hello", "username": "ann"})

    assert response.status_code == 400
    assert response.json() == {"error": "Missing fields"}

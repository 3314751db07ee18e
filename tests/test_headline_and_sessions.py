"""
Tests for login sessions and the site headline.
"""
from datetime import timedelta

import pytest

from wrytix.config import settings
from wrytix.database import db_manager
from wrytix.database.store import SESSIONS
from wrytix.services.audit_service import audit_service
from wrytix.services.session_service import session_service
from wrytix.utils.time_utils import to_iso, utcnow

from conftest import PASSWORD, create_user


@pytest.mark.asyncio
async def test_login_sets_session_cookie(client):
    await create_user("alice", "editor")

    response = await client.post("/login", json={"username": "alice", "password": PASSWORD})

    assert response.status_code == 200
    assert response.json()["user"]["role"] == "editor"
    assert settings.SESSION_COOKIE_NAME in response.cookies
    set_cookie = response.headers["set-cookie"].lower()
    assert "httponly" in set_cookie
    assert "samesite=lax" in set_cookie
    logs = await audit_service.list_logs(action="login")
    assert [log["actor"] for log in logs if log["action"] == "login"] == ["alice"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "username,password,status",
    [("alice", "wrong", "active"), ("nobody", PASSWORD, "active"), ("alice", PASSWORD, "suspended")],
)
async def test_login_failures(client, username, password, status):
    await create_user("alice", "editor", status=status)

    response = await client.post("/login", json={"username": username, "password": password})

    assert response.status_code == 401
    assert settings.SESSION_COOKIE_NAME not in response.cookies
    failures = await audit_service.list_logs(action="login-failed")
    assert failures[0]["target"] == username


@pytest.mark.asyncio
async def test_verify_session_and_logout(client):
    await create_user("alice", "author")
    token = (await client.post("/login", json={"username": "alice", "password": PASSWORD})).cookies[
        settings.SESSION_COOKIE_NAME
    ]
    client.cookies.set(settings.SESSION_COOKIE_NAME, token)

    verified = await client.get("/verify-session")
    logged_out = await client.post("/logout")
    client.cookies.set(settings.SESSION_COOKIE_NAME, token)
    after = await client.get("/verify-session")

    assert verified.json() == {"user": {"id": verified.json()["user"]["id"], "username": "alice", "role": "author"}}
    assert logged_out.status_code == 200
    assert after.status_code == 401
    assert await db_manager.store.count(SESSIONS) == 0
    assert len(await audit_service.list_logs(action="logout")) == 1


@pytest.mark.asyncio
async def test_expired_session_is_rejected_and_removed(client, store):
    await store.insert_one(
        SESSIONS,
        {
            "token": "stale",
            "userId": "u1",
            "username": "alice",
            "role": "admin",
            "expiresAt": to_iso(utcnow() - timedelta(minutes=1)),
        },
    )
    client.cookies.set(settings.SESSION_COOKIE_NAME, "stale")

    response = await client.get("/verify-session")

    assert response.status_code == 401
    assert await store.find_one(SESSIONS, {"token": "stale"}) is None


@pytest.mark.asyncio
async def test_purge_expired_keeps_live_sessions(store):
    await create_user("alice", "viewer")
    await session_service.login("alice", PASSWORD)
    await store.insert_one(SESSIONS, {"token": "old", "expiresAt": to_iso(utcnow() - timedelta(hours=1))})
    await store.insert_one(SESSIONS, {"token": "broken", "expiresAt": "never"})

    assert await session_service.purge_expired() == 2
    assert await store.count(SESSIONS) == 1


@pytest.mark.asyncio
async def test_role_change_revokes_sessions(login_as):
    admin = await login_as("admin")
    author = await login_as("author")

    await admin.put(f"/users/{author.user['id']}", json={"role": "editor"})

    assert (await author.get("/verify-session")).status_code == 401


@pytest.mark.asyncio
async def test_headline_read_and_update(client, login_as):
    editor = await login_as("editor")

    assert (await client.get("/headline")).json() == {"text": settings.DEFAULT_HEADLINE}

    response = await editor.put("/headline", json={"text": "  Breaking news  "})

    assert response.json()["text"] == "Breaking news"
    assert (await client.get("/headline")).json() == {"text": "Breaking news"}
    logs = await audit_service.list_logs(action="update-headline")
    assert logs[0]["target"] == "Breaking news"


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [{"text": "   "}, {}, {"text": None}])
async def test_headline_rejects_blank_text(login_as, payload):
    editor = await login_as("editor")

    response = await editor.put("/headline", json=payload)

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid headline text"}
    failures = await audit_service.list_logs(action="update-headline-failed")
    assert failures[0]["target"] == "invalid input"


@pytest.mark.asyncio
async def test_headline_update_needs_editor_or_admin(client, login_as):
    author = await login_as("author")

    assert (await client.put("/headline", json={"text": "x"})).status_code == 401
    assert (await author.put("/headline", json={"text": "x"})).status_code == 403

"""
Shared fixtures: a flat-file store in a temp directory, the ASGI app behind an
httpx client, and helpers that create users with live sessions.
"""

import os

# Cheap hashes and no global Prometheus registry for the test run
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("METRICS_ENABLED", "false")

import uuid

import httpx
import pytest

from wrytix.config import settings
from wrytix.database import db_manager
from wrytix.database.json_store import JsonFileStore
from wrytix.database.store import USERS
from wrytix.main import app
from wrytix.services.headline_service import headline_state
from wrytix.services.session_service import hash_password, session_service

PASSWORD = "correct-horse"


@pytest.fixture
async def store(tmp_path):
    json_store = JsonFileStore(str(tmp_path))
    db_manager.use_store(json_store)
    yield json_store
    await db_manager.disconnect()


@pytest.fixture(autouse=True)
def reset_headline():
    headline_state.reset()
    yield
    headline_state.reset()


def _client() -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://testserver")


@pytest.fixture
async def client(store):
    async with _client() as anonymous:
        yield anonymous


async def create_user(username: str, role: str, status: str = "active", email: str = None) -> dict:
    user = {
        "id": uuid.uuid4().hex,
        "username": username,
        "email": email or f"{username}@example.com",
        "password": hash_password(PASSWORD),
        "role": role,
        "status": status,
    }
    return await db_manager.store.insert_one(USERS, user)


@pytest.fixture
async def login_as(store):
    """Factory: create a user with `role` and return a client carrying its session cookie."""
    clients = []

    async def factory(role: str, username: str = None) -> httpx.AsyncClient:
        user = await create_user(username or f"{role}-{uuid.uuid4().hex[:6]}", role)
        token, _ = await session_service.login(user["username"], PASSWORD)
        logged_in = _client()
        logged_in.cookies.set(settings.SESSION_COOKIE_NAME, token)
        logged_in.user = user
        clients.append(logged_in)
        return logged_in

    yield factory

    for logged_in in clients:
        await logged_in.aclose()

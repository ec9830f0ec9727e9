"""
tests/conftest.py -- Shared test fixtures for TaskGate.

This module provides:
  - make_stores(): isolated in-memory DBs for users + tasks
  - _patch_lifespan(): wires test stores and a fresh RevocationRegistry into
    app.state, bypassing real startup
  - client: TestClient over the real app, fresh state per test
  - register_user(): helper that registers through the API and returns (user, token)

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs sync route handlers in a thread pool. Plain :memory:
DBs are per-connection and would present a blank schema to each worker
thread. Each fixture instance gets a unique name so tests never share rows.

Environment must be set before any app import: get_settings() is cached on
first use, and AUTH_RATE_LIMIT must be generous for every other test.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager
from types import SimpleNamespace

# CRITICAL: set before any api/auth/core import.
os.environ.setdefault("JWT_SECRET", "test-secret-key-that-is-long-enough-for-hs256")
os.environ.setdefault("AUTH_RATE_LIMIT", "10000/minute")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.revocation import RevocationRegistry
from auth.store import UserStore
from tasks.store import TaskStore

# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def _memory_url(prefix: str) -> str:
    return f"sqlite:///file:{prefix}_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true"


def make_stores() -> tuple[UserStore, TaskStore]:
    """Create isolated named shared-memory SQLite stores for one test."""
    return UserStore(db_url=_memory_url("test_users")), TaskStore(db_url=_memory_url("test_tasks"))


def _patch_lifespan(state: SimpleNamespace):
    """Return an async context manager that replaces the real lifespan."""

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = state.user_store
        app.state.task_store = state.task_store
        app.state.revocations = state.revocations
        yield

    return test_lifespan


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def user_store() -> Generator[UserStore, None, None]:
    store = UserStore(db_url=_memory_url("unit_users"))
    yield store
    store.close()


@pytest.fixture
def state() -> Generator[SimpleNamespace, None, None]:
    """The objects the app reads from app.state, fresh for every test."""
    user_store, task_store = make_stores()
    ns = SimpleNamespace(user_store=user_store, task_store=task_store, revocations=RevocationRegistry())
    yield ns
    user_store.close()
    task_store.close()


@pytest.fixture
def client(state: SimpleNamespace) -> Generator[TestClient, None, None]:
    """TestClient over the real app with isolated stores and an empty revocation registry.

    The client's cookie jar is NOT relied on: tests pass the token they
    mean explicitly so cookie-vs-header precedence stays under their control.
    """
    app.router.lifespan_context = _patch_lifespan(state)
    with TestClient(app, raise_server_exceptions=True) as c:
        yield c


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def register_user(
    client: TestClient,
    username: str = "alice",
    email: str | None = None,
    password: str = "secret1",
) -> tuple[dict, str]:
    """Register through the API and return (user body, token).

    Clears the cookie the response set so later requests only carry what the
    test passes explicitly.
    """
    resp = client.post(
        "/api/users/register",
        json={"username": username, "email": email or f"{username}@x.com", "password": password},
    )
    assert resp.status_code == 201, resp.text
    client.cookies.clear()
    data = resp.json()
    return data["user"], data["token"]


def login_user(client: TestClient, username: str = "alice", password: str = "secret1") -> str:
    resp = client.post("/api/users/login", json={"username": username, "password": password})
    assert resp.status_code == 200, resp.text
    client.cookies.clear()
    return resp.json()["token"]


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}

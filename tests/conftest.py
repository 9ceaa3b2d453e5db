"""
tests/conftest.py -- Shared test fixtures for identity service tests.

This module provides:
  - settings / hasher / issuer / store / identity: unit-level components with
    an in-memory SQLite store and bcrypt rounds lowered to 4
  - _patch_lifespan(): wires a test Identity into app.state, bypassing real startup
  - api: TestClient plus a registered user and a valid bearer token

Design: Named shared-memory SQLite URIs (not plain :memory:) are used for the
API client because TestClient runs sync route handlers in a thread pool.
Plain :memory: DBs are per-connection and would present a blank schema to
each worker thread.

DEBUG and BCRYPT_ROUNDS must be set before any core/auth import so
get_settings() auto-generates SECRET_KEY and hashing stays fast.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager
from dataclasses import dataclass

# CRITICAL: Set env before any core/auth import so get_settings() can
# auto-generate SECRET_KEY in dev mode instead of raising ValueError.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.hashing import CredentialHasher
from auth.models import User
from auth.store import UserStore
from auth.tokens import TokenIssuer
from auth.wiring import Identity, build_identity
from core.config import Settings, get_settings

TEST_EMAIL = "testuser@example.com"
TEST_PASSWORD = "testpass123"


# ---------------------------------------------------------------------------
# Unit-level fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def settings() -> Settings:
    return get_settings()


@pytest.fixture(scope="session")
def hasher() -> CredentialHasher:
    return CredentialHasher(rounds=4)


@pytest.fixture
def issuer(settings: Settings) -> TokenIssuer:
    return TokenIssuer(secret_key=settings.secret_key, ttl_seconds=3600)


@pytest.fixture
def store() -> Generator[UserStore, None, None]:
    s = UserStore("sqlite:///:memory:")
    yield s
    s.close()


@pytest.fixture
def identity(settings: Settings, store: UserStore) -> Identity:
    return build_identity(settings, store=store)


def _make_user(email: str = "a@x.com", **overrides) -> User:
    fields = {
        "id": str(uuid.uuid4()),
        "email": email,
        "first_name": "A",
        "last_name": "B",
        "password_hash": "$2b$04$notarealhashnotarealhashnotarealhashnotarealhash",
    }
    fields.update(overrides)
    return User(**fields)


@pytest.fixture
def make_user():
    """Factory for unsaved User records with a placeholder digest."""
    return _make_user


# ---------------------------------------------------------------------------
# API fixtures
# ---------------------------------------------------------------------------


def _patch_lifespan(identity: Identity):
    """Return an async context manager that replaces the real lifespan."""

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.identity = identity
        yield

    return test_lifespan


@dataclass
class ApiContext:
    client: TestClient
    identity: Identity
    user: User
    token: str

    @property
    def headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}


@pytest.fixture(scope="module")
def api() -> Generator[ApiContext, None, None]:
    """Yield an ApiContext for HTTP integration tests.

    The TestClient uses the real FastAPI app with a patched lifespan so tests
    hit real route handlers against an isolated in-memory store. One user is
    registered up front and a token issued for it.
    """
    db_url = f"sqlite:///file:test_identity_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true"
    identity = build_identity(get_settings(), store=UserStore(db_url))
    user = identity.directory.create(TEST_EMAIL, "Test", "User", TEST_PASSWORD)
    token = identity.issuer.issue(user.id)

    app.router.lifespan_context = _patch_lifespan(identity)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield ApiContext(client=client, identity=identity, user=user, token=token)

    identity.close()

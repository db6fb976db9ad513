"""
tests/conftest.py — Shared Test Fixtures
=========================================
"""

from __future__ import annotations

import os

# ---------------------------------------------------------------------------
# Ensure a valid JWT_SECRET is always set for test runs.
# This must happen before any import of bazaar.api.deps which validates
# the secret at module-load time.
# ---------------------------------------------------------------------------
_TEST_JWT_SECRET = "test-secret-for-pytest-only-" + "x" * 40  # > 32 chars
os.environ.setdefault("JWT_SECRET", _TEST_JWT_SECRET)

import pytest  # noqa: E402
from sqlalchemy import Engine, create_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from bazaar.database.engine import init_db  # noqa: E402
from bazaar.database.models import UserRole  # noqa: E402
from bazaar.database.store import DatasetStore  # noqa: E402
from bazaar.engine.records import Opportunity, UserProfile  # noqa: E402
from bazaar.services import directory_service  # noqa: E402


@pytest.fixture
def db_engine() -> Engine:
    """In-memory SQLite engine with the ``datasets`` table and empty seeds.

    StaticPool keeps one connection so every session (and the TestClient's
    worker threads) sees the same in-memory database.
    """
    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    return engine


@pytest.fixture
def store(db_engine: Engine) -> DatasetStore:
    return DatasetStore(db_engine)


@pytest.fixture
def people(store: DatasetStore) -> dict[str, UserProfile]:
    """Two volunteers, one organisation, one admin and one opportunity."""
    profiles = {
        "vol": UserProfile(id="vol-1", name="Vera Volunteer", role=UserRole.VOLUNTEER, email="vera@example.org"),
        "vol2": UserProfile(id="vol-2", name="Victor Volunteer", role=UserRole.VOLUNTEER),
        "org": UserProfile(id="org-1", name="Helping Hands", role=UserRole.ORGANIZATION),
        "admin": UserProfile(id="admin-1", name="Ada Admin", role=UserRole.ADMIN),
    }
    for profile in profiles.values():
        directory_service.upsert_user(store, profile)
    directory_service.upsert_opportunity(store, Opportunity(
        id="opp-1",
        title="Beach Cleanup",
        organization_id="org-1",
        organization_name="Helping Hands",
        points_awarded=25,
    ))
    return profiles


def make_token(sub: str) -> str:
    """Create a bearer token.  Usable as both a fixture helper and a factory."""
    from bazaar.api.deps import issue_token

    return issue_token(sub)


def auth(sub: str) -> dict:
    return {"Authorization": f"Bearer {make_token(sub)}"}


@pytest.fixture
def client(store: DatasetStore):
    """FastAPI TestClient whose store dependency points at the test database."""
    from fastapi.testclient import TestClient

    from bazaar.api.deps import get_config, get_store
    from bazaar.api.main import app
    from bazaar.config import DEFAULT_CONFIG

    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_config] = lambda: DEFAULT_CONFIG
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()

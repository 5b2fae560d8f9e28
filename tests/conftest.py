"""
tests/conftest.py — Shared Test Fixtures
=========================================
"""

from __future__ import annotations

import os

# ---------------------------------------------------------------------------
# Ensure a valid USERDATA_AUTH is always set for test runs.
# This must happen before any import of c2s_userdata.api.deps which
# validates the secret at module-load time.
# ---------------------------------------------------------------------------
TEST_SERVER_SECRET = "test-userdata-auth-for-pytest-only"
os.environ.setdefault("USERDATA_AUTH", TEST_SERVER_SECRET)

import pytest  # noqa: E402
from sqlalchemy import Engine, create_engine  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from c2s_userdata.config import UserDataConfig  # noqa: E402
from c2s_userdata.constants import RoleKey  # noqa: E402
from c2s_userdata.database.models import Base  # noqa: E402
from c2s_userdata.errors import NotificationError, RoleReconciliationError  # noqa: E402

DISCORD_ID = "123456789012345678"


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------
@pytest.fixture
def db_engine() -> Engine:
    """Create an in-memory SQLite engine with the user_data table.

    Uses StaticPool so all threads share the same in-memory database
    (required by ``asyncio.to_thread`` used in ``run_db``).
    """
    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture
def db_session(db_engine: Engine):
    """Provide a session for inspecting rows directly."""
    with Session(db_engine) as session:
        yield session


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------
ROLE_IDS: dict[RoleKey, int] = {key: 1000 + i for i, key in enumerate(RoleKey)}
STAFF_ROLE_ID = 9001


@pytest.fixture
def cfg() -> UserDataConfig:
    return UserDataConfig(
        guild_id=42,
        role_ids=dict(ROLE_IDS),
        persistent_role_ids=frozenset({STAFF_ROLE_ID}),
    )


# ---------------------------------------------------------------------------
# Discord stand-in
# ---------------------------------------------------------------------------
class FakeMembership:
    """In-memory stand-in for DiscordMembership.

    ``held`` maps Discord ID → role IDs.  Every role replacement and DM is
    recorded so tests can assert on them.
    """

    def __init__(self, held: dict[str, set[int]] | None = None) -> None:
        self.held: dict[str, set[int]] = held or {}
        self.replaced: list[tuple[str, set[int]]] = []
        self.sent: list[tuple[str, str]] = []
        self.fail_lookup = False
        self.fail_replace = False
        self.dms_closed = False

    async def fetch_role_ids(self, discord_id: str) -> set[int]:
        if self.fail_lookup:
            raise RoleReconciliationError(
                "failed retrieving member data "
                "(this usually occurs when you're not in the Discord server)"
            )
        return set(self.held.get(discord_id, set()))

    async def replace_roles(self, discord_id: str, role_ids) -> None:
        if self.fail_replace:
            raise RoleReconciliationError("failed at updating member roles: Missing Permissions")
        self.held[discord_id] = set(role_ids)
        self.replaced.append((discord_id, set(role_ids)))

    async def send_direct_message(self, discord_id: str, content: str) -> None:
        if self.dms_closed:
            raise NotificationError(f"could not DM {discord_id}: Cannot send messages to this user")
        self.sent.append((discord_id, content))


@pytest.fixture
def membership() -> FakeMembership:
    return FakeMembership()


# ---------------------------------------------------------------------------
# API client
# ---------------------------------------------------------------------------
@pytest.fixture
def client(db_engine, cfg, membership):
    """FastAPI TestClient wired to the SQLite engine and the fake Discord side.

    The lifespan is not entered, so no real database or Discord login is
    attempted.  Dependencies are looked up on the route modules so the
    overrides match what the routes captured at import.
    """
    from fastapi.testclient import TestClient

    from c2s_userdata.api import gateway
    from c2s_userdata.api.main import app
    from c2s_userdata.api.routes import userdata as userdata_routes

    app.dependency_overrides[userdata_routes.get_engine] = lambda: db_engine
    app.dependency_overrides[userdata_routes.get_config] = lambda: cfg
    app.dependency_overrides[userdata_routes.get_membership] = lambda: membership
    app.dependency_overrides[userdata_routes.get_log_webhook_url] = lambda: None
    app.dependency_overrides[gateway.get_server_secret] = lambda: TEST_SERVER_SECRET

    yield TestClient(app, raise_server_exceptions=False)

    app.dependency_overrides.clear()

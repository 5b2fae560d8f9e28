"""
c2s_userdata.api.deps — FastAPI dependency injection
=====================================================
"""

from __future__ import annotations

import os
import secrets
from functools import lru_cache

from fastapi import HTTPException, Request, status
from sqlalchemy import Engine

from c2s_userdata.config import UserDataConfig, load_config
from c2s_userdata.database.engine import create_db_engine
from c2s_userdata.errors import InvalidRequestError
from c2s_userdata.services.membership_service import DiscordMembership

_PLACEHOLDER_SECRETS = frozenset({
    "your-userdata-auth-here",
    "change-me",
    "secret",
    "",
})


def _load_server_secret() -> str:
    """Load and validate USERDATA_AUTH from the environment.

    Raises RuntimeError at import time if the secret is missing, blank, or
    still the ``.env.example`` placeholder.
    """
    secret = os.getenv("USERDATA_AUTH", "")
    if not secret.strip():
        raise RuntimeError(
            "USERDATA_AUTH environment variable is not set. "
            "It must match the Authorization header the game client sends."
        )
    if secret in _PLACEHOLDER_SECRETS:
        raise RuntimeError(
            f"USERDATA_AUTH is set to a placeholder value ('{secret}'). "
            "Please set the real shared secret."
        )
    return secret


USERDATA_AUTH: str = _load_server_secret()


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    return create_db_engine()


@lru_cache(maxsize=1)
def get_config() -> UserDataConfig:
    return load_config()


def get_server_secret() -> str:
    return USERDATA_AUTH


def get_log_webhook_url() -> str | None:
    return os.getenv("LOG_WEBHOOK_URL") or None


def get_membership(request: Request) -> DiscordMembership:
    """The Discord adapter logged in during app startup."""
    membership = getattr(request.app.state, "membership", None)
    if membership is None:
        raise HTTPException(status.HTTP_503_SERVICE_UNAVAILABLE, "Discord client not ready")
    return membership


def check_authorization(authorization: str | None, server_secret: str) -> None:
    """Raise 403 unless *authorization* is exactly the shared secret."""
    if not authorization or not secrets.compare_digest(
        authorization.encode("utf-8"), server_secret.encode("utf-8"),
    ):
        raise InvalidRequestError("Invalid Authorization header", status_code=status.HTTP_403_FORBIDDEN)


def require_player_id(player_id: str | None) -> str:
    if not player_id:
        raise InvalidRequestError("Missing playerId", status_code=status.HTTP_403_FORBIDDEN)
    return player_id

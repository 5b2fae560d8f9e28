"""
c2s_userdata.api.gateway — ``POST /userdata`` request validation
================================================================

Runs before any store access.  Checks happen in a fixed order because
the game client relies on the status codes:

1. body is a JSON object                → else 422
2. ``playerId`` query parameter present → else 403
3. ``Authorization`` is the secret      → else 403
4. ``playerToken`` present in the body  → else 403
5. field types / non-negative values    → else 422
6. at least one updatable field         → else 400

For step 6 booleans count whenever they are not ``null``; numbers only
count when non-zero.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from fastapi import Depends, Request, status
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from c2s_userdata.api.deps import check_authorization, get_server_secret, require_player_id
from c2s_userdata.constants import (
    BETA_DISTRIBUTION_CHANNEL,
    DISTRIBUTION_CHANNEL_HEADER,
    UPDATABLE_FIELDS,
)
from c2s_userdata.errors import InvalidRequestError

MISSING_FIELDS_MESSAGE = "The following are required: " + ", ".join(UPDATABLE_FIELDS)


# ---------------------------------------------------------------------------
# Pydantic schema
# ---------------------------------------------------------------------------
class ProgressPayload(BaseModel):
    """Body of ``POST /userdata``.  Unknown keys are ignored."""

    # Strict: booleans are not numbers and numbers are not booleans.
    # Non-finite floats are rejected.
    model_config = ConfigDict(populate_by_name=True, extra="ignore", allow_inf_nan=False)

    player_token: str = Field(alias="playerToken", min_length=1)
    beta_tester: bool | None = Field(default=None, alias="betaTester", strict=True)
    metabits: float | None = Field(default=None, ge=0, strict=True)
    dino_rank: int | None = Field(default=None, ge=0, strict=True)
    prestige_rank: int | None = Field(default=None, ge=0, strict=True)
    singularity_speedrun_time: float | None = Field(default=None, ge=0, strict=True)
    all_sharks_obtained: bool | None = Field(default=None, strict=True)
    all_hidden_achievements_obtained: bool | None = Field(default=None, strict=True)

    def has_updates(self) -> bool:
        return (
            self.beta_tester is not None
            or bool(self.metabits)
            or bool(self.dino_rank)
            or bool(self.prestige_rank)
            or bool(self.singularity_speedrun_time)
            or self.all_sharks_obtained is not None
            or self.all_hidden_achievements_obtained is not None
        )

    def changes(self) -> dict[str, Any]:
        """Present fields only, keyed by PlayerRecord column."""
        return self.model_dump(exclude_none=True, exclude={"player_token"})


@dataclass(frozen=True, slots=True)
class ValidatedUpdate:
    player_id: str
    payload: ProgressPayload


def _describe(exc: ValidationError) -> str:
    first = exc.errors()[0]
    where = ".".join(str(part) for part in first["loc"])
    return f"{where}: {first['msg']}"


# ---------------------------------------------------------------------------
# Dependency
# ---------------------------------------------------------------------------
async def validate_update_request(
    request: Request,
    server_secret: str = Depends(get_server_secret),
) -> ValidatedUpdate:
    """Validate an inbound progress update, raising :class:`InvalidRequestError`."""
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        body = None
    if not isinstance(body, dict):
        raise InvalidRequestError("Malformed request", status_code=status.HTTP_422_UNPROCESSABLE_ENTITY)

    player_id = require_player_id(request.query_params.get("playerId"))
    check_authorization(request.headers.get("authorization"), server_secret)

    if not body.get("playerToken"):
        raise InvalidRequestError("Missing playerToken", status_code=status.HTTP_403_FORBIDDEN)

    channel = request.headers.get(DISTRIBUTION_CHANNEL_HEADER)
    if channel is not None and body.get("betaTester") is None:
        body = {**body, "betaTester": channel == BETA_DISTRIBUTION_CHANNEL}

    try:
        payload = ProgressPayload.model_validate(body)
    except ValidationError as exc:
        raise InvalidRequestError(_describe(exc), status_code=status.HTTP_422_UNPROCESSABLE_ENTITY) from exc

    if not payload.has_updates():
        raise InvalidRequestError(MISSING_FIELDS_MESSAGE, status_code=status.HTTP_400_BAD_REQUEST)

    return ValidatedUpdate(player_id=player_id, payload=payload)

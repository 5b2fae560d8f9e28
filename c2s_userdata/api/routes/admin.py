"""
c2s_userdata.api.routes.admin — Record provisioning, lookup and removal
=======================================================================

Operator endpoints guarded by the same shared ``Authorization`` secret
as the game-facing route.  Records are always addressed by
``playerId`` + ``playerToken`` (i.e. by derived token), never by
Discord ID alone.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Header, Query, status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import Engine

from c2s_userdata.api.deps import (
    check_authorization,
    get_engine,
    get_server_secret,
    require_player_id,
)
from c2s_userdata.database.engine import run_db
from c2s_userdata.engine.tokens import derive_token
from c2s_userdata.errors import InvalidRequestError, RecordNotFoundError
from c2s_userdata.services import userdata_service

logger = logging.getLogger(__name__)
router = APIRouter(tags=["admin"])


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------
class PlayerTokenBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    player_token: str = Field(alias="playerToken", min_length=1)


class LinkRequest(PlayerTokenBody):
    discord_id: str = Field(alias="discordId", pattern=r"^\d{15,21}$")


# ---------------------------------------------------------------------------
# Guards
# ---------------------------------------------------------------------------
def require_shared_secret(
    authorization: Annotated[str | None, Header()] = None,
    server_secret: str = Depends(get_server_secret),
) -> str:
    check_authorization(authorization, server_secret)
    return server_secret


# ---------------------------------------------------------------------------
# GET /userdata/all
# ---------------------------------------------------------------------------
@router.get("/userdata/all")
async def list_userdata(
    _: str = Depends(require_shared_secret),
    engine: Engine = Depends(get_engine),
):
    records = await run_db(userdata_service.list_records, engine)
    return {"data": [r.to_dict() for r in records]}


# ---------------------------------------------------------------------------
# GET /userdata
# ---------------------------------------------------------------------------
@router.get("/userdata")
async def read_userdata(
    server_secret: str = Depends(require_shared_secret),
    player_id: str | None = Query(default=None, alias="playerId"),
    player_token: str | None = Query(default=None, alias="playerToken"),
    engine: Engine = Depends(get_engine),
):
    player_id = require_player_id(player_id)
    if not player_token:
        raise InvalidRequestError("Missing playerToken", status_code=status.HTTP_403_FORBIDDEN)
    token = derive_token(server_secret, player_id, player_token)
    record = await run_db(userdata_service.get_by_token, engine, token)
    if record is None:
        raise RecordNotFoundError()
    return {"data": record.to_dict()}


# ---------------------------------------------------------------------------
# PUT /userdata — link a player to a Discord account
# ---------------------------------------------------------------------------
@router.put("/userdata")
async def link_userdata(
    body: LinkRequest,
    server_secret: str = Depends(require_shared_secret),
    player_id: str | None = Query(default=None, alias="playerId"),
    engine: Engine = Depends(get_engine),
):
    player_id = require_player_id(player_id)
    token = derive_token(server_secret, player_id, body.player_token)
    record = await run_db(
        userdata_service.create_record, engine, discord_id=body.discord_id, token=token,
    )
    return {"data": record.to_dict()}


# ---------------------------------------------------------------------------
# DELETE /userdata
# ---------------------------------------------------------------------------
@router.delete("/userdata")
async def delete_userdata(
    body: PlayerTokenBody,
    server_secret: str = Depends(require_shared_secret),
    player_id: str | None = Query(default=None, alias="playerId"),
    engine: Engine = Depends(get_engine),
):
    player_id = require_player_id(player_id)
    token = derive_token(server_secret, player_id, body.player_token)
    record = await run_db(userdata_service.delete_by_token, engine, token)
    if record is None:
        raise RecordNotFoundError()
    return {"message": "User Data successfully deleted", "discordId": record.discord_id}

"""
c2s_userdata.api.routes.userdata — Game-facing progress endpoint
================================================================
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, BackgroundTasks, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import Engine
from starlette.background import BackgroundTask

from c2s_userdata.api.deps import (
    get_config,
    get_engine,
    get_log_webhook_url,
    get_membership,
    get_server_secret,
)
from c2s_userdata.api.gateway import ValidatedUpdate, validate_update_request
from c2s_userdata.config import UserDataConfig
from c2s_userdata.errors import RoleReconciliationError, StoreError
from c2s_userdata.services.membership_service import DiscordMembership
from c2s_userdata.services.progress_service import apply_progress_update, notify_gained_roles
from c2s_userdata.services.webhook_log import (
    LogLevel,
    failure_summary,
    gained_roles_summary,
    webhook_log,
)

logger = logging.getLogger(__name__)
router = APIRouter(tags=["userdata"])


@router.post("/userdata")
async def update_userdata(
    background_tasks: BackgroundTasks,
    update: ValidatedUpdate = Depends(validate_update_request),
    engine: Engine = Depends(get_engine),
    cfg: UserDataConfig = Depends(get_config),
    membership: DiscordMembership = Depends(get_membership),
    server_secret: str = Depends(get_server_secret),
    webhook_url: str | None = Depends(get_log_webhook_url),
):
    """Store a progress update and reconcile the player's Discord roles.

    A request whose token matches no record answers 200 with ``data: null``;
    existing game clients treat that as "account not linked yet".
    """
    try:
        outcome = await apply_progress_update(
            engine,
            membership,
            cfg,
            server_secret=server_secret,
            player_id=update.player_id,
            player_token=update.payload.player_token,
            changes=update.payload.changes(),
        )
    except (StoreError, RoleReconciliationError) as exc:
        logger.error("Update for player %s failed: %s", update.player_id, exc)
        return JSONResponse(
            {"error": str(exc)},
            status_code=exc.status_code,
            background=BackgroundTask(
                webhook_log,
                webhook_url,
                failure_summary(update.player_id, str(exc)),
                LogLevel.FAILURE,
            ),
        )

    record = outcome.record
    if record is None:
        return {"data": None}

    if outcome.gained_labels:
        background_tasks.add_task(
            notify_gained_roles, membership, record.discord_id, outcome.gained_labels,
        )
    background_tasks.add_task(
        webhook_log,
        webhook_url,
        gained_roles_summary(record.discord_id, outcome.gained_labels),
        LogLevel.SUCCESSFUL if outcome.gained_labels else LogLevel.INFORMATIONAL,
    )
    return {"data": record.to_dict()}

"""
c2s_userdata.services.progress_service — Progress Update Transaction
=====================================================================

Drives one ``POST /userdata`` from validated input to updated record:

1. Derive the expected token from the shared secret, player ID and
   claimed player token.
2. Atomically merge the present fields into the matching record.
3. Force-fetch the member's live Discord roles, run the threshold
   engine, and replace the member's roles if the target set differs.
4. Hand back the record plus the labels newly gained.

Sending the congratulation DM is a separate step
(:func:`notify_gained_roles`) so the API can run it after the response
has gone out.  A failed role step does **not** roll back the store write.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol

from c2s_userdata.database.engine import run_db
from c2s_userdata.engine.roles import ProgressSnapshot, decide_roles
from c2s_userdata.engine.tokens import derive_token
from c2s_userdata.errors import NotificationError
from c2s_userdata.services import userdata_service

if TYPE_CHECKING:
    from collections.abc import Collection

    from sqlalchemy import Engine

    from c2s_userdata.config import UserDataConfig
    from c2s_userdata.database.models import PlayerRecord

logger = logging.getLogger(__name__)


class Membership(Protocol):
    """What the transaction needs from the Discord side."""

    async def fetch_role_ids(self, discord_id: str) -> set[int]: ...

    async def replace_roles(self, discord_id: str, role_ids: Collection[int]) -> None: ...

    async def send_direct_message(self, discord_id: str, content: str) -> None: ...


@dataclass
class UpdateOutcome:
    """Result of :func:`apply_progress_update`.

    ``record`` is ``None`` when no stored token matched.
    """

    token: str
    record: PlayerRecord | None = None
    gained_labels: list[str] = field(default_factory=list)
    roles_replaced: bool = False


async def apply_progress_update(
    engine: Engine,
    membership: Membership,
    cfg: UserDataConfig,
    *,
    server_secret: str,
    player_id: str,
    player_token: str,
    changes: dict[str, Any],
) -> UpdateOutcome:
    """Run the update transaction.

    Raises
    ------
    StoreError
        The store update failed; nothing was written.
    RoleReconciliationError
        Discord lookup or role replacement failed; the store write stands.
    """
    token = derive_token(server_secret, player_id, player_token)
    outcome = UpdateOutcome(token=token)

    record = await run_db(userdata_service.update_by_token, engine, token, changes)
    if record is None:
        return outcome
    outcome.record = record

    held = await membership.fetch_role_ids(record.discord_id)
    decision = decide_roles(
        ProgressSnapshot.from_record(record),
        held,
        cfg.role_ids,
        cfg.persistent_role_ids,
    )

    if decision.roles_to_apply != held:
        await membership.replace_roles(record.discord_id, decision.roles_to_apply)
        outcome.roles_replaced = True

    outcome.gained_labels = decision.newly_gained
    if decision.newly_gained:
        logger.info(
            "Granted roles to %s: %s",
            record.discord_id, ", ".join(decision.newly_gained),
        )
    else:
        logger.info("%s already holds every role their progress qualifies for", record.discord_id)
    return outcome


def congratulation_message(gained_labels: list[str]) -> str:
    return (
        f"You have successfully received the following roles: {', '.join(gained_labels)}\n"
        " **congrats on your accomplishment! :tada:**"
    )


async def notify_gained_roles(
    membership: Membership,
    discord_id: str,
    gained_labels: list[str],
) -> bool:
    """DM the member their new roles.  Best-effort; returns whether it was sent."""
    if not gained_labels:
        return False
    try:
        await membership.send_direct_message(discord_id, congratulation_message(gained_labels))
    except NotificationError:
        logger.warning(
            "%s has their DMs closed and wasn't notified about their role(s): %s",
            discord_id, ", ".join(gained_labels),
        )
        return False
    except Exception:
        # Nothing may escape: the audit log task is queued after this one.
        logger.exception("Failed to DM %s about their role(s)", discord_id)
        return False
    return True

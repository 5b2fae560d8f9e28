"""
c2s_userdata.services.webhook_log — Discord Webhook Audit Log
==============================================================

Posts a one-line summary of every update outcome to a Discord channel
webhook so moderators can follow role grants and failures without shell
access.  The message is an ``ansi`` code block, coloured by level.

Posting is best-effort: an unset URL is a no-op and any HTTP failure is
logged locally and dropped.
"""

from __future__ import annotations

import enum
import logging

import httpx

logger = logging.getLogger(__name__)

WEBHOOK_TIMEOUT_SECONDS = 10

# Discord's ansi code blocks understand the basic SGR colour codes only.
ANSI_BACKGROUND = "\u001b[40m"


class LogLevel(enum.StrEnum):
    SUCCESSFUL = "successful"
    INFORMATIONAL = "informational"
    FAILURE = "failure"


LEVEL_COLOURS: dict[LogLevel, str] = {
    LogLevel.SUCCESSFUL: "\u001b[32m",
    LogLevel.INFORMATIONAL: "\u001b[34m",
    LogLevel.FAILURE: "\u001b[31m",
}


def format_webhook_content(content: str, level: LogLevel) -> str:
    """Wrap *content* in an ansi code block, colouring every word."""
    colour = LEVEL_COLOURS[level]
    body = " ".join(f"{colour}{word}" for word in content.split(" "))
    return f"```ansi\n{ANSI_BACKGROUND}{body}```"


def gained_roles_summary(discord_id: str, gained: list[str]) -> str:
    if not gained:
        return f"user with ID {discord_id} had a successful request but gained no roles"
    return f"user with ID {discord_id} gained the following roles: {', '.join(gained)}"


def failure_summary(player_id: str, error: str) -> str:
    return f"Error with a user\n\nplayerId: {player_id}\n\n{error}"


async def webhook_log(
    webhook_url: str | None,
    content: str,
    level: LogLevel = LogLevel.INFORMATIONAL,
    *,
    client: httpx.AsyncClient | None = None,
) -> None:
    """Post *content* to *webhook_url*.  Never raises."""
    if not webhook_url:
        return

    payload = {"content": format_webhook_content(content, level)}
    try:
        if client is not None:
            resp = await client.post(webhook_url, json=payload)
        else:
            async with httpx.AsyncClient(timeout=WEBHOOK_TIMEOUT_SECONDS) as owned:
                resp = await owned.post(webhook_url, json=payload)
        resp.raise_for_status()
    except httpx.HTTPError as exc:
        logger.warning("Webhook log post failed (%s): %s", level, exc)

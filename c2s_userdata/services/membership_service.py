"""
c2s_userdata.services.membership_service — Discord Role & DM Adapter
=====================================================================

The only module that talks to Discord.  It uses discord.py over REST
only: the client logs in (validating the token) but never opens a
gateway connection, so there is no member cache to go stale.  Every
role lookup is a fresh ``GET /guilds/{id}/members/{id}``.

Discord failures are translated here:

* role lookup / replacement → :class:`RoleReconciliationError`
* direct message            → :class:`NotificationError`
"""

from __future__ import annotations

import logging
from collections.abc import Collection

import discord

from c2s_userdata.errors import NotificationError, RoleReconciliationError

logger = logging.getLogger(__name__)


class DiscordMembership:
    """Role reconciliation and DMs for members of one guild.

    Parameters
    ----------
    guild_id:
        Snowflake of the community guild roles are managed in.
    client:
        Optional pre-built client (tests).  A bare ``discord.Client`` with
        no intents is created otherwise.
    """

    def __init__(self, guild_id: int, client: discord.Client | None = None) -> None:
        self.guild_id = guild_id
        self.client = client or discord.Client(intents=discord.Intents.none())
        self._guild: discord.Guild | None = None

    # -----------------------------------------------------------------------
    # Lifecycle
    # -----------------------------------------------------------------------
    async def start(self, token: str) -> None:
        """Log in over REST and resolve the guild.

        Raises ``discord.LoginFailure`` on a bad token; callers treat that
        as fatal.
        """
        await self.client.login(token)
        self._guild = await self.client.fetch_guild(self.guild_id)
        logger.info("Discord client ready for guild %s (%d)", self._guild.name, self.guild_id)

    async def close(self) -> None:
        await self.client.close()
        logger.info("Discord client closed")

    # -----------------------------------------------------------------------
    # Member access
    # -----------------------------------------------------------------------
    async def _fetch_member(self, discord_id: str) -> discord.Member:
        if self._guild is None:
            raise RoleReconciliationError("Discord client is not logged in")
        try:
            user_id = int(discord_id)
        except ValueError as exc:
            raise RoleReconciliationError("parsing discord id failed") from exc
        try:
            return await self._guild.fetch_member(user_id)
        except discord.NotFound as exc:
            raise RoleReconciliationError(
                "failed retrieving member data "
                "(this usually occurs when you're not in the Discord server)"
            ) from exc
        except discord.HTTPException as exc:
            raise RoleReconciliationError(f"failed retrieving member data: {exc.text}") from exc

    async def fetch_role_ids(self, discord_id: str) -> set[int]:
        """Live role IDs of the member, excluding ``@everyone``."""
        member = await self._fetch_member(discord_id)
        return {role.id for role in member.roles if not role.is_default()}

    async def replace_roles(self, discord_id: str, role_ids: Collection[int]) -> None:
        """Overwrite the member's whole role list with *role_ids*."""
        member = await self._fetch_member(discord_id)
        try:
            await member.edit(
                roles=[discord.Object(id=role_id) for role_id in role_ids],
                reason="C2S user data: progress update",
            )
        except discord.HTTPException as exc:
            raise RoleReconciliationError(f"failed at updating member roles: {exc.text}") from exc
        logger.info("Replaced roles for %s (%d roles)", discord_id, len(role_ids))

    async def send_direct_message(self, discord_id: str, content: str) -> None:
        """DM the member.  Closed DMs surface as :class:`NotificationError`."""
        try:
            user = await self.client.fetch_user(int(discord_id))
            await user.send(content)
        except (ValueError, discord.HTTPException) as exc:
            raise NotificationError(f"could not DM {discord_id}: {exc}") from exc

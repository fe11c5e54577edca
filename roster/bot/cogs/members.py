"""
roster.bot.cogs.members — Member Sheet Commands
================================================

- /member-update — add yourself, refresh your own row, or (allowed roles
  with ``discord_id``) edit another member's row
- /member-search — search the member sheet by name, or ``all``
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands

from roster.bot.checks import member_has_allowed_role
from roster.database.engine import run_db
from roster.services.embeds import build_member_table_embed
from roster.services.member_service import (
    Caller,
    MemberUpdateRequest,
    apply_member_update,
    search_members,
)

if TYPE_CHECKING:
    from roster.bot.core import RosterBot

logger = logging.getLogger(__name__)


class Members(commands.Cog, name="Members"):
    """Self-service edits and lookups on the member sheet."""

    def __init__(self, bot: RosterBot) -> None:
        self.bot = bot

    def _caller(self, interaction: discord.Interaction) -> Caller:
        user = interaction.user
        return Caller(
            discord_id=str(user.id),
            username=user.name,
            display_name=user.display_name,
            privileged=member_has_allowed_role(user, self.bot.cfg.allowed_roles),
        )

    # -------------------------------------------------------------------
    # /member-update
    # -------------------------------------------------------------------
    @app_commands.command(name="member-update", description="Add or update member information.")
    @app_commands.describe(
        name="The member's name",
        points="Points to set for the member",
        discord_id="Discord ID of the member to update (allowed roles only)",
    )
    async def member_update(
        self,
        interaction: discord.Interaction,
        name: str,
        points: int | None = None,
        discord_id: str | None = None,
    ) -> None:
        caller = self._caller(interaction)
        request = MemberUpdateRequest(name=name, points=points, discord_id=discord_id)
        try:
            result = await run_db(
                apply_member_update,
                self.bot.gateway,
                self.bot.engine,
                caller,
                request,
                now=datetime.now(self.bot.cfg.tzinfo),
            )
        except Exception:
            logger.exception(
                "Error handling member-update command (executor %s/%s)",
                caller.username, caller.discord_id,
            )
            await interaction.response.send_message(
                "An error occurred while processing your update command.",
            )
            return

        await interaction.response.send_message(result.message(caller))

    # -------------------------------------------------------------------
    # /member-search
    # -------------------------------------------------------------------
    @app_commands.command(name="member-search", description="Search for members.")
    @app_commands.describe(search_for='Member name to search for, or "all" to show all members')
    async def member_search(self, interaction: discord.Interaction, search_for: str) -> None:
        try:
            rows = await run_db(self.bot.gateway.load_member_rows)
            matches = search_members(rows, search_for)
        except Exception:
            logger.exception("Error handling member-search command (query %r)", search_for)
            await interaction.response.send_message(
                "An error occurred while processing your search command.",
            )
            return

        query = search_for.strip().lower()
        logger.info(
            "[SEARCH] %s searched %r → %d result(s)",
            interaction.user.name, query, len(matches),
        )
        if not matches:
            await interaction.response.send_message(f"No members found matching: {query}")
            return

        title = "All members" if query == "all" else f'Search results for "{query}"'
        await interaction.response.send_message(embed=build_member_table_embed(title, matches))


async def setup(bot: RosterBot) -> None:
    await bot.add_cog(Members(bot))

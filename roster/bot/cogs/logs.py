"""
roster.bot.cogs.logs — /member-logs
====================================

View, download, or clear a day's log file.  Allowed roles only; every
reply is ephemeral.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands

from roster.bot.checks import has_allowed_role
from roster.services.log_files import clear_log, log_path_for, parse_log_date, tail_log

if TYPE_CHECKING:
    from roster.bot.core import RosterBot

logger = logging.getLogger(__name__)

# Discord message content limit.
_MAX_MESSAGE = 2000


class Logs(commands.Cog, name="Logs"):
    """Log file access for moderators."""

    def __init__(self, bot: RosterBot) -> None:
        self.bot = bot

    @app_commands.command(
        name="member-logs",
        description="Manage logs (view, download or clear). This is restricted.",
    )
    @app_commands.describe(
        action="View, download, or clear logs",
        lines="Number of lines to view (default 10)",
        date="Date of the log file (YYYY-MM-DD), default today",
    )
    @app_commands.choices(action=[
        app_commands.Choice(name="View", value="view"),
        app_commands.Choice(name="Download", value="download"),
        app_commands.Choice(name="Clear", value="clear"),
    ])
    @has_allowed_role()
    async def member_logs(
        self,
        interaction: discord.Interaction,
        action: app_commands.Choice[str],
        lines: app_commands.Range[int, 1, 500] = 10,
        date: str | None = None,
    ) -> None:
        cfg = self.bot.cfg
        try:
            day = parse_log_date(date, cfg.tzinfo)
        except ValueError:
            await interaction.response.send_message(
                f"Invalid date: {date!r}. Use YYYY-MM-DD.", ephemeral=True,
            )
            return
        path = log_path_for(cfg.log_dir, day)
        user = interaction.user

        if action.value == "view":
            text = tail_log(path, lines)
            if text is None:
                logger.warning("[LOGS VIEW FAILED] File not found: %s (by %s)", path.name, user.name)
                await interaction.response.send_message(
                    f"No log file found for the specified date: {day}.", ephemeral=True,
                )
                return
            content = f"```log\n{text}\n```"
            if len(content) > _MAX_MESSAGE:
                content = 'Log data is too large to display. Use the "Download" option.'
            await interaction.response.send_message(content, ephemeral=True)
            logger.info("[LOGS VIEW SUCCESS] %s viewed %d lines of %s", user.name, lines, path.name)

        elif action.value == "download":
            if not path.exists():
                logger.warning("[LOGS DOWNLOAD FAILED] File not found: %s (by %s)", path.name, user.name)
                await interaction.response.send_message(
                    f"No log file found for the specified date: {day}.", ephemeral=True,
                )
                return
            await interaction.response.send_message(
                f"Here are the logs for {day}:", file=discord.File(path), ephemeral=True,
            )
            logger.info("[LOGS DOWNLOAD SUCCESS] %s downloaded %s", user.name, path.name)

        else:
            if clear_log(path):
                await interaction.response.send_message(
                    f"The logs for {day} have been cleared successfully.", ephemeral=True,
                )
                logger.info("[LOGS CLEAR SUCCESS] %s cleared %s", user.name, path.name)
            else:
                logger.warning("[LOGS CLEAR FAILED] File not found: %s (by %s)", path.name, user.name)
                await interaction.response.send_message(
                    f"No log file found for the specified date: {day}.", ephemeral=True,
                )

    async def cog_app_command_error(
        self, interaction: discord.Interaction, error: app_commands.AppCommandError
    ) -> None:
        if isinstance(error, app_commands.CheckFailure):
            logger.warning("[LOGS FAILED] Unauthorized access attempt by %s", interaction.user.name)
            await interaction.response.send_message(
                "You do not have permission to use this command.", ephemeral=True,
            )
        else:
            logger.exception("Error handling member-logs command", exc_info=error)
            if not interaction.response.is_done():
                await interaction.response.send_message(
                    "An error occurred while processing your logs command.", ephemeral=True,
                )


async def setup(bot: RosterBot) -> None:
    await bot.add_cog(Logs(bot))

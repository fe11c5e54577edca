"""
roster.bot.cogs.attendance — Attendance Commands
=================================================

- /reconcile — recompute the record table now (allowed roles)
- /attendance — look up one member's record by NetID
- /api-token — mint a bearer token for the reconcile webhook (allowed roles)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands

from roster.bot.checks import has_allowed_role
from roster.database.engine import run_db
from roster.database.models import RunTrigger
from roster.engine.records import normalize_net_id
from roster.errors import MissingSheetError, RosterError
from roster.services.embeds import build_record_embed, build_run_summary_embed
from roster.services.token_service import issue_token

if TYPE_CHECKING:
    from roster.bot.core import RosterBot

logger = logging.getLogger(__name__)


class Attendance(commands.Cog, name="Attendance"):
    """Reconciliation and record lookups."""

    def __init__(self, bot: RosterBot) -> None:
        self.bot = bot

    # -------------------------------------------------------------------
    # /reconcile
    # -------------------------------------------------------------------
    @app_commands.command(name="reconcile", description="Recompute attendance points now.")
    @has_allowed_role()
    async def reconcile(self, interaction: discord.Interaction) -> None:
        await interaction.response.defer(ephemeral=True, thinking=True)
        try:
            summary = await run_db(self.bot.reconciler.run, RunTrigger.COMMAND)
        except MissingSheetError as exc:
            await interaction.followup.send(f"❌ {exc}", ephemeral=True)
            return
        except RosterError as exc:
            logger.exception("Reconcile command failed")
            await interaction.followup.send(f"❌ Reconciliation failed: {exc}", ephemeral=True)
            return
        except Exception:
            logger.exception("Reconcile command failed")
            await interaction.followup.send(
                "An error occurred while reconciling attendance.", ephemeral=True,
            )
            return

        await interaction.followup.send(embed=build_run_summary_embed(summary), ephemeral=True)

    # -------------------------------------------------------------------
    # /attendance
    # -------------------------------------------------------------------
    @app_commands.command(name="attendance", description="Look up attendance points by NetID.")
    @app_commands.describe(net_id="NetID (the part of the school email before @)")
    async def attendance(self, interaction: discord.Interaction, net_id: str) -> None:
        wanted = normalize_net_id(net_id)
        try:
            rows = await run_db(self.bot.gateway.load_record_rows)
        except Exception:
            logger.exception("Error handling attendance command (net_id %r)", net_id)
            await interaction.response.send_message(
                "An error occurred while looking up attendance.", ephemeral=True,
            )
            return

        row = next((r for r in rows if r and normalize_net_id(r[0]) == wanted), None)
        if row is None:
            await interaction.response.send_message(
                f"No attendance record for NetID: {net_id.strip()}", ephemeral=True,
            )
            return
        await interaction.response.send_message(embed=build_record_embed(row), ephemeral=True)

    # -------------------------------------------------------------------
    # /api-token
    # -------------------------------------------------------------------
    @app_commands.command(name="api-token", description="Create a token for the reconcile webhook.")
    @app_commands.describe(name="Label for the integration using this token")
    @has_allowed_role()
    async def api_token(self, interaction: discord.Interaction, name: str = "form-webhook") -> None:
        try:
            token = issue_token(name, issued_by=str(interaction.user.id))
        except RuntimeError as exc:
            logger.error("Cannot issue API token: %s", exc)
            await interaction.response.send_message(
                "❌ The webhook secret is not configured on this bot.", ephemeral=True,
            )
            return

        logger.info("[API TOKEN] %s issued webhook token %r", interaction.user.name, name)
        await interaction.response.send_message(
            f"Webhook token for **{name}** (keep it secret):\n||{token}||", ephemeral=True,
        )

    # -------------------------------------------------------------------
    # Error handler for missing allowed role
    # -------------------------------------------------------------------
    async def cog_app_command_error(
        self, interaction: discord.Interaction, error: app_commands.AppCommandError
    ) -> None:
        if isinstance(error, app_commands.CheckFailure):
            await interaction.response.send_message(
                "🔒 You do not have permission to use this command.", ephemeral=True,
            )
        else:
            raise error


async def setup(bot: RosterBot) -> None:
    await bot.add_cog(Attendance(bot))

"""
roster.bot.core — Bot Instance & Cog Loader
============================================

Defines :class:`RosterBot`, a ``commands.Bot`` subclass that:

1. Stores the shared config (``bot.cfg``), the optional DB engine
   (``bot.engine``), the Sheets gateway (``bot.gateway``), and the
   reconciliation service (``bot.reconciler``) so every Cog can reach them.
2. Loads every Cog listed in :data:`EXTENSIONS`.
3. Syncs the slash-command tree on startup (guild-scoped when
   ``DEV_GUILD_ID`` is set, otherwise to the configured guild).
"""

from __future__ import annotations

import logging
import os

import discord
from discord.ext import commands
from sqlalchemy import Engine

from roster.config import RosterConfig
from roster.services.reconciliation_service import ReconciliationService
from roster.services.sheets_service import SheetsGateway

logger = logging.getLogger(__name__)

# Cog modules to load on startup.
EXTENSIONS: list[str] = [
    "roster.bot.cogs.members",
    "roster.bot.cogs.logs",
    "roster.bot.cogs.attendance",
    "roster.bot.cogs.tasks",
]


class RosterBot(commands.Bot):
    """Custom Bot subclass that carries project-wide state.

    Parameters
    ----------
    cfg:
        The parsed :class:`RosterConfig` from ``config.yaml``.
    gateway:
        Row-level access to the spreadsheet.
    engine:
        SQLAlchemy engine for run history and the audit log, or ``None``.
    """

    def __init__(
        self,
        cfg: RosterConfig,
        gateway: SheetsGateway,
        engine: Engine | None = None,
    ) -> None:
        # Slash commands only; no privileged intents needed.
        intents = discord.Intents.default()
        intents.members = False
        intents.presences = False

        super().__init__(
            command_prefix=commands.when_mentioned,
            intents=intents,
            description=f"{cfg.community_name} — membership & attendance",
        )

        self.cfg = cfg
        self.gateway = gateway
        self.engine = engine
        self.reconciler = ReconciliationService(
            gateway,
            cfg.reconciliation,
            layout=cfg.sheets,
            engine=engine,
            tz=cfg.tzinfo,
        )

    # -----------------------------------------------------------------------
    # Lifecycle hooks
    # -----------------------------------------------------------------------
    async def setup_hook(self) -> None:
        """Load all Cog extensions before connecting.

        A failing extension is logged and skipped.
        """
        for ext in EXTENSIONS:
            try:
                await self.load_extension(ext)
                logger.info("Loaded extension: %s", ext)
            except Exception as exc:
                logger.error("Failed to load extension %s: %s", ext, exc)

    async def on_ready(self) -> None:
        """Fired when the bot has connected and the cache is populated."""
        assert self.user is not None
        logger.info("Bot logged in as %s (ID: %s)", self.user, self.user.id)

        guild_id = os.getenv("DEV_GUILD_ID") or self.cfg.guild_id
        if guild_id:
            guild = discord.Object(id=int(guild_id))
            self.tree.copy_global_to(guild=guild)
            synced = await self.tree.sync(guild=guild)
            logger.info("Synced %d commands to guild %s", len(synced), guild_id)
        else:
            synced = await self.tree.sync()
            logger.info("Synced %d commands globally", len(synced))

    async def close(self) -> None:
        logger.info("Bot shutting down…")
        await super().close()

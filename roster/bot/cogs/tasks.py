"""
roster.bot.cogs.tasks — Periodic Background Tasks
==================================================

- **Timed reconciliation** — every ``reconcile_interval_minutes`` (default
  15), recompute the record table from the form responses.

Runs in the bot process through ``run_db()`` so the event loop never
blocks on Sheets I/O.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from discord.ext import commands, tasks

from roster.database.engine import run_db
from roster.database.models import RunTrigger

if TYPE_CHECKING:
    from roster.bot.core import RosterBot

logger = logging.getLogger(__name__)


class PeriodicTasks(commands.Cog):
    """Cog for scheduled background tasks."""

    def __init__(self, bot: RosterBot) -> None:
        self.bot = bot

    async def cog_load(self) -> None:
        self.reconcile_loop.change_interval(minutes=self.bot.cfg.reconcile_interval_minutes)
        self.reconcile_loop.start()

    async def cog_unload(self) -> None:
        self.reconcile_loop.cancel()

    @tasks.loop(minutes=15)
    async def reconcile_loop(self):
        """Recompute attendance points from the form responses."""
        try:
            summary = await run_db(self.bot.reconciler.run, RunTrigger.TIMER)
            logger.debug("Timed reconciliation wrote %d members", summary.members_written)
        except Exception:
            logger.exception("Reconciliation task failed", extra={"task": "reconcile"})

    @reconcile_loop.before_loop
    async def _wait_reconcile(self):
        await self.bot.wait_until_ready()


async def setup(bot: RosterBot) -> None:
    await bot.add_cog(PeriodicTasks(bot))

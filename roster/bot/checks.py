"""
roster.bot.checks — Allowed-role checks
========================================

Roles are matched by **name** against ``config.yaml``'s ``allowed_roles``.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

import discord
from discord import app_commands

if TYPE_CHECKING:
    from roster.bot.core import RosterBot


def member_has_allowed_role(user: discord.abc.User, allowed_roles: Iterable[str]) -> bool:
    """True if *user* is a guild member holding one of *allowed_roles*."""
    roles = getattr(user, "roles", None)
    if not roles:
        return False
    allowed = set(allowed_roles)
    return any(role.name in allowed for role in roles)


def has_allowed_role():
    """Decorator that checks if the user has one of the configured roles."""
    async def predicate(interaction: discord.Interaction) -> bool:
        bot: RosterBot = interaction.client  # type: ignore[assignment]
        return member_has_allowed_role(interaction.user, bot.cfg.allowed_roles)
    return app_commands.check(predicate)

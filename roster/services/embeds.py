"""
roster.services.embeds — Discord embed builders
================================================

All embed construction lives here so the cogs only need to supply data.
Member tables are rendered as monospace code blocks inside the embed.
"""

from __future__ import annotations

import discord

from roster.constants import (
    MEMBER_DISPLAY_NAME,
    MEMBER_LAST_UPDATE,
    MEMBER_NAME,
    MEMBER_POINTS,
)
from roster.services.reconciliation_service import RunSummary

# Embed description limit is 4096; stay well clear of it.
_MAX_TABLE_CHARS = 3800


def _table(headers: list[str], rows: list[list[str]]) -> tuple[str, int]:
    """Fixed-width text table.  Returns (block, rows_shown)."""
    widths = [len(h) for h in headers]
    for row in rows:
        for i, cell in enumerate(row):
            widths[i] = max(widths[i], len(cell))

    def fmt(cells: list[str]) -> str:
        return "  ".join(cell.ljust(widths[i]) for i, cell in enumerate(cells)).rstrip()

    lines = [fmt(headers), "  ".join("-" * w for w in widths)]
    shown = 0
    for row in rows:
        line = fmt(row)
        if sum(len(ln) + 1 for ln in lines) + len(line) > _MAX_TABLE_CHARS:
            break
        lines.append(line)
        shown += 1
    return "```\n" + "\n".join(lines) + "\n```", shown


def build_member_table_embed(title: str, rows: list[list]) -> discord.Embed:
    """Render member sheet rows as a table embed."""
    cells = [
        [
            str(row[MEMBER_NAME]),
            str(row[MEMBER_DISPLAY_NAME]),
            str(row[MEMBER_POINTS]),
            str(row[MEMBER_LAST_UPDATE]),
        ]
        for row in rows
    ]
    block, shown = _table(["Name", "Display Name", "Points", "Last Update"], cells)
    embed = discord.Embed(title=title, description=block, color=discord.Color.blurple())
    if shown < len(cells):
        embed.set_footer(text=f"Showing {shown} of {len(cells)} members")
    else:
        embed.set_footer(text=f"{len(cells)} member(s)")
    return embed


def build_run_summary_embed(summary: RunSummary) -> discord.Embed:
    """Embed describing one reconciliation run."""
    ok = summary.error is None
    embed = discord.Embed(
        title="✅ Reconciliation complete" if ok else "❌ Reconciliation failed",
        color=discord.Color.green() if ok else discord.Color.red(),
    )
    if ok:
        stats = summary.stats
        embed.add_field(name="Members written", value=str(summary.members_written))
        embed.add_field(name="Submissions", value=str(stats.get("submissions", 0)))
        embed.add_field(name="Matched", value=str(stats.get("matched", 0)))
        embed.add_field(name="Duplicates", value=str(stats.get("duplicate", 0)))
        embed.add_field(name="Invalid code", value=str(stats.get("invalid_code", 0)))
        embed.add_field(name="Out of window", value=str(stats.get("out_of_window", 0)))
        if stats.get("malformed"):
            embed.add_field(name="Malformed", value=str(stats["malformed"]))
    else:
        embed.description = summary.error
    embed.set_footer(text=f"Trigger: {summary.trigger} · {summary.duration_seconds:.1f}s")
    return embed


def build_record_embed(row: list, *, show_name: bool = True) -> discord.Embed:
    """One member's attendance record (NetID, names, anonymity, points)."""
    padded = [str(c) for c in row] + [""] * (6 - len(row))
    net_id, first, last, anonymous, points, last_update = padded[:6]
    embed = discord.Embed(title=f"Attendance — {net_id}", color=discord.Color.teal())
    if show_name and anonymous != "Yes":
        embed.add_field(name="Name", value=f"{first} {last}".strip() or "—", inline=False)
    embed.add_field(name="Points", value=points or "0")
    embed.add_field(name="Anonymous", value=anonymous or "No")
    embed.set_footer(text=f"Last update: {last_update}" if last_update else "No updates yet")
    return embed

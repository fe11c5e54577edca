"""
roster.services.member_service — Member Sheet Updates & Search
===============================================================

Business logic behind ``/member-update`` and ``/member-search``.

``update_member`` and ``search_members`` are pure over the member rows
(header row included, as returned by ``SheetsGateway.load_member_rows``).
``apply_member_update`` does the full read → modify → write → audit cycle
and is what the cog calls through ``run_db``.

Update rules:
    * A caller holding an allowed role who passes ``discord_id`` edits the
      row with that Discord ID (name, optional points).
    * Anyone else edits by name: a new name appends a row owned by the
      caller; an existing name owned by the caller refreshes it; an
      existing name owned by someone else is refused.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy import Engine

from roster.constants import (
    MEMBER_COLUMNS,
    MEMBER_DISCORD_ID,
    MEMBER_DISPLAY_NAME,
    MEMBER_LAST_UPDATE,
    MEMBER_NAME,
    MEMBER_POINTS,
    MEMBER_USERNAME,
    TIMESTAMP_FORMAT,
    capitalize,
)
from roster.database.engine import get_session
from roster.database.models import AdminLog
from roster.services.sheets_service import SheetsGateway

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Request / result types
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class Caller:
    """The Discord member running the command."""

    discord_id: str
    username: str
    display_name: str
    privileged: bool = False


@dataclass(frozen=True, slots=True)
class MemberUpdateRequest:
    name: str
    points: int | None = None
    discord_id: str | None = None


class UpdateOutcome(enum.StrEnum):
    CREATED = "created"
    UPDATED_SELF = "updated_self"
    UPDATED_OTHER = "updated_other"
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"


@dataclass
class MemberUpdateResult:
    outcome: UpdateOutcome
    name: str
    target_discord_id: str | None = None
    before: dict[str, str] = field(default_factory=dict)
    after: dict[str, str] = field(default_factory=dict)

    @property
    def changed(self) -> bool:
        return self.outcome in (
            UpdateOutcome.CREATED, UpdateOutcome.UPDATED_SELF, UpdateOutcome.UPDATED_OTHER,
        )

    def message(self, caller: Caller) -> str:
        """The reply shown to the caller."""
        if self.outcome is UpdateOutcome.CREATED:
            return f"Added new member: {self.name}"
        if self.outcome is UpdateOutcome.UPDATED_SELF:
            return f"Updated data for: {self.name}"
        if self.outcome is UpdateOutcome.UPDATED_OTHER:
            return f"Updated data for member: {self.name}, by: {caller.display_name}"
        if self.outcome is UpdateOutcome.NOT_FOUND:
            return f"No member found with Discord ID: {self.target_discord_id}"
        return "You do not have permission to update this member's data."


# ---------------------------------------------------------------------------
# Row helpers
# ---------------------------------------------------------------------------
def _pad(row: list) -> list:
    if len(row) < len(MEMBER_COLUMNS):
        row.extend([""] * (len(MEMBER_COLUMNS) - len(row)))
    return row


def _find(rows: list[list], column: int, value: str, *, casefold: bool = False) -> int | None:
    """Index of the first data row whose *column* equals *value* (header skipped)."""
    needle = value.casefold() if casefold else value
    for index in range(1, len(rows)):
        row = rows[index]
        cell = str(row[column]) if len(row) > column else ""
        if (cell.casefold() if casefold else cell) == needle:
            return index
    return None


def _set_points(row: list, points: int | None, before: dict, after: dict) -> None:
    if points is None:
        return
    current = str(row[MEMBER_POINTS])
    if current != str(points):
        before["points"] = current
        after["points"] = str(points)
        row[MEMBER_POINTS] = str(points)


# ---------------------------------------------------------------------------
# Pure operations
# ---------------------------------------------------------------------------
def update_member(
    rows: list[list],
    caller: Caller,
    request: MemberUpdateRequest,
    *,
    timestamp: str,
) -> MemberUpdateResult:
    """Apply *request* to *rows* in place and describe what happened."""
    if not rows:
        rows.append(list(MEMBER_COLUMNS))
    name = capitalize(request.name)

    if request.discord_id and caller.privileged:
        index = _find(rows, MEMBER_DISCORD_ID, request.discord_id)
        if index is None:
            return MemberUpdateResult(
                UpdateOutcome.NOT_FOUND, name, target_discord_id=request.discord_id,
            )
        row = _pad(rows[index])
        before: dict[str, str] = {}
        after: dict[str, str] = {}
        if row[MEMBER_NAME] != name:
            before["name"] = row[MEMBER_NAME]
            after["name"] = name
            row[MEMBER_NAME] = name
        _set_points(row, request.points, before, after)
        row[MEMBER_LAST_UPDATE] = timestamp
        return MemberUpdateResult(
            UpdateOutcome.UPDATED_OTHER, name,
            target_discord_id=request.discord_id, before=before, after=after,
        )

    index = _find(rows, MEMBER_NAME, name, casefold=True)
    if index is None:
        new_row = [""] * len(MEMBER_COLUMNS)
        new_row[MEMBER_NAME] = name
        new_row[MEMBER_DISPLAY_NAME] = caller.display_name
        new_row[MEMBER_USERNAME] = caller.username
        new_row[MEMBER_DISCORD_ID] = caller.discord_id
        new_row[MEMBER_POINTS] = str(request.points) if request.points else "0"
        new_row[MEMBER_LAST_UPDATE] = timestamp
        rows.append(new_row)
        return MemberUpdateResult(
            UpdateOutcome.CREATED, name, target_discord_id=caller.discord_id,
            after=dict(zip(MEMBER_COLUMNS, new_row, strict=True)),
        )

    row = _pad(rows[index])
    current_name = row[MEMBER_NAME]
    owner = str(row[MEMBER_DISCORD_ID])
    if owner != caller.discord_id:
        return MemberUpdateResult(UpdateOutcome.FORBIDDEN, current_name, target_discord_id=owner)

    before = {}
    after = {}
    row[MEMBER_DISPLAY_NAME] = caller.display_name
    row[MEMBER_USERNAME] = caller.username
    _set_points(row, request.points, before, after)
    row[MEMBER_LAST_UPDATE] = timestamp
    return MemberUpdateResult(
        UpdateOutcome.UPDATED_SELF, current_name,
        target_discord_id=owner, before=before, after=after,
    )


def search_members(rows: list[list], query: str) -> list[list]:
    """Data rows whose name contains *query* (case-insensitive); ``"all"`` matches all."""
    needle = query.strip().casefold()
    data = [_pad(list(row)) for row in rows[1:] if any(str(c).strip() for c in row)]
    if needle == "all":
        return data
    return [row for row in data if needle in str(row[MEMBER_NAME]).casefold()]


# ---------------------------------------------------------------------------
# Audit
# ---------------------------------------------------------------------------
def log_member_update(
    engine: Engine | None,
    caller: Caller,
    result: MemberUpdateResult,
    *,
    sheet_name: str = "Members",
) -> None:
    """Write the update to the log and, when a database exists, ``admin_log``."""
    if result.changed:
        logger.info(
            "[%s] %s (by %s/%s) before=%s after=%s",
            result.outcome, result.name, caller.username, caller.discord_id,
            result.before, result.after,
        )
    else:
        logger.warning(
            "[UPDATE FAILED] %s: %s (by %s/%s, target %s)",
            result.outcome, result.name, caller.username, caller.discord_id,
            result.target_discord_id,
        )

    if engine is None:
        return
    with get_session(engine) as session:
        session.add(AdminLog(
            actor_id=int(caller.discord_id),
            actor_name=caller.username,
            action_type=f"member_{result.outcome}",
            target_sheet=sheet_name,
            target_id=result.target_discord_id,
            before_snapshot=result.before or None,
            after_snapshot=result.after or None,
        ))


def apply_member_update(
    gateway: SheetsGateway,
    engine: Engine | None,
    caller: Caller,
    request: MemberUpdateRequest,
    *,
    now: datetime | None = None,
) -> MemberUpdateResult:
    """Read the member sheet, apply *request*, write it back, and audit it."""
    timestamp = (now or datetime.now()).strftime(TIMESTAMP_FORMAT)
    rows = gateway.load_member_rows()
    result = update_member(rows, caller, request, timestamp=timestamp)
    if result.changed:
        gateway.write_member_rows(rows)
    log_member_update(engine, caller, result, sheet_name=gateway.layout.members)
    return result

"""
roster.constants — Shared Constants & Helpers
==============================================

Single source of truth for worksheet column layouts and the timestamp
format written back to the sheets.  Import from here instead of
duplicating in cogs, services, and the engine.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Record table (written by reconciliation, full overwrite below header)
# ---------------------------------------------------------------------------
RECORD_COLUMNS: tuple[str, ...] = (
    "NetID", "FirstName", "LastName", "Anonymous", "Points", "LastUpdate",
)

# ---------------------------------------------------------------------------
# Event catalog + point schedule (read-only inputs)
# ---------------------------------------------------------------------------
EVENT_COLUMNS: tuple[str, ...] = (
    "Date", "StartTime", "EndTime", "EventName", "EventType", "EventCode",
)
POINT_SCHEDULE_COLUMNS: tuple[str, ...] = ("EventType", "Points")

# Form response fields.  The sheet order is configurable (SheetLayout);
# this is the default, matching a Google Form that collects emails.
SUBMISSION_FIELDS: tuple[str, ...] = (
    "timestamp", "email", "event_code", "first_name", "last_name", "anonymous",
)

# ---------------------------------------------------------------------------
# Member sheet managed by /member-update (left to right)
# ---------------------------------------------------------------------------
MEMBER_COLUMNS: tuple[str, ...] = (
    "Name", "Display_Name", "Discord_Username", "Discord_ID", "Points", "Last_Update",
)
MEMBER_NAME = MEMBER_COLUMNS.index("Name")
MEMBER_DISPLAY_NAME = MEMBER_COLUMNS.index("Display_Name")
MEMBER_USERNAME = MEMBER_COLUMNS.index("Discord_Username")
MEMBER_DISCORD_ID = MEMBER_COLUMNS.index("Discord_ID")
MEMBER_POINTS = MEMBER_COLUMNS.index("Points")
MEMBER_LAST_UPDATE = MEMBER_COLUMNS.index("Last_Update")

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


# ---------------------------------------------------------------------------
# Text helpers
# ---------------------------------------------------------------------------
def capitalize(value: str | None) -> str:
    """Capitalize each space-separated word: ``"ada LOVELACE"`` → ``"Ada Lovelace"``."""
    if not value or not isinstance(value, str):
        return ""
    return " ".join(word[:1].upper() + word[1:].lower() for word in value.split(" "))


def column_letter(count: int) -> str:
    """A1-notation letter of the *count*-th column (1 → ``A``, 27 → ``AA``)."""
    letters = ""
    while count > 0:
        count, rem = divmod(count - 1, 26)
        letters = chr(65 + rem) + letters
    return letters

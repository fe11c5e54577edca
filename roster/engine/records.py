"""
roster.engine.records — Event, Submission and MemberAggregate
==============================================================

The typed records the reconciliation pipeline works on.  Raw sheet rows
are converted here (``from_row``) so the matcher and aggregator never see
strings they would have to parse.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, tzinfo

from roster.constants import SUBMISSION_FIELDS, TIMESTAMP_FORMAT
from roster.engine.parsing import Number, parse_date, parse_time, parse_timestamp
from roster.errors import MalformedSubmissionError

__all__ = [
    "Event",
    "MemberAggregate",
    "Submission",
    "net_id_from_email",
    "normalize_code",
    "normalize_net_id",
]


def normalize_code(code: object) -> str:
    """Event codes compare trimmed and case-insensitively."""
    return str(code or "").strip().casefold()


def normalize_net_id(net_id: object) -> str:
    """NetIDs compare trimmed and case-insensitively."""
    return str(net_id or "").strip().casefold()


def net_id_from_email(email: str) -> str:
    """Local part of *email* (before the first ``@``), or the whole string."""
    email = (email or "").strip()
    local, sep, _ = email.partition("@")
    return local if sep else email


def _cell(row: Sequence, index: int) -> str:
    if index >= len(row) or row[index] is None:
        return ""
    return str(row[index]).strip()


# ---------------------------------------------------------------------------
# Event: one scheduled occurrence
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class Event:
    """One row of the event catalog."""

    date: date
    start_time: time
    end_time: time
    event_name: str
    event_type: str
    event_code: str

    @classmethod
    def from_row(cls, row: Sequence) -> Event:
        """Build from ``Date, StartTime, EndTime, EventName, EventType, EventCode``.

        Raises :class:`ValueError` when the date or times cannot be parsed.
        """
        row = list(row)
        return cls(
            date=parse_date(row[0] if row else None),
            start_time=parse_time(row[1] if len(row) > 1 else None),
            end_time=parse_time(row[2] if len(row) > 2 else None),
            event_name=_cell(row, 3),
            event_type=_cell(row, 4),
            event_code=_cell(row, 5),
        )

    @property
    def starts_at(self) -> datetime:
        return datetime.combine(self.date, self.start_time)

    @property
    def ends_at(self) -> datetime:
        return datetime.combine(self.date, self.end_time)

    def accepts(self, timestamp: datetime, tolerance: timedelta) -> bool:
        """True if *timestamp* counts as attendance for this occurrence.

        Same calendar date, and inside ``[start - tolerance, end + tolerance]``
        with both bounds inclusive.  Start and end are anchored on the event's
        own date; an end earlier than the start is not rolled to the next day.
        """
        if timestamp.date() != self.date:
            return False
        return self.starts_at - tolerance <= timestamp <= self.ends_at + tolerance


# ---------------------------------------------------------------------------
# Submission: one form response
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class Submission:
    """One attendance form response."""

    timestamp: datetime
    email: str
    event_code: str
    first_name: str
    last_name: str
    anonymous: str = ""
    row_number: int = 0  # 1-based sheet row, header is row 1

    @property
    def net_id(self) -> str:
        return net_id_from_email(self.email)

    @classmethod
    def from_row(
        cls,
        row: Sequence,
        row_number: int,
        columns: Sequence[str] = SUBMISSION_FIELDS,
        *,
        tz: tzinfo | None = None,
    ) -> Submission:
        """Build from a positional form row laid out as *columns*.

        Offset-aware timestamps are converted to *tz* (the sheet timezone).

        Raises :class:`MalformedSubmissionError` for an unreadable timestamp
        or an email with nothing usable as a netID.
        """
        row = list(row)
        cells = {name: (row[i] if i < len(row) else None) for i, name in enumerate(columns)}
        try:
            timestamp = parse_timestamp(cells.get("timestamp"), tz)
        except ValueError as exc:
            raise MalformedSubmissionError(row_number, f"bad timestamp ({exc})") from exc

        email = str(cells.get("email") or "").strip()
        if not net_id_from_email(email):
            raise MalformedSubmissionError(row_number, f"no netID in email {email!r}")

        def text(name: str) -> str:
            value = cells.get(name)
            return "" if value is None else str(value).strip()

        return cls(
            timestamp=timestamp,
            email=email,
            event_code=text("event_code"),
            first_name=text("first_name"),
            last_name=text("last_name"),
            anonymous=text("anonymous"),
            row_number=row_number,
        )


# ---------------------------------------------------------------------------
# MemberAggregate: accumulated per-member result of one run
# ---------------------------------------------------------------------------
@dataclass(slots=True)
class MemberAggregate:
    """Points and identity for one netID.

    Identity fields are set once, from the first-processed submission, and
    only ``points`` changes afterwards.
    """

    net_id: str
    first_name: str
    last_name: str
    anonymous: bool
    points: Number
    last_update: datetime

    def to_row(self) -> list:
        """Serialize to ``NetID, FirstName, LastName, Anonymous, Points, LastUpdate``."""
        points = self.points
        if isinstance(points, float) and points.is_integer():
            points = int(points)
        return [
            self.net_id,
            self.first_name,
            self.last_name,
            "Yes" if self.anonymous else "No",
            points,
            self.last_update.strftime(TIMESTAMP_FORMAT),
        ]

"""
roster.engine.catalog — Event Catalog & Point Schedule Loaders
===============================================================

Turns raw worksheet rows (header already stripped) into the two lookup
structures the matcher needs:

* :class:`EventCatalog` — events in sheet order, indexed by occurrence
  position, plus ``event_code → [positions]``.  A code may be reused by
  several occurrences; all of them are kept.
* :class:`PointSchedule` — ``event_type → points`` with a default.

Occurrence positions are only meaningful within one run; they are the
identity the claim tracker keys on.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from roster.engine.parsing import Number, parse_points
from roster.engine.records import Event, normalize_code
from roster.errors import MissingSheetError

logger = logging.getLogger(__name__)

__all__ = ["EventCatalog", "PointSchedule", "load_event_catalog", "load_point_schedule"]


def _is_blank(row: Sequence) -> bool:
    return all(str(cell).strip() == "" for cell in row if cell is not None)


# ---------------------------------------------------------------------------
# Event catalog
# ---------------------------------------------------------------------------
@dataclass
class EventCatalog:
    """Events by occurrence position, and positions by event code."""

    events: list[Event] = field(default_factory=list)
    code_index: dict[str, list[int]] = field(default_factory=dict)

    def add(self, event: Event) -> int:
        """Append *event* and return its occurrence position."""
        position = len(self.events)
        self.events.append(event)
        self.code_index.setdefault(normalize_code(event.event_code), []).append(position)
        return position

    def occurrences(self, event_code: str) -> list[int]:
        """Positions sharing *event_code*, in catalog order (empty if unknown)."""
        return self.code_index.get(normalize_code(event_code), [])

    def __getitem__(self, position: int) -> Event:
        return self.events[position]

    def __len__(self) -> int:
        return len(self.events)


def load_event_catalog(
    rows: Iterable[Sequence] | None, *, sheet_name: str = "Events"
) -> EventCatalog:
    """Build an :class:`EventCatalog` from event rows in sheet order.

    ``None`` means the backing worksheet is absent and raises
    :class:`MissingSheetError`.  Blank rows are ignored; rows with an
    unreadable date or time, or without a code, are logged and left out.
    """
    if rows is None:
        raise MissingSheetError(sheet_name)

    catalog = EventCatalog()
    for row_number, row in enumerate(rows, start=2):
        if _is_blank(row):
            continue
        try:
            event = Event.from_row(row)
        except ValueError as exc:
            logger.warning("%s row %d skipped: %s", sheet_name, row_number, exc)
            continue
        if not normalize_code(event.event_code):
            logger.warning("%s row %d skipped: no event code", sheet_name, row_number)
            continue
        catalog.add(event)

    logger.debug(
        "Loaded %d events (%d distinct codes) from %s",
        len(catalog), len(catalog.code_index), sheet_name,
    )
    return catalog


# ---------------------------------------------------------------------------
# Point schedule
# ---------------------------------------------------------------------------
@dataclass
class PointSchedule:
    """``event_type → points`` with a fallback for unknown types."""

    points: dict[str, Number] = field(default_factory=dict)
    default_points: Number = 1

    def points_for(self, event_type: str) -> Number:
        return self.points.get((event_type or "").strip(), self.default_points)

    def __len__(self) -> int:
        return len(self.points)


def load_point_schedule(
    rows: Iterable[Sequence] | None,
    *,
    default_points: Number = 1,
    sheet_name: str = "Points",
) -> PointSchedule:
    """Build a :class:`PointSchedule` from ``EventType, Points`` rows.

    Later rows overwrite earlier rows with the same type.  ``None`` raises
    :class:`MissingSheetError`.
    """
    if rows is None:
        raise MissingSheetError(sheet_name)

    schedule = PointSchedule(default_points=default_points)
    for row_number, row in enumerate(rows, start=2):
        if _is_blank(row):
            continue
        row = list(row)
        event_type = str(row[0]).strip() if row and row[0] is not None else ""
        if not event_type:
            continue
        try:
            schedule.points[event_type] = parse_points(row[1] if len(row) > 1 else None)
        except ValueError as exc:
            logger.warning("%s row %d skipped: %s", sheet_name, row_number, exc)
    return schedule

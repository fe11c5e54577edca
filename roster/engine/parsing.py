"""
roster.engine.parsing — Sheet Cell Parsing
===========================================

Google Sheets hands back formatted strings (``"1/10/2024"``,
``"6:00:00 PM"``, ``"1/10/2024 17:35:12"``), while tests and callers may
pass real ``date``/``time``/``datetime`` objects.  These helpers accept
both and always return naive local values.  Timestamps that carry a UTC
offset are converted to the sheet's timezone when one is given, then made
naive; without one the offset is dropped as written.

All parsers raise :class:`ValueError` on input they cannot read.
"""

from __future__ import annotations

import math
from datetime import date, datetime, time, tzinfo

DATE_FORMATS: tuple[str, ...] = ("%Y-%m-%d", "%m/%d/%Y", "%m/%d/%y")
TIME_FORMATS: tuple[str, ...] = (
    "%H:%M:%S",
    "%H:%M",
    "%I:%M:%S %p",
    "%I:%M %p",
    "%I:%M%p",
    "%I %p",
)

Number = int | float


def _clean(value: object) -> str:
    text = "" if value is None else str(value).strip()
    if not text:
        raise ValueError("empty value")
    return text


def parse_date(value: object) -> date:
    """Parse a calendar date cell."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = _clean(value)
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    raise ValueError(f"unrecognised date: {text!r}")


def parse_time(value: object) -> time:
    """Parse a time-of-day cell (24h or 12h with AM/PM)."""
    if isinstance(value, datetime):
        return value.time()
    if isinstance(value, time):
        return value
    text = _clean(value).upper()
    for fmt in TIME_FORMATS:
        try:
            return datetime.strptime(text, fmt).time()
        except ValueError:
            continue
    raise ValueError(f"unrecognised time: {text!r}")


def _to_local(value: datetime, tz: tzinfo | None) -> datetime:
    if tz is not None and value.tzinfo is not None:
        value = value.astimezone(tz)
    return value.replace(tzinfo=None)


def parse_timestamp(value: object, tz: tzinfo | None = None) -> datetime:
    """Parse a form timestamp (date and time of day in one cell).

    An offset-aware value is shifted into *tz* before the offset is dropped.
    """
    if isinstance(value, datetime):
        return _to_local(value, tz)
    text = _clean(value)
    try:
        return _to_local(datetime.fromisoformat(text), tz)
    except ValueError:
        pass
    day_part, _, time_part = text.partition(" ")
    if not time_part:
        raise ValueError(f"timestamp has no time of day: {text!r}")
    return datetime.combine(parse_date(day_part), parse_time(time_part))


def parse_points(value: object) -> Number:
    """Parse a point value; integral values come back as ``int``."""
    if isinstance(value, bool):
        raise ValueError("boolean is not a point value")
    if isinstance(value, int | float):
        number = value
    else:
        number = float(_clean(value).replace(",", ""))
    if not math.isfinite(number):
        raise ValueError(f"not a finite point value: {value!r}")
    if number < 0:
        raise ValueError(f"negative point value: {value!r}")
    if isinstance(number, float) and number.is_integer():
        return int(number)
    return number

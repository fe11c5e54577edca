"""
roster.errors — Exception Hierarchy
====================================

Every error Roster raises on purpose derives from :class:`RosterError` so
invokers (bot commands, the webhook, the timer) can catch one type.
"""

from __future__ import annotations


class RosterError(Exception):
    """Base class for all Roster errors."""


class ConfigError(RosterError):
    """``config.yaml`` contains a value Roster cannot use."""


class MissingSheetError(RosterError):
    """A required worksheet does not exist.  Fatal for the run."""

    def __init__(self, sheet_name: str) -> None:
        super().__init__(f"Worksheet not found: {sheet_name!r}")
        self.sheet_name = sheet_name


class MalformedSubmissionError(RosterError):
    """A single form submission could not be parsed.

    Raised while parsing and caught by the aggregator, which skips the row.
    """

    def __init__(self, row_number: int, reason: str) -> None:
        super().__init__(f"Submission row {row_number}: {reason}")
        self.row_number = row_number
        self.reason = reason


class SheetWriteError(RosterError):
    """Writing to a worksheet failed.  No retry is attempted."""

    def __init__(self, sheet_name: str, detail: str) -> None:
        super().__init__(f"Failed to write worksheet {sheet_name!r}: {detail}")
        self.sheet_name = sheet_name

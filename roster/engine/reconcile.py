"""
roster.engine.reconcile — Attendance Reconciliation Pipeline
=============================================================

Pure calculation pipeline: no Sheets I/O, no DB I/O inside the engine.

Pipeline stages::

    rows → load catalog / schedule / submissions
         → reverse storage order → match (claim tracker) → aggregate
         → record rows

Submissions are processed in **reverse storage order** (the last sheet row
first).  That order decides two things: which duplicate of a
``(netID, occurrence)`` pair is credited, and whose name and anonymity
answer seed a member's aggregate.  Later-processed submissions only add
points to an existing aggregate.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import asdict, dataclass, field
from datetime import tzinfo

from roster.config import ReconcileSettings, SheetLayout
from roster.constants import SUBMISSION_FIELDS
from roster.engine.catalog import (
    EventCatalog,
    PointSchedule,
    load_event_catalog,
    load_point_schedule,
)
from roster.engine.matcher import ClaimTracker, MatchStatus, match_submission
from roster.engine.records import MemberAggregate, Submission
from roster.errors import MalformedSubmissionError, MissingSheetError

logger = logging.getLogger(__name__)

__all__ = [
    "ReconcileOutcome",
    "ReconcileStats",
    "aggregate_members",
    "parse_submissions",
    "reconcile",
    "reconcile_outcome",
    "to_record_rows",
]


# ---------------------------------------------------------------------------
# Outcome types
# ---------------------------------------------------------------------------
@dataclass
class ReconcileStats:
    """Per-run counters, one per submission fate."""

    submissions: int = 0
    matched: int = 0
    invalid_code: int = 0
    out_of_window: int = 0
    duplicate: int = 0
    malformed: int = 0

    def record(self, status: MatchStatus) -> None:
        if status is MatchStatus.MATCHED:
            self.matched += 1
        elif status is MatchStatus.INVALID_CODE:
            self.invalid_code += 1
        elif status is MatchStatus.OUT_OF_WINDOW:
            self.out_of_window += 1
        else:
            self.duplicate += 1

    def as_dict(self) -> dict[str, int]:
        return asdict(self)


@dataclass
class ReconcileOutcome:
    """Aggregates in first-encounter order plus the run counters."""

    members: dict[str, MemberAggregate] = field(default_factory=dict)
    stats: ReconcileStats = field(default_factory=ReconcileStats)


# ---------------------------------------------------------------------------
# Stage 1: submission parsing
# ---------------------------------------------------------------------------
def parse_submissions(
    rows: Iterable[Sequence] | None,
    columns: Sequence[str] = SUBMISSION_FIELDS,
    *,
    sheet_name: str = "Form Responses 1",
    tz: tzinfo | None = None,
) -> tuple[list[Submission], list[MalformedSubmissionError]]:
    """Parse form rows (header excluded) in storage order.

    Unreadable rows are returned as errors instead of raised so one bad row
    never aborts the batch.  Blank rows are dropped silently.
    """
    if rows is None:
        raise MissingSheetError(sheet_name)

    submissions: list[Submission] = []
    errors: list[MalformedSubmissionError] = []
    for row_number, row in enumerate(rows, start=2):
        if all(str(cell).strip() == "" for cell in row if cell is not None):
            continue
        try:
            submissions.append(Submission.from_row(row, row_number, columns, tz=tz))
        except MalformedSubmissionError as exc:
            logger.warning("Skipping malformed submission: %s", exc)
            errors.append(exc)
    return submissions, errors


# ---------------------------------------------------------------------------
# Stage 2: matching + aggregation
# ---------------------------------------------------------------------------
def aggregate_members(
    submissions: Sequence[Submission],
    catalog: EventCatalog,
    schedule: PointSchedule,
    *,
    settings: ReconcileSettings | None = None,
) -> ReconcileOutcome:
    """Fold *submissions* (given in storage order) into member aggregates.

    This is a PURE function: a fresh :class:`ClaimTracker` is created per
    call and nothing outside the returned outcome is touched.
    """
    settings = settings or ReconcileSettings()
    tolerance = settings.tolerance
    tracker = ClaimTracker()
    outcome = ReconcileOutcome()
    outcome.stats.submissions = len(submissions)

    for submission in reversed(submissions):
        result = match_submission(submission, catalog, tracker, tolerance=tolerance)
        outcome.stats.record(result.status)
        if not result.matched:
            logger.debug(
                "Row %d (%s, code %r): %s",
                submission.row_number, submission.net_id,
                submission.event_code, result.status,
            )
            continue

        increment = schedule.points_for(result.event.event_type)
        net_id = submission.net_id
        member = outcome.members.get(net_id)
        if member is None:
            outcome.members[net_id] = MemberAggregate(
                net_id=net_id,
                first_name=submission.first_name,
                last_name=submission.last_name,
                anonymous=settings.is_anonymous(submission.anonymous),
                points=increment,
                last_update=submission.timestamp,
            )
        else:
            member.points += increment

    return outcome


# ---------------------------------------------------------------------------
# Stage 3: record serialization
# ---------------------------------------------------------------------------
def to_record_rows(members: Mapping[str, MemberAggregate]) -> list[list]:
    """One record row per member, in the mapping's insertion order."""
    return [member.to_row() for member in members.values()]


# ---------------------------------------------------------------------------
# Full pipeline
# ---------------------------------------------------------------------------
def reconcile_outcome(
    submission_rows: Iterable[Sequence] | None,
    event_rows: Iterable[Sequence] | None,
    point_schedule_rows: Iterable[Sequence] | None,
    *,
    settings: ReconcileSettings | None = None,
    layout: SheetLayout | None = None,
    submission_columns: Sequence[str] | None = None,
    tz: tzinfo | None = None,
) -> ReconcileOutcome:
    """Run the whole pipeline on raw rows and return the typed outcome.

    *layout* names the worksheets in ``MissingSheetError`` and supplies the
    form column order unless *submission_columns* overrides it.  *tz* is
    the sheet timezone that offset-aware timestamps are converted to.
    """
    settings = settings or ReconcileSettings()
    layout = layout or SheetLayout()
    catalog = load_event_catalog(event_rows, sheet_name=layout.events)
    schedule = load_point_schedule(
        point_schedule_rows,
        default_points=settings.default_points,
        sheet_name=layout.point_schedule,
    )
    submissions, errors = parse_submissions(
        submission_rows,
        submission_columns or layout.submission_columns,
        sheet_name=layout.submissions,
        tz=tz,
    )

    outcome = aggregate_members(submissions, catalog, schedule, settings=settings)
    outcome.stats.submissions += len(errors)
    outcome.stats.malformed = len(errors)
    return outcome


def reconcile(
    submission_rows: Iterable[Sequence] | None,
    event_rows: Iterable[Sequence] | None,
    point_schedule_rows: Iterable[Sequence] | None,
    *,
    settings: ReconcileSettings | None = None,
    layout: SheetLayout | None = None,
    submission_columns: Sequence[str] | None = None,
    tz: tzinfo | None = None,
) -> list[list]:
    """Raw rows in, record rows out.

    The caller persists the result with ``SheetsGateway.write_record_rows``.
    """
    outcome = reconcile_outcome(
        submission_rows,
        event_rows,
        point_schedule_rows,
        settings=settings,
        layout=layout,
        submission_columns=submission_columns,
        tz=tz,
    )
    return to_record_rows(outcome.members)

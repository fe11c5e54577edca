"""
roster.services.reconciliation_service — Attendance Reconciliation Runs
========================================================================

Wraps the pure engine pipeline with the I/O around it.

How a run works:
    1. Load the event catalog, point schedule, and form submissions from
       the spreadsheet.  A missing worksheet aborts here, before any write.
    2. Compute the member aggregates with ``reconcile_outcome``.
    3. Overwrite the record table below its header.
    4. Record the run in ``reconciliation_runs`` (when a database is set up)
       and log a one-line summary.

Runs are serialized inside one process: a second caller blocks until the
first run has written.  Separate processes are not coordinated.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime, tzinfo

from sqlalchemy import Engine, select

from roster.config import ReconcileSettings, SheetLayout
from roster.database.engine import get_session
from roster.database.models import ReconciliationRun, RunStatus, RunTrigger
from roster.engine.reconcile import reconcile_outcome, to_record_rows
from roster.services.sheets_service import SheetsGateway

logger = logging.getLogger(__name__)


@dataclass
class RunSummary:
    """What one reconciliation pass did."""

    trigger: str
    status: str
    started_at: datetime
    finished_at: datetime
    members_written: int = 0
    stats: dict[str, int] = field(default_factory=dict)
    error: str | None = None
    run_id: int | None = None

    @property
    def duration_seconds(self) -> float:
        return (self.finished_at - self.started_at).total_seconds()

    def to_dict(self) -> dict:
        data = asdict(self)
        data["started_at"] = self.started_at.isoformat()
        data["finished_at"] = self.finished_at.isoformat()
        data["duration_seconds"] = round(self.duration_seconds, 3)
        return data


class ReconciliationService:
    """Runs reconciliation against one spreadsheet.

    Parameters
    ----------
    gateway : SheetsGateway (or anything with the same row methods).
    settings : Tolerance, default points and anonymity tokens.
    layout : Worksheet names (for error messages) and the form column order.
    tz : Sheet timezone for offset-aware form timestamps.
    engine : Optional SQLAlchemy engine for run history.
    """

    def __init__(
        self,
        gateway: SheetsGateway,
        settings: ReconcileSettings | None = None,
        layout: SheetLayout | None = None,
        engine: Engine | None = None,
        tz: tzinfo | None = None,
    ) -> None:
        self.gateway = gateway
        self.settings = settings or ReconcileSettings()
        self.layout = layout or SheetLayout()
        self.tz = tz
        self.engine = engine
        self._lock = threading.Lock()

    def run(self, trigger: str = RunTrigger.MANUAL) -> RunSummary:
        """Reconcile and overwrite the record table.

        Errors (``MissingSheetError``, ``SheetWriteError``, …) are recorded
        as a failed run and then re-raised to the invoker.
        """
        with self._lock:
            started = datetime.now(UTC)
            try:
                outcome = reconcile_outcome(
                    self.gateway.load_submission_rows(),
                    self.gateway.load_event_rows(),
                    self.gateway.load_point_schedule_rows(),
                    settings=self.settings,
                    layout=self.layout,
                    tz=self.tz,
                )
                rows = to_record_rows(outcome.members)
                self.gateway.write_record_rows(rows)
            except Exception as exc:
                summary = RunSummary(
                    trigger=str(trigger),
                    status=RunStatus.FAILED,
                    started_at=started,
                    finished_at=datetime.now(UTC),
                    error=str(exc),
                )
                self._record(summary)
                logger.error("Reconciliation (%s) failed: %s", trigger, exc)
                raise

            summary = RunSummary(
                trigger=str(trigger),
                status=RunStatus.OK,
                started_at=started,
                finished_at=datetime.now(UTC),
                members_written=len(rows),
                stats=outcome.stats.as_dict(),
            )
            self._record(summary)

        stats = summary.stats
        logger.info(
            "Reconciliation (%s): %d submissions, %d matched, %d duplicate, "
            "%d invalid code, %d out of window, %d malformed → %d members",
            trigger, stats["submissions"], stats["matched"], stats["duplicate"],
            stats["invalid_code"], stats["out_of_window"], stats["malformed"],
            summary.members_written,
        )
        return summary

    def _record(self, summary: RunSummary) -> None:
        """Store *summary* in ``reconciliation_runs``.

        Run history never changes a run's outcome: a failed insert is logged
        and ``summary.run_id`` stays ``None``.
        """
        if self.engine is None:
            return
        try:
            self._insert_run(summary)
        except Exception:
            logger.exception("Failed to record reconciliation run (%s)", summary.trigger)

    def _insert_run(self, summary: RunSummary) -> None:
        run = ReconciliationRun(
            trigger=summary.trigger,
            status=summary.status,
            started_at=summary.started_at,
            finished_at=summary.finished_at,
            submissions=summary.stats.get("submissions", 0),
            matched=summary.stats.get("matched", 0),
            members_written=summary.members_written,
            stats=summary.stats or None,
            error=summary.error,
        )
        with get_session(self.engine) as session:
            session.add(run)
            session.flush()
            summary.run_id = run.id


def recent_runs(engine: Engine, limit: int = 20) -> list[dict]:
    """Newest-first run history as plain dicts."""
    with get_session(engine) as session:
        runs = session.scalars(
            select(ReconciliationRun)
            .order_by(ReconciliationRun.started_at.desc(), ReconciliationRun.id.desc())
            .limit(limit)
        ).all()
        return [
            {
                "id": r.id,
                "trigger": r.trigger,
                "status": r.status,
                "started_at": r.started_at.isoformat() if r.started_at else None,
                "finished_at": r.finished_at.isoformat() if r.finished_at else None,
                "submissions": r.submissions,
                "matched": r.matched,
                "members_written": r.members_written,
                "stats": r.stats,
                "error": r.error,
            }
            for r in runs
        ]

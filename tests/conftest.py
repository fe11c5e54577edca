"""
tests/conftest.py — Shared Test Fixtures
=========================================
"""

from __future__ import annotations

import os

# ---------------------------------------------------------------------------
# Ensure a valid JWT_SECRET is always set for test runs, before anything
# reads it through roster.services.token_service.
# ---------------------------------------------------------------------------
_TEST_JWT_SECRET = "test-secret-for-pytest-only-" + "x" * 40  # > 32 chars
os.environ.setdefault("JWT_SECRET", _TEST_JWT_SECRET)

import pytest  # noqa: E402
from sqlalchemy import Engine, create_engine  # noqa: E402
from sqlalchemy.dialects.postgresql import JSONB as PG_JSONB  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402

from roster.config import SheetLayout  # noqa: E402
from roster.constants import MEMBER_COLUMNS  # noqa: E402
from roster.database.models import Base  # noqa: E402
from roster.errors import MissingSheetError  # noqa: E402

_jsonb_sqlite_registered = False


def _register_jsonb_sqlite_compat():
    """Register SQLite compilation for PG JSONB type (idempotent).

    Also maps BigInteger → INTEGER so autoincrement works on SQLite.
    """
    global _jsonb_sqlite_registered
    if _jsonb_sqlite_registered:
        return
    from sqlalchemy import BigInteger
    from sqlalchemy.ext.compiler import compiles

    @compiles(PG_JSONB, "sqlite")
    def _compile_jsonb_as_text(type_, compiler, **kw):
        return "TEXT"

    @compiles(BigInteger, "sqlite")
    def _compile_bigint_as_integer(type_, compiler, **kw):
        return "INTEGER"

    _jsonb_sqlite_registered = True


_register_jsonb_sqlite_compat()


@pytest.fixture
def db_engine() -> Engine:
    """In-memory SQLite engine with all Roster tables.

    StaticPool so the worker threads used by ``run_db`` share one database.
    """
    from sqlalchemy.pool import StaticPool

    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture
def db_session(db_engine: Engine):
    with Session(db_engine) as session:
        yield session
        session.rollback()


# ---------------------------------------------------------------------------
# Fake spreadsheet
# ---------------------------------------------------------------------------
class FakeGateway:
    """In-memory stand-in for :class:`SheetsGateway`.

    Each table is a list of data rows (no header); ``None`` simulates a
    missing worksheet.  ``member_rows`` includes its header row.
    """

    def __init__(
        self,
        *,
        events: list[list] | None = None,
        points: list[list] | None = None,
        submissions: list[list] | None = None,
        records: list[list] | None = None,
        members: list[list] | None = None,
    ) -> None:
        self.layout = SheetLayout()
        self.events = [] if events is None else events
        self.points = [] if points is None else points
        self.submissions = [] if submissions is None else submissions
        self.records = [] if records is None else records
        self.member_rows = members if members is not None else [list(MEMBER_COLUMNS)]
        self.record_writes: list[list[list]] = []
        self.member_writes: list[list[list]] = []
        self.write_error: Exception | None = None

    def _rows(self, rows, name):
        if rows is None:
            raise MissingSheetError(name)
        return [list(r) for r in rows]

    def load_event_rows(self):
        return self._rows(self.events, self.layout.events)

    def load_point_schedule_rows(self):
        return self._rows(self.points, self.layout.point_schedule)

    def load_submission_rows(self):
        return self._rows(self.submissions, self.layout.submissions)

    def load_record_rows(self):
        return self._rows(self.records, self.layout.records)

    def write_record_rows(self, rows):
        if self.write_error is not None:
            raise self.write_error
        self.record_writes.append(rows)
        self.records = [list(r) for r in rows]

    def load_member_rows(self):
        return [list(r) for r in self.member_rows]

    def write_member_rows(self, rows):
        self.member_writes.append(rows)
        self.member_rows = [list(r) for r in rows]


# ---------------------------------------------------------------------------
# Sample sheet data
# ---------------------------------------------------------------------------
EVENT_ROWS = [
    ["2024-01-10", "18:00", "19:00", "General Meeting", "Meeting", "ABC123"],
    ["2024-01-17", "18:00", "19:00", "General Meeting", "Meeting", "ABC123"],
    ["2024-01-12", "12:00", "14:00", "Park Cleanup", "Volunteer", "CLEAN1"],
    ["2024-01-20", "10:00", "11:00", "Mystery Event", "Social", "MYST"],
]

POINT_ROWS = [
    ["Meeting", "1"],
    ["Volunteer", "3"],
]


def submission(ts: str, email: str, code: str, first: str = "Ada",
               last: str = "Lovelace", anonymous: str = "No") -> list[str]:
    """One form row in the default column order."""
    return [ts, email, code, first, last, anonymous]


@pytest.fixture
def event_rows() -> list[list[str]]:
    return [list(r) for r in EVENT_ROWS]


@pytest.fixture
def point_rows() -> list[list[str]]:
    return [list(r) for r in POINT_ROWS]


@pytest.fixture
def fake_gateway(event_rows, point_rows) -> FakeGateway:
    return FakeGateway(events=event_rows, points=point_rows)


@pytest.fixture
def client():
    """FastAPI TestClient with raise_server_exceptions=False."""
    from fastapi.testclient import TestClient

    from roster.api.main import app

    return TestClient(app, raise_server_exceptions=False)

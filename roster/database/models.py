"""
roster.database.models — SQLAlchemy 2.0 Data Models
====================================================

The spreadsheet stays the system of record for points.  The database only
keeps what a spreadsheet is bad at: an append-only history.

Tables:
- reconciliation_runs — One row per reconciliation pass (trigger, counts, status)
- admin_log           — Append-only audit trail of /member-update changes
"""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import JSON, BigInteger, DateTime, Index, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests).
JSONType = JSON().with_variant(JSONB(), "postgresql")


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------
class Base(DeclarativeBase):
    """Shared base for all Roster ORM models."""


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class RunTrigger(enum.StrEnum):
    """What started a reconciliation pass."""
    TIMER = "timer"
    WEBHOOK = "webhook"
    COMMAND = "command"
    MANUAL = "manual"


class RunStatus(enum.StrEnum):
    OK = "ok"
    FAILED = "failed"


# ---------------------------------------------------------------------------
# Reconciliation runs: observability only, never read by the algorithm
# ---------------------------------------------------------------------------
class ReconciliationRun(Base):
    __tablename__ = "reconciliation_runs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    trigger: Mapped[str] = mapped_column(String(20), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    finished_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    submissions: Mapped[int] = mapped_column(Integer, default=0)
    matched: Mapped[int] = mapped_column(Integer, default=0)
    members_written: Mapped[int] = mapped_column(Integer, default=0)
    stats: Mapped[dict | None] = mapped_column(JSONType, default=None)
    error: Mapped[str | None] = mapped_column(Text, default=None)

    __table_args__ = (
        Index("ix_reconciliation_runs_started", "started_at"),
    )

    def __repr__(self) -> str:
        return f"<ReconciliationRun id={self.id} trigger={self.trigger} status={self.status}>"


# ---------------------------------------------------------------------------
# Admin log: append-only audit of member sheet mutations
# ---------------------------------------------------------------------------
class AdminLog(Base):
    __tablename__ = "admin_log"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    actor_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    actor_name: Mapped[str | None] = mapped_column(String(100), default=None)
    action_type: Mapped[str] = mapped_column(String(30), nullable=False)
    target_sheet: Mapped[str] = mapped_column(String(100), nullable=False)
    target_id: Mapped[str | None] = mapped_column(String(100), default=None)
    before_snapshot: Mapped[dict | None] = mapped_column(JSONType, default=None)
    after_snapshot: Mapped[dict | None] = mapped_column(JSONType, default=None)
    reason: Mapped[str | None] = mapped_column(Text, default=None)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        Index("ix_admin_log_actor", "actor_id"),
    )

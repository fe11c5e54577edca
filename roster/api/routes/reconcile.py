"""
roster.api.routes.reconcile — Reconciliation Webhook
=====================================================

Token-protected routes:
    - ``POST /api/reconcile``       run a reconciliation (form-submit webhook)
    - ``GET  /api/reconcile/runs``  recent run history
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlalchemy import Engine

from roster.api.deps import TokenPayload, get_engine, get_reconciler
from roster.database.models import RunTrigger
from roster.errors import MissingSheetError, SheetWriteError
from roster.services.reconciliation_service import ReconciliationService, recent_runs

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/reconcile", tags=["reconcile"])


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------
class RunSummaryResponse(BaseModel):
    """Result of one reconciliation run."""
    run_id: int | None
    trigger: str
    status: str
    started_at: str
    finished_at: str
    duration_seconds: float
    members_written: int
    stats: dict[str, int]
    error: str | None


class RunHistoryRow(BaseModel):
    id: int
    trigger: str
    status: str
    started_at: str | None
    finished_at: str | None
    submissions: int
    matched: int
    members_written: int
    stats: dict[str, Any] | None
    error: str | None


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------
@router.post("", response_model=RunSummaryResponse)
def trigger_reconcile(
    token: TokenPayload,
    reconciler: ReconciliationService = Depends(get_reconciler),
):
    """Run a reconciliation.  Blocks until the record table is written."""
    logger.info("Webhook reconciliation requested by %s", token.get("sub"))
    try:
        summary = reconciler.run(RunTrigger.WEBHOOK)
    except MissingSheetError as exc:
        raise HTTPException(503, str(exc))
    except SheetWriteError as exc:
        raise HTTPException(502, str(exc))
    return summary.to_dict()


@router.get("/runs", response_model=list[RunHistoryRow])
def list_runs(
    token: TokenPayload,
    limit: int = Query(20, ge=1, le=200),
    engine: Engine | None = Depends(get_engine),
):
    """Newest-first run history.  Empty when no database is configured."""
    if engine is None:
        return []
    return recent_runs(engine, limit)

"""
roster.api.main — FastAPI application entry point
==================================================

Receives the form-submit webhook that triggers a reconciliation.

Run with::

    uvicorn roster.api.main:app --port 8000
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI

load_dotenv()

from roster.api.routes.reconcile import router as reconcile_router  # noqa: E402

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Roster API started")
    yield
    logger.info("Roster API shutting down")


app = FastAPI(
    title="Roster API",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(reconcile_router, prefix="/api")


@app.get("/api/health")
def health():
    return {"status": "ok"}

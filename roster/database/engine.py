"""
roster.database.engine — Database Connection & Async Helper
============================================================

Discord bots run on an ``asyncio`` event loop, while SQLAlchemy and gspread
are **synchronous**.  Calling either directly from a cog freezes the bot
until the call returns.

The bridge:

    1. A slash command or task loop fires (async world).
    2. The cog calls ``await run_db(some_function, arg1, arg2)``.
    3. ``run_db`` ships the synchronous function to a thread via
       ``asyncio.to_thread()``.
    4. The blocking work happens on a background thread.
    5. The result is awaited back in the cog.

The database is optional: without ``DATABASE_URL`` the bot still runs and
simply keeps no run history or audit log.

Usage::

    from roster.database.engine import create_db_engine, init_db, run_db

    engine = create_db_engine()          # reads DATABASE_URL from .env
    init_db(engine)                      # CREATE TABLE IF NOT EXISTS …
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Callable
from contextlib import contextmanager
from typing import ParamSpec, TypeVar

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session

from roster.database.models import Base

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")


# ---------------------------------------------------------------------------
# Engine creation
# ---------------------------------------------------------------------------
def create_db_engine(url: str | None = None) -> Engine:
    """Build a SQLAlchemy :class:`Engine` from *url* or ``DATABASE_URL``.

    Raises
    ------
    RuntimeError
        If neither is set.
    """
    url = url or os.getenv("DATABASE_URL")
    if not url:
        raise RuntimeError(
            "DATABASE_URL is not set.  "
            "Copy .env.example → .env and set a valid database URL."
        )

    options: dict = {"echo": False, "pool_pre_ping": True}
    if not url.startswith("sqlite"):
        options.update(pool_size=5, max_overflow=10, pool_timeout=10, pool_recycle=3600)

    engine = create_engine(url, **options)
    logger.info("Database engine created → %s", engine.url.host or engine.url.database)
    return engine


def create_optional_engine() -> Engine | None:
    """Return an engine when ``DATABASE_URL`` is set, else ``None``."""
    if not os.getenv("DATABASE_URL"):
        logger.warning("DATABASE_URL not set — run history and audit log disabled")
        return None
    engine = create_db_engine()
    init_db(engine)
    return engine


# ---------------------------------------------------------------------------
# Schema initialization
# ---------------------------------------------------------------------------
def init_db(engine: Engine) -> None:
    """Create all tables defined in :mod:`roster.database.models`.

    Safe to call on every startup (``CREATE TABLE IF NOT EXISTS``).
    """
    Base.metadata.create_all(engine)
    logger.info("Database tables verified / created.")


# ---------------------------------------------------------------------------
# Session helper
# ---------------------------------------------------------------------------
@contextmanager
def get_session(engine: Engine):
    """Yield a :class:`Session` that auto-commits on success and rolls back
    on exception.
    """
    session = Session(engine)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


# ---------------------------------------------------------------------------
# Async bridge
# ---------------------------------------------------------------------------
async def run_db(func: Callable[P, T], *args: P.args, **kwargs: P.kwargs) -> T:
    """Run a **synchronous** function (DB or Sheets I/O) on a background thread.

    Every blocking call in a cog goes through this wrapper::

        summary = await run_db(self.bot.reconciler.run, RunTrigger.COMMAND)
    """
    return await asyncio.to_thread(func, *args, **kwargs)

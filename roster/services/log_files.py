"""
roster.services.log_files — Daily Log Files
============================================

One log file per local calendar day, ``<log_dir>/bot-YYYY-MM-DD.log``.
:class:`DailyFileHandler` plugs into Python's ``logging`` framework, opens
a new file when the local date changes, and prunes files older than the
retention window.

``/member-logs`` reads these files back through :func:`tail_log`,
:func:`log_path_for`, and :func:`clear_log`.
"""

from __future__ import annotations

import logging
import re
from datetime import date, datetime, timedelta
from pathlib import Path
from zoneinfo import ZoneInfo

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s"
FILE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
DEFAULT_RETENTION_DAYS = 14

_FILE_RE = re.compile(r"^bot-(\d{4}-\d{2}-\d{2})\.log$")


# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------
def parse_log_date(value: str | None, tz: ZoneInfo | None = None) -> date:
    """``YYYY-MM-DD`` → :class:`date`; ``None`` means today.  Raises ValueError."""
    if not value:
        return datetime.now(tz).date()
    return datetime.strptime(value.strip(), "%Y-%m-%d").date()


def log_path_for(log_dir: str | Path, day: date | str | None = None, tz: ZoneInfo | None = None) -> Path:
    """Path of the log file for *day*.

    A string is validated as ``YYYY-MM-DD`` so user input can never escape
    *log_dir*.
    """
    if not isinstance(day, date):
        day = parse_log_date(day, tz)
    return Path(log_dir) / f"bot-{day.isoformat()}.log"


def tail_log(path: Path, lines: int = 10) -> str | None:
    """Last *lines* lines of *path*, or ``None`` if the file doesn't exist."""
    if not path.exists():
        return None
    text = path.read_text(encoding="utf-8", errors="replace")
    return "\n".join(text.splitlines()[-max(lines, 1):])


def clear_log(path: Path) -> bool:
    """Truncate *path*.  Returns False if it doesn't exist."""
    if not path.exists():
        return False
    path.write_text("", encoding="utf-8")
    return True


def prune_logs(log_dir: str | Path, today: date, retention_days: int) -> list[Path]:
    """Delete ``bot-*.log`` files older than *retention_days*.  Returns what was removed."""
    cutoff = today - timedelta(days=retention_days)
    removed: list[Path] = []
    directory = Path(log_dir)
    if not directory.is_dir():
        return removed
    for path in sorted(directory.iterdir()):
        match = _FILE_RE.match(path.name)
        if not match:
            continue
        try:
            file_day = date.fromisoformat(match.group(1))
        except ValueError:
            continue
        if file_day < cutoff:
            path.unlink(missing_ok=True)
            removed.append(path)
    return removed


# ---------------------------------------------------------------------------
# Handler
# ---------------------------------------------------------------------------
class DailyFileHandler(logging.FileHandler):
    """File handler that writes to ``bot-<local date>.log`` and rolls at midnight."""

    def __init__(
        self,
        log_dir: str | Path = "logs",
        *,
        retention_days: int = DEFAULT_RETENTION_DAYS,
        tz: ZoneInfo | None = None,
    ) -> None:
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.retention_days = retention_days
        self.tz = tz
        self.current_day = self._today()
        super().__init__(log_path_for(self.log_dir, self.current_day), encoding="utf-8", delay=True)
        prune_logs(self.log_dir, self.current_day, self.retention_days)

    def _today(self) -> date:
        return datetime.now(self.tz).date()

    def emit(self, record: logging.LogRecord) -> None:
        today = self._today()
        if today != self.current_day:
            self._roll(today)
        super().emit(record)

    def _roll(self, today: date) -> None:
        if self.stream is not None:
            self.stream.close()
            self.stream = None
        self.current_day = today
        self.baseFilename = str(log_path_for(self.log_dir, today).resolve())
        prune_logs(self.log_dir, today, self.retention_days)


def setup_logging(
    log_dir: str | Path | None = None,
    *,
    retention_days: int = DEFAULT_RETENTION_DAYS,
    tz: ZoneInfo | None = None,
    level: int = logging.INFO,
) -> DailyFileHandler | None:
    """Console logging plus, when *log_dir* is given, the daily file handler."""
    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt="%H:%M:%S")
    if log_dir is None:
        return None
    handler = DailyFileHandler(log_dir, retention_days=retention_days, tz=tz)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=FILE_DATE_FORMAT))
    logging.getLogger().addHandler(handler)
    logger.info("Logging to %s (keeping %d days)", handler.baseFilename, retention_days)
    return handler

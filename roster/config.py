"""
roster.config — YAML Configuration Loader
==========================================

Reads ``config.yaml`` for soft settings: Discord identity, which roles may
run privileged commands, worksheet names and column order, and the
reconciliation tuning (tolerance window, default points, anonymity tokens).
Secrets (bot token, spreadsheet id, credentials path, JWT secret) come from
``.env`` and are only checked here, never stored on the config object.

Usage::

    from roster.config import load_config

    cfg = load_config()                       # reads ./config.yaml by default
    print(cfg.sheets.records)                 # "Records"
    print(cfg.reconciliation.tolerance)       # 0:30:00
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml

from roster.constants import SUBMISSION_FIELDS
from roster.errors import ConfigError

REQUIRED_ENV_VARS: tuple[str, ...] = (
    "DISCORD_TOKEN",
    "SPREADSHEET_ID",
    "GOOGLE_CREDENTIALS_PATH",
)

_TOKEN_RE = re.compile(r"[a-z0-9]+")


# ---------------------------------------------------------------------------
# Worksheet layout
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class SheetLayout:
    """Worksheet (tab) names and the form-response column order."""

    members: str = "Members"
    events: str = "Events"
    point_schedule: str = "Points"
    submissions: str = "Form Responses 1"
    records: str = "Records"
    submission_columns: tuple[str, ...] = SUBMISSION_FIELDS


# ---------------------------------------------------------------------------
# Reconciliation tuning
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class ReconcileSettings:
    """Knobs for one reconciliation pass.

    The anonymity policy: the free-text answer is lower-cased and split into
    word tokens.  A member is anonymous iff at least one affirmative token is
    present and no negative token is.  An empty answer is not anonymous.
    """

    tolerance_minutes: int = 30
    default_points: int | float = 1
    affirmative_tokens: frozenset[str] = frozenset({"yes", "y", "true", "anonymous"})
    negative_tokens: frozenset[str] = frozenset({"no", "n", "false", "not"})

    @property
    def tolerance(self) -> timedelta:
        return timedelta(minutes=self.tolerance_minutes)

    def is_anonymous(self, answer: str | None) -> bool:
        """Apply the anonymity policy to a form answer."""
        if not answer:
            return False
        tokens = set(_TOKEN_RE.findall(str(answer).lower()))
        if tokens & self.negative_tokens:
            return False
        return bool(tokens & self.affirmative_tokens)


# ---------------------------------------------------------------------------
# Typed settings object
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class RosterConfig:
    """Immutable configuration loaded from ``config.yaml``."""

    # Identity
    community_name: str
    guild_id: int  # Guild the slash commands are registered to

    # Discord role *names* allowed to edit others, read logs, and reconcile
    allowed_roles: tuple[str, ...] = ("membership",)

    # Local timezone of the spreadsheet and the log files
    timezone: str = "America/Chicago"

    # Logging
    log_dir: str = "logs"
    log_retention_days: int = 14

    # Timer-driven reconciliation
    reconcile_interval_minutes: int = 15

    sheets: SheetLayout = field(default_factory=SheetLayout)
    reconciliation: ReconcileSettings = field(default_factory=ReconcileSettings)

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


# ---------------------------------------------------------------------------
# Section parsers
# ---------------------------------------------------------------------------
def _parse_sheets(raw: dict | None) -> SheetLayout:
    raw = raw or {}
    defaults = SheetLayout()
    columns = tuple(raw.get("submission_columns") or defaults.submission_columns)
    missing = [name for name in SUBMISSION_FIELDS if name not in columns]
    if missing:
        raise ConfigError(
            f"sheets.submission_columns is missing required fields: {missing}"
        )
    return SheetLayout(
        members=raw.get("members", defaults.members),
        events=raw.get("events", defaults.events),
        point_schedule=raw.get("point_schedule", defaults.point_schedule),
        submissions=raw.get("submissions", defaults.submissions),
        records=raw.get("records", defaults.records),
        submission_columns=columns,
    )


def _parse_reconciliation(raw: dict | None) -> ReconcileSettings:
    raw = raw or {}
    defaults = ReconcileSettings()
    tolerance = int(raw.get("tolerance_minutes", defaults.tolerance_minutes))
    default_points = raw.get("default_points", defaults.default_points)
    if tolerance < 0:
        raise ConfigError("reconciliation.tolerance_minutes must be >= 0")
    if not isinstance(default_points, int | float) or default_points < 0:
        raise ConfigError("reconciliation.default_points must be a non-negative number")

    def _tokens(key: str, fallback: frozenset[str]) -> frozenset[str]:
        values = raw.get(key)
        if values is None:
            return fallback
        return frozenset(str(v).strip().lower() for v in values if str(v).strip())

    return ReconcileSettings(
        tolerance_minutes=tolerance,
        default_points=default_points,
        affirmative_tokens=_tokens("affirmative_tokens", defaults.affirmative_tokens),
        negative_tokens=_tokens("negative_tokens", defaults.negative_tokens),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def load_config(path: str | Path = "config.yaml") -> RosterConfig:
    """Read *path* and return a :class:`RosterConfig` instance.

    Raises
    ------
    FileNotFoundError
        If the YAML file doesn't exist.
    KeyError
        If a required key is missing from the YAML file.
    ConfigError
        If a value is present but unusable.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path.resolve()}\n"
            "Hint: copy config.yaml.example → config.yaml and edit it."
        )

    with open(config_path, encoding="utf-8") as fh:
        raw: dict = yaml.safe_load(fh) or {}

    timezone = raw.get("timezone", "America/Chicago")
    try:
        ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ConfigError(f"Unknown timezone: {timezone!r}") from exc

    interval = int(raw.get("reconcile_interval_minutes", 15))
    if interval < 1:
        raise ConfigError("reconcile_interval_minutes must be >= 1")

    return RosterConfig(
        community_name=raw["community_name"],
        guild_id=int(raw["guild_id"]),
        allowed_roles=tuple(raw.get("allowed_roles") or ("membership",)),
        timezone=timezone,
        log_dir=str(raw.get("log_dir", "logs")),
        log_retention_days=int(raw.get("log_retention_days", 14)),
        reconcile_interval_minutes=interval,
        sheets=_parse_sheets(raw.get("sheets")),
        reconciliation=_parse_reconciliation(raw.get("reconciliation")),
    )


def validate_environment(required: tuple[str, ...] = REQUIRED_ENV_VARS) -> list[str]:
    """Return the names of required environment variables that are unset."""
    return [name for name in required if not os.getenv(name)]

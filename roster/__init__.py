"""
Roster — Attendance Points for Discord, Backed by Google Sheets
================================================================
Keeps a community's member points in a Google spreadsheet, lets members
manage their own row from Discord, and reconciles event-attendance form
submissions into per-member point totals.

Package layout::

    roster/
    ├── config.py          # YAML → typed Python config
    ├── constants.py       # Column layouts + small shared helpers
    ├── errors.py          # Exception hierarchy
    ├── engine/
    │   ├── parsing.py     # Sheet cell → date/time/number parsing
    │   ├── records.py     # Event, Submission, MemberAggregate
    │   ├── catalog.py     # Event catalog + point schedule loaders
    │   ├── matcher.py     # Submission matcher + claim tracker
    │   └── reconcile.py   # Aggregator + record row serialization
    ├── database/
    │   ├── engine.py      # SQLAlchemy engine + async helper
    │   └── models.py      # Run history + audit log tables
    ├── services/
    │   ├── sheets_service.py          # gspread gateway
    │   ├── reconciliation_service.py  # Serialized reconciliation runs
    │   ├── member_service.py          # /member-update + /member-search logic
    │   ├── token_service.py           # Webhook JWT issuance
    │   ├── log_files.py               # Daily log files + tail/clear
    │   └── embeds.py                  # Discord embed builders
    ├── bot/
    │   ├── core.py        # Bot subclass, cog loader
    │   ├── checks.py      # Allowed-role checks
    │   └── cogs/          # members, logs, attendance, tasks
    └── api/
        ├── main.py        # FastAPI app
        ├── deps.py        # Dependency injection + webhook auth
        └── routes/        # /api/reconcile
"""

__version__ = "0.1.0"

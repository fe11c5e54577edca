"""
roster.bot.__main__ — Entry point for ``python -m roster.bot``
==============================================================

Wiring:
1. Load .env (secrets) and check the required variables.
2. Load config.yaml (soft settings).
3. Console + daily file logging.
4. Create the SQLAlchemy engine if ``DATABASE_URL`` is set.
5. Open the spreadsheet.
6. Create the RosterBot and start it (blocking).

Run with::

    python -m roster.bot
"""

from __future__ import annotations

import logging
import os
import sys

from dotenv import load_dotenv

from roster.bot.core import RosterBot
from roster.config import load_config, validate_environment
from roster.database.engine import create_optional_engine
from roster.services.log_files import setup_logging
from roster.services.sheets_service import SheetsGateway, open_spreadsheet

logger = logging.getLogger("roster")


def main() -> None:
    """Bootstrap and run the Roster bot."""

    # 1. Environment variables (secrets).
    load_dotenv()
    missing = validate_environment()
    if os.getenv("DISCORD_TOKEN") == "your-discord-bot-token-here":
        missing.append("DISCORD_TOKEN")
    if missing:
        logging.basicConfig(level=logging.INFO)
        logger.critical(
            "Missing required environment variables: %s.  "
            "Copy .env.example → .env and fill them in.",
            ", ".join(missing),
        )
        sys.exit(1)

    # 2. Soft configuration.
    cfg = load_config()

    # 3. Logging.
    setup_logging(cfg.log_dir, retention_days=cfg.log_retention_days, tz=cfg.tzinfo)
    logger.info("Config loaded — Community: %s", cfg.community_name)

    # 4. Database (optional).
    engine = create_optional_engine()

    # 5. Spreadsheet.
    gateway = SheetsGateway(open_spreadsheet(), cfg.sheets)

    # 6. Bot.
    bot = RosterBot(cfg=cfg, gateway=gateway, engine=engine)
    logger.info("Starting Roster bot…")
    try:
        bot.run(os.environ["DISCORD_TOKEN"], log_handler=None)
    except KeyboardInterrupt:
        logger.info("Shutting down gracefully…")


if __name__ == "__main__":
    main()

"""
roster.services.sheets_service — Google Sheets Gateway
=======================================================

The only module that talks to gspread.  Everything above it works with
plain row lists, so the engine and the services can be tested against an
in-memory fake.

Read methods return **data rows only** (header stripped).  A missing
worksheet raises :class:`MissingSheetError`; a failed write raises
:class:`SheetWriteError`.  Nothing here retries.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Sequence

import gspread
from google.oauth2.service_account import Credentials

from roster.config import SheetLayout
from roster.constants import MEMBER_COLUMNS, RECORD_COLUMNS, column_letter
from roster.errors import MissingSheetError, SheetWriteError

logger = logging.getLogger(__name__)

SCOPES: list[str] = ["https://www.googleapis.com/auth/spreadsheets"]


def open_spreadsheet(
    spreadsheet_id: str | None = None,
    credentials_path: str | None = None,
) -> gspread.Spreadsheet:
    """Authorize with a service account and open the spreadsheet.

    Falls back to ``SPREADSHEET_ID`` / ``GOOGLE_CREDENTIALS_PATH``.
    """
    spreadsheet_id = spreadsheet_id or os.getenv("SPREADSHEET_ID")
    credentials_path = credentials_path or os.getenv("GOOGLE_CREDENTIALS_PATH")
    if not spreadsheet_id or not credentials_path:
        raise RuntimeError(
            "SPREADSHEET_ID and GOOGLE_CREDENTIALS_PATH must be set to reach Google Sheets."
        )
    creds = Credentials.from_service_account_file(credentials_path, scopes=SCOPES)
    client = gspread.authorize(creds)
    spreadsheet = client.open_by_key(spreadsheet_id)
    logger.info("Google Sheets authentication successful (%s)", spreadsheet.title)
    return spreadsheet


class SheetsGateway:
    """Row-level access to the worksheets named in a :class:`SheetLayout`."""

    def __init__(self, spreadsheet: gspread.Spreadsheet, layout: SheetLayout) -> None:
        self.spreadsheet = spreadsheet
        self.layout = layout

    # -------------------------------------------------------------------
    # Low-level helpers
    # -------------------------------------------------------------------
    def _worksheet(self, title: str) -> gspread.Worksheet:
        try:
            return self.spreadsheet.worksheet(title)
        except gspread.exceptions.WorksheetNotFound as exc:
            raise MissingSheetError(title) from exc

    def _all_rows(self, title: str) -> list[list[str]]:
        return self._worksheet(title).get_all_values()

    def _data_rows(self, title: str) -> list[list[str]]:
        return self._all_rows(title)[1:]

    def _replace_data_rows(
        self, title: str, header: Sequence[str], rows: list[list]
    ) -> None:
        """Clear everything below the header, then write *rows* from row 2."""
        ws = self._worksheet(title)
        last_col = column_letter(len(header))
        try:
            ws.batch_clear([f"A2:{last_col}"])
            if rows:
                needed = len(rows) + 1
                if ws.row_count < needed:
                    ws.add_rows(needed - ws.row_count)
                ws.update(
                    values=rows,
                    range_name=f"A2:{last_col}{needed}",
                    value_input_option="RAW",
                )
        except gspread.exceptions.APIError as exc:
            logger.error("Failed to write sheet %s: %s", title, exc)
            raise SheetWriteError(title, str(exc)) from exc
        logger.info("Sheet %s rewritten with %d rows", title, len(rows))

    # -------------------------------------------------------------------
    # Reconciliation inputs
    # -------------------------------------------------------------------
    def load_event_rows(self) -> list[list[str]]:
        return self._data_rows(self.layout.events)

    def load_point_schedule_rows(self) -> list[list[str]]:
        return self._data_rows(self.layout.point_schedule)

    def load_submission_rows(self) -> list[list[str]]:
        return self._data_rows(self.layout.submissions)

    # -------------------------------------------------------------------
    # Record table (reconciliation output)
    # -------------------------------------------------------------------
    def load_record_rows(self) -> list[list[str]]:
        return self._data_rows(self.layout.records)

    def write_record_rows(self, rows: list[list]) -> None:
        """Full overwrite of the record table below its header."""
        self._replace_data_rows(self.layout.records, RECORD_COLUMNS, rows)

    # -------------------------------------------------------------------
    # Member sheet (/member-update, /member-search)
    # -------------------------------------------------------------------
    def load_member_rows(self) -> list[list[str]]:
        """All member rows *including* the header (added when the sheet is empty)."""
        rows = self._all_rows(self.layout.members)
        if not rows:
            rows = [list(MEMBER_COLUMNS)]
        return rows

    def write_member_rows(self, rows: list[list]) -> None:
        """Write *rows* (header included) over the member sheet from ``A1``."""
        ws = self._worksheet(self.layout.members)
        last_col = column_letter(len(MEMBER_COLUMNS))
        try:
            if ws.row_count < len(rows):
                ws.add_rows(len(rows) - ws.row_count)
            ws.update(
                values=rows,
                range_name=f"A1:{last_col}{len(rows)}",
                value_input_option="RAW",
            )
        except gspread.exceptions.APIError as exc:
            logger.error("Failed to write sheet %s: %s", self.layout.members, exc)
            raise SheetWriteError(self.layout.members, str(exc)) from exc
        logger.info("Sheet data updated successfully (%s)", self.layout.members)

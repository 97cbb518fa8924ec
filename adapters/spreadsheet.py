"""Spreadsheet cell-grid reader backed by openpyxl."""

from __future__ import annotations

from io import BytesIO
import logging
import zipfile
from typing import Any, List

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from utils.exceptions import SpreadsheetError

from .base import Sheet, SpreadsheetReader


logger = logging.getLogger(__name__)


class OpenpyxlSpreadsheetReader(SpreadsheetReader):
    """Reads every worksheet of an .xlsx workbook as rows of cached cell values.

    Legacy binary .xls files are not readable by openpyxl and raise
    ``SpreadsheetError``.
    """

    def parse(self, data: bytes) -> List[Sheet]:
        try:
            workbook = load_workbook(BytesIO(data), read_only=True, data_only=True)
        except (InvalidFileException, zipfile.BadZipFile, KeyError, ValueError, OSError) as exc:
            raise SpreadsheetError(f"Unreadable workbook: {exc}") from exc

        sheets: List[Sheet] = []
        try:
            for worksheet in workbook.worksheets:
                rows: List[List[Any]] = []
                for row in worksheet.iter_rows(values_only=True):
                    if row is None or all(cell is None for cell in row):
                        continue
                    rows.append(list(row))
                sheets.append(rows)
        finally:
            workbook.close()

        logger.debug("Parsed workbook with %d sheet(s)", len(sheets))
        return sheets

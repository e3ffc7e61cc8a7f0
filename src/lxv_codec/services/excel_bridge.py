"""Conversion between in-memory workbooks and Excel files.

Uses openpyxl for ``.xlsx`` reading and writing and pandas for tabular views
of a single worksheet.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from decimal import Decimal
from pathlib import Path
from typing import Any

import openpyxl
import pandas as pd
from openpyxl.worksheet.worksheet import Worksheet as OpenpyxlWorksheet

from lxv_codec.config import settings
from lxv_codec.utils.exceptions import LXVFileNotFoundError
from lxv_codec.utils.logging import get_logger
from lxv_codec.workbook import Workbook, Worksheet

logger = get_logger(__name__)

XLSX_EXTENSION = ".xlsx"

_EXCEL_NATIVE_TYPES = (str, int, float, bool, Decimal, datetime, date, time, timedelta)


def workbook_from_openpyxl(source: openpyxl.Workbook) -> Workbook:
    """Copy values, sheet order and horizontal merges out of an openpyxl workbook."""
    workbook = Workbook()
    for ws in source.worksheets:
        workbook.add_worksheet(_sheet_from_openpyxl(ws))
    return workbook


def _sheet_from_openpyxl(ws: OpenpyxlWorksheet) -> Worksheet:
    sheet = Worksheet(
        ws.title,
        rows=max(ws.max_row, settings.default_rows),
        columns=max(ws.max_column, settings.default_columns),
    )
    sheet.suspend_data_changed_events()
    try:
        for row in ws.iter_rows():
            for cell in row:
                if cell.value is not None:
                    sheet.set_cell_data(cell.row - 1, cell.column - 1, cell.value)

        for merged in ws.merged_cells.ranges:
            colspan = merged.max_col - merged.min_col + 1
            if colspan > 1:
                for r in range(merged.min_row, merged.max_row + 1):
                    sheet.merge_cells(r - 1, merged.min_col - 1, colspan)
    finally:
        sheet.resume_data_changed_events()
    return sheet


def workbook_to_openpyxl(workbook: Workbook) -> openpyxl.Workbook:
    """Build an openpyxl workbook with one worksheet per sheet, in order."""
    target = openpyxl.Workbook()
    if len(workbook):
        # openpyxl cannot save a workbook without sheets
        target.remove(target.active)

    for index, sheet in enumerate(workbook):
        # Excel rejects empty titles
        ws = target.create_sheet(title=sheet.name or f"Sheet{index + 1}")
        for r, c, cell in sheet.iter_cells():
            if cell.data is not None:
                ws.cell(row=r + 1, column=c + 1, value=_excel_value(cell.data))
            if cell.colspan > 1:
                ws.merge_cells(
                    start_row=r + 1,
                    start_column=c + 1,
                    end_row=r + 1,
                    end_column=c + cell.colspan,
                )
    return target


def _excel_value(value: Any) -> Any:
    if value is None or isinstance(value, _EXCEL_NATIVE_TYPES):
        return value
    return str(value)


def load_xlsx(path: str | Path) -> Workbook:
    """Read an ``.xlsx`` file into a workbook (cached values, not formulas)."""
    file_path = Path(path)
    if not file_path.exists():
        raise LXVFileNotFoundError(str(file_path))
    source = openpyxl.load_workbook(filename=file_path, data_only=True)
    workbook = workbook_from_openpyxl(source)
    logger.info("Loaded Excel workbook", path=str(file_path), sheets=len(workbook))
    return workbook


def save_xlsx(workbook: Workbook, path: str | Path) -> None:
    """Write a workbook as an ``.xlsx`` file."""
    workbook_to_openpyxl(workbook).save(Path(path))
    logger.info("Saved Excel workbook", path=str(path), sheets=len(workbook))


def sheet_to_dataframe(sheet: Worksheet, header: bool = False) -> pd.DataFrame:
    """Return the used area of a sheet as a DataFrame of cell texts.

    Args:
        sheet: Source worksheet.
        header: Use the first used row as column labels.
    """
    rows = sheet.max_content_row + 1
    cols = sheet.max_content_col + 1
    data = [[sheet.get_cell_text(r, c) for c in range(cols)] for r in range(rows)]

    if header and data:
        return pd.DataFrame(data[1:], columns=data[0])
    return pd.DataFrame(data)

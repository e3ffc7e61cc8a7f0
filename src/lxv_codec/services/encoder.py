"""LXV encoder.

Serializes worksheets row by row. Before any row of a sheet is written, the
used column extent is found with a full scan, so every row carries the same
number of fields.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TextIO

from lxv_codec.config import settings
from lxv_codec.grid import RangePosition, SheetGrid, fix_range
from lxv_codec.grammar import (
    escape_field,
    format_separator_line,
    format_sheet_line,
    is_sentinel,
)
from lxv_codec.utils.exceptions import ConfigurationError
from lxv_codec.utils.logging import LogContext, get_logger, timed_operation

logger = get_logger(__name__)


class LXVEncoder:
    """Writes workbooks, sheets and sheet ranges as LXV text."""

    def __init__(self, separator: str | None = None) -> None:
        separator = separator or settings.separator
        if len(separator) != 1 or separator in "\r\n":
            raise ConfigurationError(
                "separator must be a single character that is not a line break",
                field_name="separator",
                value=separator,
            )
        self.separator = separator

    def encode(self, workbook: Iterable[SheetGrid], stream: TextIO) -> None:
        """Write the separator declaration followed by every sheet in order."""
        with timed_operation(logger, "lxv_encode") as metrics:
            stream.write(format_separator_line(self.separator) + "\n")
            for sheet in workbook:
                metrics.rows_processed += self.encode_sheet(sheet, stream)
                metrics.sheets_processed += 1

    def encode_sheet(self, sheet: SheetGrid, stream: TextIO) -> int:
        """Write one sheet section: the boundary line and all of its rows.

        Returns:
            Number of row lines written.
        """
        target = RangePosition(0, 0, sheet.row_count, sheet.column_count)
        with LogContext(sheet=sheet.name):
            stream.write(format_sheet_line(sheet.name) + "\n")
            return self._write_rows(sheet, target, stream)

    def encode_range(
        self, sheet: SheetGrid, target: RangePosition, stream: TextIO
    ) -> int:
        """Write part of one sheet as a complete single-sheet LXV document.

        Rows past the last row holding content are not written.

        Returns:
            Number of row lines written.
        """
        fixed = fix_range(target, sheet.row_count, sheet.column_count)
        end_row = min(fixed.end_row, sheet.max_content_row)
        rows = max(end_row - fixed.row + 1, 0)
        bounded = RangePosition(fixed.row, fixed.col, rows, fixed.cols)

        with timed_operation(logger, "lxv_encode_range") as metrics:
            stream.write(format_separator_line(self.separator) + "\n")
            with LogContext(sheet=sheet.name):
                stream.write(format_sheet_line(sheet.name) + "\n")
                metrics.rows_processed = self._write_rows(sheet, bounded, stream)
            metrics.sheets_processed = 1
            metrics.custom_metrics["range"] = bounded.to_address()
        return metrics.rows_processed

    def used_column_extent(self, sheet: SheetGrid, target: RangePosition) -> int:
        """Find the column just past the rightmost non-blank cell in the range.

        Absent and invalid cells advance the scan by one column; present
        cells advance by their colspan.

        Returns:
            Exclusive end column, or ``target.col`` when the range is blank.
        """
        extent = target.col
        end_col = target.col + target.cols
        for r in range(target.row, target.row + target.rows):
            c = target.col
            while c < end_col:
                cell = sheet.get_cell(r, c)
                if cell is None or not cell.is_valid:
                    c += 1
                    continue
                if not cell.value.is_blank:
                    extent = max(extent, c + 1)
                c += cell.colspan
        return extent

    def _write_rows(self, sheet: SheetGrid, target: RangePosition, stream: TextIO) -> int:
        extent = self.used_column_extent(sheet, target)
        logger.debug(
            "Encoding sheet",
            rows=target.rows,
            columns=extent - target.col,
        )
        for r in range(target.row, target.row + target.rows):
            line = self.serialize_row(sheet, r, target.col, extent)
            if is_sentinel(line):
                # read back as a sentinel, ending the sheet
                logger.warning("Row text starts with a sentinel prefix", sheet=sheet.name, row=r)
            stream.write(line + "\n")
        return target.rows

    def serialize_row(self, sheet: SheetGrid, row: int, start_col: int, end_col: int) -> str:
        """Join the fields of one row between ``start_col`` and ``end_col``."""
        fields: list[str] = []
        c = start_col
        while c < end_col:
            cell = sheet.get_cell(row, c)
            if cell is None or not cell.is_valid:
                fields.append("")
                c += 1
            else:
                fields.append(escape_field(cell.text))
                c += cell.colspan
        return self.separator.join(fields)

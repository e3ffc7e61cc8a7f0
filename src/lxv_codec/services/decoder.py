"""Streaming LXV decoder.

Reads an LXV text stream into a workbook one batch of rows at a time, so
memory use is bounded by the line buffer rather than the stream size.
Several sheets share one stream; the row loop of a sheet stops at the next
sentinel line and leaves it unread for the sheet loop through a one-line
lookahead.
"""

from __future__ import annotations

from collections.abc import Generator, Iterable, Sequence
from contextlib import contextmanager
from dataclasses import dataclass

from lxv_codec.config import settings
from lxv_codec.grid import RangePosition, SheetGrid, WorkbookGrid, fix_range
from lxv_codec.grammar import (
    SentinelKind,
    is_sentinel,
    parse_sentinel,
    split_fields,
    strip_line_ending,
)
from lxv_codec.models import LXVFormatArgument
from lxv_codec.utils.logging import LogContext, get_logger, timed_operation

logger = get_logger(__name__)


class PeekableLineSource:
    """Line reader with one line of lookahead.

    ``peek`` returns the next line without consuming it, so a loop that runs
    into a line it does not own can hand it back to its caller untouched.
    Line terminators are stripped.
    """

    def __init__(self, lines: Iterable[str]) -> None:
        self._lines = iter(lines)
        self._pending: str | None = None
        self._exhausted = False
        self._at_start = True
        self.lines_consumed = 0

    def peek(self) -> str | None:
        """Return the next line, or None at end of stream."""
        if self._pending is None and not self._exhausted:
            raw = next(self._lines, None)
            if raw is None:
                self._exhausted = True
            else:
                if self._at_start:
                    raw = raw.lstrip("\ufeff")
                    self._at_start = False
                self._pending = strip_line_ending(raw)
        return self._pending

    def consume(self) -> str | None:
        """Return the next line and advance past it."""
        line = self.peek()
        if line is not None:
            self._pending = None
            self.lines_consumed += 1
        return line


class LineBuffer:
    """Fixed-capacity batch of parsed rows.

    The per-row field lists are allocated once and refilled for every batch.
    """

    def __init__(self, capacity: int) -> None:
        self.capacity = capacity
        self._rows: list[list[str]] = [[] for _ in range(capacity)]
        self.count = 0

    @property
    def rows(self) -> Sequence[list[str]]:
        """The backing row lists; only the first ``count`` are current."""
        return self._rows

    @property
    def is_full(self) -> bool:
        return self.count >= self.capacity

    def reset(self) -> None:
        self.count = 0

    def append(self, fields: list[str], limit: int | None = None) -> int:
        """Store one row's fields, truncated to ``limit``, and return the width."""
        row = self._rows[self.count]
        row.clear()
        row.extend(fields if limit is None else fields[:limit])
        self.count += 1
        return len(row)


@dataclass
class SheetReadResult:
    """Outcome of decoding one sheet's rows."""

    rows_read: int
    rows_skipped: int
    max_cols: int


@contextmanager
def suspended_data_changed_events(sheet: SheetGrid) -> Generator[SheetGrid, None, None]:
    """Suspend a sheet's change events for the duration of the block."""
    sheet.suspend_data_changed_events()
    try:
        yield sheet
    finally:
        sheet.resume_data_changed_events()


class LXVDecoder:
    """Loads LXV streams into workbooks."""

    def decode(
        self,
        stream: Iterable[str],
        workbook: WorkbookGrid,
        arg: LXVFormatArgument | None = None,
    ) -> None:
        """Replace the workbook's sheets with the sheets found in the stream.

        Args:
            stream: Text stream (or any iterable of lines) holding LXV data.
            workbook: Destination; its existing sheets are removed first.
            arg: Load options; configured defaults when omitted.

        Raises:
            ConfigurationError: If ``arg`` is invalid. Raised before any line
                is read and before the workbook is cleared.
        """
        arg = arg or LXVFormatArgument.from_settings(settings)
        arg.validate()

        workbook.clear()
        source = PeekableLineSource(stream)

        with timed_operation(logger, "lxv_decode") as metrics:
            self._read_separator_declaration(source, arg)

            while (line := source.peek()) is not None:
                sentinel = parse_sentinel(line)
                if sentinel is None:
                    name = ""
                    logger.debug(
                        "Row data outside a sheet section, loading into an unnamed sheet",
                        line_number=source.lines_consumed + 1,
                    )
                elif sentinel.kind is SentinelKind.SHEET:
                    source.consume()
                    name = sentinel.value
                else:
                    source.consume()
                    logger.debug("Skipping sentinel line", line=sentinel.raw)
                    continue

                sheet = workbook.create_worksheet(name)
                workbook.add_worksheet(sheet)
                with LogContext(sheet=name):
                    result = self.read_sheet(source, sheet, arg)

                metrics.sheets_processed += 1
                metrics.rows_processed += result.rows_read
                metrics.rows_skipped += result.rows_skipped

    def read_sheet(
        self,
        source: PeekableLineSource,
        sheet: SheetGrid,
        arg: LXVFormatArgument,
    ) -> SheetReadResult:
        """Read row lines into a sheet up to the next sentinel or end of stream.

        The sentinel that ends the section is left in ``source``.
        """
        requested = arg.target_range
        if arg.auto_spread:
            start_row, start_col = requested.row, requested.col
            row_limit: int | None = None
            col_limit = None if requested.cols < 0 else requested.cols
        else:
            target = fix_range(requested, sheet.row_count, sheet.column_count)
            start_row, start_col = target.row, target.col
            row_limit = target.rows
            col_limit = target.cols

        buffer = LineBuffer(arg.buffer_lines)
        row = start_row
        rows_read = 0
        rows_skipped = 0
        max_cols = 0

        with suspended_data_changed_events(sheet):
            finished = False
            while not finished:
                buffer.reset()
                while not buffer.is_full:
                    line = source.peek()
                    if line is None or is_sentinel(line):
                        finished = True
                        break
                    if row_limit is not None and rows_read + buffer.count >= row_limit:
                        rows_skipped = self._skip_rows(source)
                        finished = True
                        break
                    source.consume()
                    width = buffer.append(split_fields(line, arg.separator), col_limit)
                    max_cols = max(max_cols, width)

                if buffer.count == 0:
                    break

                if arg.auto_spread:
                    self._ensure_capacity(
                        sheet, row + buffer.count, start_col + max_cols, arg.buffer_lines
                    )
                sheet.set_range_data(row, start_col, buffer.count, max_cols, buffer.rows)
                row += buffer.count
                rows_read += buffer.count

        sheet.raise_range_data_changed(
            RangePosition(start_row, start_col, rows_read, max_cols)
        )

        if rows_skipped:
            logger.warning(
                "Target range is full, dropped remaining rows of sheet",
                rows_read=rows_read,
                rows_skipped=rows_skipped,
            )
        logger.debug(
            "Decoded sheet",
            rows=rows_read,
            columns=max_cols,
            row_count=sheet.row_count,
            column_count=sheet.column_count,
        )
        return SheetReadResult(rows_read, rows_skipped, max_cols)

    def _read_separator_declaration(
        self, source: PeekableLineSource, arg: LXVFormatArgument
    ) -> None:
        line = source.peek()
        if line is None:
            return
        sentinel = parse_sentinel(line)
        if sentinel is None or sentinel.kind is not SentinelKind.SEPARATOR:
            logger.debug("Stream has no separator declaration")
            return

        source.consume()
        if sentinel.value != arg.separator:
            logger.warning(
                "Declared separator differs from the configured one, "
                "splitting on the configured separator",
                declared=repr(sentinel.value),
                configured=repr(arg.separator),
            )

    @staticmethod
    def _skip_rows(source: PeekableLineSource) -> int:
        skipped = 0
        while (line := source.peek()) is not None and not is_sentinel(line):
            source.consume()
            skipped += 1
        return skipped

    @staticmethod
    def _ensure_capacity(
        sheet: SheetGrid, needed_rows: int, needed_cols: int, chunk: int
    ) -> None:
        # rows grow to the next multiple of the batch size
        while needed_rows > sheet.row_count:
            sheet.append_rows(chunk - sheet.row_count % chunk)
        if needed_cols >= sheet.column_count:
            sheet.set_column_count(needed_cols + 1)

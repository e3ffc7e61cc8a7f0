"""In-memory workbook and worksheet implementing the grid protocols."""

from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence
from typing import Any

from lxv_codec.config import settings
from lxv_codec.grid import (
    Cell,
    CellValue,
    RangeDataChangedListener,
    RangePosition,
    fix_range,
)
from lxv_codec.utils.exceptions import InvalidAddressError, RangeOutOfBoundsError


class Worksheet:
    """A named, growable grid of sparsely stored cells.

    Change listeners receive the affected ``RangePosition`` after each write.
    While events are suspended writes stay silent; suspension nests, and the
    caller is expected to raise one aggregate event once it resumes.
    """

    def __init__(
        self,
        name: str = "",
        rows: int | None = None,
        columns: int | None = None,
    ) -> None:
        self.name = name
        self._row_count = settings.default_rows if rows is None else rows
        self._column_count = settings.default_columns if columns is None else columns
        self._cells: dict[tuple[int, int], Cell] = {}
        self._named_ranges: dict[str, RangePosition] = {}
        self._listeners: list[RangeDataChangedListener] = []
        self._suspend_depth = 0

    def __repr__(self) -> str:
        return (
            f"Worksheet(name={self.name!r}, rows={self._row_count}, "
            f"columns={self._column_count})"
        )

    # ------------------------------------------------------------------ #
    # Dimensions
    # ------------------------------------------------------------------ #

    @property
    def row_count(self) -> int:
        return self._row_count

    @property
    def column_count(self) -> int:
        return self._column_count

    @property
    def max_content_row(self) -> int:
        """Index of the last row holding a non-blank value, -1 if none."""
        rows = [r for (r, _), cell in self._cells.items() if not cell.value.is_blank]
        return max(rows, default=-1)

    @property
    def max_content_col(self) -> int:
        """Index of the last column holding a non-blank value, -1 if none."""
        cols = [c for (_, c), cell in self._cells.items() if not cell.value.is_blank]
        return max(cols, default=-1)

    def append_rows(self, count: int) -> None:
        if count < 0:
            raise ValueError(f"Cannot append a negative number of rows: {count}")
        self._row_count += count

    def set_row_count(self, count: int) -> None:
        """Resize the row dimension, dropping cells beyond a smaller size."""
        if count < 0:
            raise ValueError(f"Row count cannot be negative: {count}")
        if count < self._row_count:
            self._drop_cells(lambda r, _: r >= count)
        self._row_count = count

    def set_column_count(self, count: int) -> None:
        """Resize the column dimension, dropping cells beyond a smaller size."""
        if count < 0:
            raise ValueError(f"Column count cannot be negative: {count}")
        if count < self._column_count:
            self._drop_cells(lambda _, c: c >= count)
        self._column_count = count

    def fix_range(self, target: RangePosition) -> RangePosition:
        """Clamp a range to this sheet."""
        return fix_range(target, self._row_count, self._column_count)

    # ------------------------------------------------------------------ #
    # Cell access
    # ------------------------------------------------------------------ #

    def get_cell(self, row: int, col: int) -> Cell | None:
        return self._cells.get((row, col))

    def get_cell_data(self, row: int, col: int) -> Any:
        cell = self._cells.get((row, col))
        return None if cell is None else cell.data

    def get_cell_text(self, row: int, col: int) -> str:
        cell = self._cells.get((row, col))
        return "" if cell is None or not cell.is_valid else cell.text

    def set_cell_data(self, row: int, col: int, data: Any) -> None:
        """Write a single value; None removes the cell's value."""
        self._check_bounds(row, col)
        self._store(row, col, data)
        self._notify(RangePosition(row, col, 1, 1))

    def set_range_data(
        self,
        row: int,
        col: int,
        rows: int,
        cols: int,
        data: Sequence[Sequence[Any]],
    ) -> None:
        """Write a block of values in one call.

        ``data`` holds at least ``rows`` row sequences. Rows shorter than
        ``cols`` leave the remaining cells of the block empty.
        """
        if rows <= 0 or cols <= 0:
            return
        self._check_bounds(row, col)
        self._check_bounds(row + rows - 1, col + cols - 1)

        for r in range(rows):
            values = data[r]
            for c in range(cols):
                self._store(row + r, col + c, values[c] if c < len(values) else None)

        self._notify(RangePosition(row, col, rows, cols))

    def merge_cells(self, row: int, col: int, colspan: int) -> None:
        """Span the cell at (row, col) across ``colspan`` columns."""
        self._check_bounds(row, col + colspan - 1)
        head = self._cells.get((row, col))
        value = CellValue.EMPTY if head is None else head.value
        self._cells[(row, col)] = Cell(value, colspan=colspan)
        for c in range(col + 1, col + colspan):
            self._cells[(row, c)] = Cell(is_valid=False)
        self._notify(RangePosition(row, col, 1, colspan))

    def iter_cells(self) -> Iterator[tuple[int, int, Cell]]:
        """Yield (row, col, cell) for every stored valid cell in row-major order."""
        for (r, c) in sorted(self._cells):
            cell = self._cells[(r, c)]
            if cell.is_valid:
                yield r, c, cell

    def clear(self) -> None:
        """Remove all cell values and named ranges."""
        self._cells.clear()
        self._named_ranges.clear()
        self._notify(RangePosition(0, 0, self._row_count, self._column_count))

    def _store(self, row: int, col: int, data: Any) -> None:
        existing = self._cells.get((row, col))
        if data is None and (existing is None or existing.colspan == 1):
            self._cells.pop((row, col), None)
            return
        colspan = 1 if existing is None else existing.colspan
        self._cells[(row, col)] = Cell(CellValue.of(data), colspan=colspan)

    def _check_bounds(self, row: int, col: int) -> None:
        if not (0 <= row < self._row_count and 0 <= col < self._column_count):
            raise RangeOutOfBoundsError(row, col, self._row_count, self._column_count)

    def _drop_cells(self, predicate: Callable[[int, int], bool]) -> None:
        for key in [k for k in self._cells if predicate(*k)]:
            del self._cells[key]

    # ------------------------------------------------------------------ #
    # Named ranges
    # ------------------------------------------------------------------ #

    def define_named_range(self, name: str, target: RangePosition | str) -> None:
        if isinstance(target, str):
            target = RangePosition.from_address(target)
        self._named_ranges[name] = target

    def try_get_named_range(self, name: str) -> RangePosition | None:
        return self._named_ranges.get(name)

    def resolve_range(self, address_or_name: str) -> RangePosition:
        """Resolve a named range, or else an A1 address.

        Names are looked up first because short names such as ``"Tax"`` are
        also valid column references.

        Raises:
            InvalidAddressError: If neither lookup succeeds.
        """
        named = self._named_ranges.get(address_or_name)
        if named is not None:
            return named
        if RangePosition.is_valid_address(address_or_name):
            return RangePosition.from_address(address_or_name)
        raise InvalidAddressError(address_or_name)

    # ------------------------------------------------------------------ #
    # Change notification
    # ------------------------------------------------------------------ #

    @property
    def data_changed_events_suspended(self) -> bool:
        return self._suspend_depth > 0

    def add_range_data_changed_listener(self, listener: RangeDataChangedListener) -> None:
        self._listeners.append(listener)

    def remove_range_data_changed_listener(
        self, listener: RangeDataChangedListener
    ) -> None:
        self._listeners.remove(listener)

    def suspend_data_changed_events(self) -> None:
        self._suspend_depth += 1

    def resume_data_changed_events(self) -> None:
        if self._suspend_depth > 0:
            self._suspend_depth -= 1

    def raise_range_data_changed(self, changed: RangePosition) -> None:
        """Notify listeners explicitly, regardless of suspension."""
        for listener in list(self._listeners):
            listener(changed)

    def _notify(self, changed: RangePosition) -> None:
        if self._suspend_depth == 0:
            self.raise_range_data_changed(changed)


class Workbook:
    """Ordered collection of worksheets."""

    def __init__(self, sheets: Sequence[Worksheet] | None = None) -> None:
        self._sheets: list[Worksheet] = list(sheets or [])

    def __iter__(self) -> Iterator[Worksheet]:
        return iter(self._sheets)

    def __len__(self) -> int:
        return len(self._sheets)

    def __getitem__(self, key: int | str) -> Worksheet:
        if isinstance(key, int):
            return self._sheets[key]
        sheet = self.get_worksheet(key)
        if sheet is None:
            raise KeyError(key)
        return sheet

    @property
    def worksheets(self) -> tuple[Worksheet, ...]:
        return tuple(self._sheets)

    @property
    def sheet_names(self) -> list[str]:
        return [sheet.name for sheet in self._sheets]

    def create_worksheet(self, name: str) -> Worksheet:
        """Build a worksheet for this workbook without adding it."""
        return Worksheet(name)

    def add_worksheet(self, sheet: Worksheet) -> None:
        self._sheets.append(sheet)

    def new_worksheet(self, name: str) -> Worksheet:
        """Create a worksheet and append it."""
        sheet = self.create_worksheet(name)
        self.add_worksheet(sheet)
        return sheet

    def get_worksheet(self, name: str) -> Worksheet | None:
        for sheet in self._sheets:
            if sheet.name == name:
                return sheet
        return None

    def clear(self) -> None:
        self._sheets.clear()

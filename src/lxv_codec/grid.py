"""Value types and collaborator protocols for grid access.

The decoder and encoder never touch cell storage directly; they work against
the ``SheetGrid`` and ``WorkbookGrid`` protocols below. ``lxv_codec.workbook``
provides the in-memory implementation.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any, ClassVar, Protocol

from openpyxl.utils.cell import get_column_letter, range_boundaries

from lxv_codec.utils.exceptions import InvalidAddressError


@dataclass(frozen=True)
class RangePosition:
    """Rectangular region of a worksheet, 0-based.

    ``rows`` or ``cols`` of -1 mean "up to the last row/column of the sheet".
    """

    row: int = 0
    col: int = 0
    rows: int = -1
    cols: int = -1

    ENTIRE: ClassVar[RangePosition]

    @property
    def is_entire(self) -> bool:
        """True for the unconstrained whole-sheet range."""
        return self.row == 0 and self.col == 0 and self.rows < 0 and self.cols < 0

    @property
    def end_row(self) -> int:
        """Last row index inside the range, or -1 when open-ended."""
        return -1 if self.rows < 0 else self.row + self.rows - 1

    @property
    def end_col(self) -> int:
        """Last column index inside the range, or -1 when open-ended."""
        return -1 if self.cols < 0 else self.col + self.cols - 1

    @classmethod
    def from_address(cls, address: str) -> RangePosition:
        """Parse an A1-style address such as ``"B2:D10"``, ``"C3"`` or ``"A:C"``.

        Raises:
            InvalidAddressError: If the address cannot be parsed.
        """
        if not address.strip():
            raise InvalidAddressError(address)
        try:
            min_col, min_row, max_col, max_row = range_boundaries(address.strip())
        except (TypeError, ValueError) as e:
            raise InvalidAddressError(address) from e

        row = 0 if min_row is None else min_row - 1
        col = 0 if min_col is None else min_col - 1
        rows = -1 if max_row is None else max_row - row
        cols = -1 if max_col is None else max_col - col
        return cls(row, col, rows, cols)

    @staticmethod
    def is_valid_address(address: str) -> bool:
        """Check whether a string parses as an A1-style address."""
        if not address.strip():
            return False
        try:
            range_boundaries(address.strip())
        except (TypeError, ValueError):
            return False
        return True

    def to_address(self) -> str:
        """Render the range as an A1-style address (closed ranges only)."""
        start = f"{get_column_letter(self.col + 1)}{self.row + 1}"
        if self.rows < 0 or self.cols < 0:
            return start
        if self.rows == 1 and self.cols == 1:
            return start
        end = f"{get_column_letter(self.end_col + 1)}{self.end_row + 1}"
        return f"{start}:{end}"


RangePosition.ENTIRE = RangePosition(0, 0, -1, -1)


def fix_range(
    target: RangePosition, row_count: int, column_count: int
) -> RangePosition:
    """Clamp a range to a sheet of the given size, resolving -1 extents."""
    row = min(max(target.row, 0), max(row_count - 1, 0))
    col = min(max(target.col, 0), max(column_count - 1, 0))

    available_rows = max(row_count - row, 0)
    available_cols = max(column_count - col, 0)
    rows = available_rows if target.rows < 0 else min(target.rows, available_rows)
    cols = available_cols if target.cols < 0 else min(target.cols, available_cols)
    return RangePosition(row, col, rows, cols)


class ValueKind(str, Enum):
    """Variant tag of a cell value."""

    EMPTY = "empty"
    TEXT = "text"
    NUMBER = "number"
    BOOLEAN = "boolean"
    OTHER = "other"


@dataclass(frozen=True)
class CellValue:
    """Tagged cell value with a single canonical text rendering."""

    kind: ValueKind
    raw: Any = None

    EMPTY: ClassVar[CellValue]

    @classmethod
    def of(cls, value: Any) -> CellValue:
        """Tag a plain Python value."""
        if isinstance(value, CellValue):
            return value
        if value is None:
            return cls.EMPTY
        if isinstance(value, str):
            return cls(ValueKind.TEXT, value)
        # bool is an int subclass, so it must be checked first
        if isinstance(value, bool):
            return cls(ValueKind.BOOLEAN, value)
        if isinstance(value, (int, float, Decimal)):
            return cls(ValueKind.NUMBER, value)
        return cls(ValueKind.OTHER, value)

    def render(self) -> str:
        """Render the value as the text written to an LXV field."""
        if self.kind is ValueKind.EMPTY:
            return ""
        if self.kind is ValueKind.TEXT:
            return self.raw
        if self.kind is ValueKind.BOOLEAN:
            return "TRUE" if self.raw else "FALSE"
        if self.kind is ValueKind.NUMBER:
            return _render_number(self.raw)
        if isinstance(self.raw, (datetime, date, time)):
            return self.raw.isoformat()
        return str(self.raw)

    @property
    def is_blank(self) -> bool:
        """True when the rendered text is empty or only whitespace."""
        return not self.render().strip()


CellValue.EMPTY = CellValue(ValueKind.EMPTY)


def _render_number(value: int | float | Decimal) -> str:
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return str(int(value))
    return str(value)


@dataclass
class Cell:
    """A worksheet cell.

    ``colspan`` is the number of grid columns the cell occupies. Cells covered
    by another cell's span are kept with ``is_valid=False``.
    """

    value: CellValue = field(default_factory=lambda: CellValue.EMPTY)
    colspan: int = 1
    is_valid: bool = True

    def __post_init__(self) -> None:
        if self.colspan < 1:
            raise ValueError(f"colspan must be at least 1, got {self.colspan}")
        self.value = CellValue.of(self.value)

    @property
    def data(self) -> Any:
        """The untagged cell value."""
        return self.value.raw

    @property
    def text(self) -> str:
        """Canonical text of the cell value."""
        return self.value.render()


RangeDataChangedListener = Callable[[RangePosition], None]


class SheetGrid(Protocol):
    """What the codec needs from a worksheet."""

    @property
    def name(self) -> str: ...

    @property
    def row_count(self) -> int: ...

    @property
    def column_count(self) -> int: ...

    @property
    def max_content_row(self) -> int: ...

    def get_cell(self, row: int, col: int) -> Cell | None: ...

    def set_range_data(
        self,
        row: int,
        col: int,
        rows: int,
        cols: int,
        data: Sequence[Sequence[Any]],
    ) -> None: ...

    def append_rows(self, count: int) -> None: ...

    def set_column_count(self, count: int) -> None: ...

    def suspend_data_changed_events(self) -> None: ...

    def resume_data_changed_events(self) -> None: ...

    def raise_range_data_changed(self, changed: RangePosition) -> None: ...

    def clear(self) -> None: ...


class WorkbookGrid(Protocol):
    """What the codec needs from a workbook."""

    def __iter__(self) -> Iterator[SheetGrid]: ...

    def __len__(self) -> int: ...

    def create_worksheet(self, name: str) -> SheetGrid: ...

    def add_worksheet(self, sheet: SheetGrid) -> None: ...

    def clear(self) -> None: ...

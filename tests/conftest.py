from __future__ import annotations

import io

import pytest

from lxv_codec.grid import RangePosition
from lxv_codec.models import LXVFormatArgument
from lxv_codec.workbook import Workbook, Worksheet


class SmallSheetWorkbook(Workbook):
    """Workbook whose new sheets start at a fixed small size."""

    def __init__(self, rows: int, columns: int) -> None:
        super().__init__()
        self.rows = rows
        self.columns = columns

    def create_worksheet(self, name: str) -> Worksheet:
        return Worksheet(name, rows=self.rows, columns=self.columns)


class RecordingWorksheet(Worksheet):
    """Worksheet that records suspend/resume calls and raised events."""

    def __init__(self, name: str = "", rows: int | None = None, columns: int | None = None) -> None:
        super().__init__(name, rows=rows, columns=columns)
        self.calls: list[str] = []
        self.events: list[RangePosition] = []
        self.add_range_data_changed_listener(self.events.append)

    def suspend_data_changed_events(self) -> None:
        self.calls.append("suspend")
        super().suspend_data_changed_events()

    def resume_data_changed_events(self) -> None:
        self.calls.append("resume")
        super().resume_data_changed_events()

    def set_range_data(self, row, col, rows, cols, data) -> None:  # type: ignore[no-untyped-def]
        self.calls.append("set_range_data")
        super().set_range_data(row, col, rows, cols, data)


class RecordingWorkbook(Workbook):
    """Workbook producing RecordingWorksheet instances."""

    def create_worksheet(self, name: str) -> RecordingWorksheet:
        return RecordingWorksheet(name)


@pytest.fixture
def comma_arg() -> LXVFormatArgument:
    """Load options using a plain comma separator."""
    return LXVFormatArgument(separator=",")


@pytest.fixture
def sample_workbook() -> Workbook:
    """Two-sheet workbook with text, numbers and a gap column."""
    workbook = Workbook()
    prices = workbook.new_worksheet("Prices")
    prices.set_cell_data(0, 0, "item")
    prices.set_cell_data(0, 1, "price")
    prices.set_cell_data(1, 0, "apple")
    prices.set_cell_data(1, 1, 1.25)
    prices.set_cell_data(2, 0, "pear")
    prices.set_cell_data(2, 1, 0.8)

    notes = workbook.new_worksheet("Notes")
    notes.set_cell_data(0, 0, "fresh daily")
    notes.set_cell_data(1, 2, "gap before")
    return workbook


def lxv_text(*lines: str) -> io.StringIO:
    """Build a text stream from LXV lines."""
    return io.StringIO("".join(f"{line}\n" for line in lines))

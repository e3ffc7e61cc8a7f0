"""Tests for the LXV encoder."""

import io
import logging

import pytest

from lxv_codec.grid import RangePosition
from lxv_codec.models import LXVFormatArgument
from lxv_codec.services.decoder import LXVDecoder
from lxv_codec.services.encoder import LXVEncoder
from lxv_codec.utils.exceptions import ConfigurationError
from lxv_codec.workbook import Workbook, Worksheet


def encode(workbook: Workbook, separator: str = ",") -> str:
    stream = io.StringIO()
    LXVEncoder(separator).encode(workbook, stream)
    return stream.getvalue()


class TestEncodeWorkbook:
    """Tests for whole-workbook encoding."""

    def test_exact_output(self) -> None:
        sheet = Worksheet("S", rows=3, columns=3)
        workbook = Workbook([sheet])
        sheet.set_cell_data(0, 0, "a")
        sheet.set_cell_data(0, 2, "c")
        sheet.set_cell_data(1, 1, 5)

        assert encode(workbook) == "---sep:,\n---sheet:S\na,,c\n,5,\n,,\n"

    def test_default_separator(self) -> None:
        workbook = Workbook([Worksheet("S", rows=1, columns=2)])
        workbook[0].set_cell_data(0, 0, "x")
        workbook[0].set_cell_data(0, 1, "y")

        stream = io.StringIO()
        LXVEncoder().encode(workbook, stream)
        assert stream.getvalue() == "---sep:∤\n---sheet:S\nx∤y\n"

    def test_empty_workbook(self) -> None:
        assert encode(Workbook()) == "---sep:,\n"

    def test_blank_sheet_writes_empty_rows(self) -> None:
        workbook = Workbook([Worksheet("Blank", rows=2, columns=4)])
        assert encode(workbook) == "---sep:,\n---sheet:Blank\n\n\n"

    def test_sheets_in_order(self) -> None:
        workbook = Workbook([Worksheet("B", rows=1, columns=1), Worksheet("A", rows=1, columns=1)])
        workbook["B"].set_cell_data(0, 0, "b")
        workbook["A"].set_cell_data(0, 0, "a")
        assert encode(workbook) == "---sep:,\n---sheet:B\nb\n---sheet:A\na\n"

    def test_every_row_has_same_field_count(self) -> None:
        workbook = Workbook([Worksheet("S", rows=3, columns=6)])
        sheet = workbook[0]
        sheet.set_cell_data(0, 0, "a")
        sheet.set_cell_data(2, 4, "e")

        rows = encode(workbook).splitlines()[2:]
        assert [row.count(",") for row in rows] == [4, 4, 4]

    def test_values_are_rendered(self) -> None:
        workbook = Workbook([Worksheet("S", rows=1, columns=4)])
        sheet = workbook[0]
        sheet.set_cell_data(0, 0, 1.0)
        sheet.set_cell_data(0, 1, 2.5)
        sheet.set_cell_data(0, 2, True)
        sheet.set_cell_data(0, 3, -7)
        assert encode(workbook).splitlines()[2] == "1,2.5,TRUE,-7"

    def test_text_is_escaped(self) -> None:
        workbook = Workbook([Worksheet("S", rows=1, columns=2)])
        workbook[0].set_cell_data(0, 0, "two\r\nlines")
        workbook[0].set_cell_data(0, 1, "tab\there")
        assert encode(workbook).splitlines()[2] == "two\\nlines,tab\\there"

    def test_sentinel_like_text_is_written_with_warning(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        workbook = Workbook([Worksheet("A", rows=2, columns=1)])
        workbook[0].set_cell_data(0, 0, "---")
        workbook[0].set_cell_data(1, 0, "after")

        with caplog.at_level(logging.WARNING, logger="lxv_codec.services.encoder"):
            text = encode(workbook)

        assert text == "---sep:,\n---sheet:A\n---\nafter\n"
        assert "Row text starts with a sentinel prefix | sheet=A, row=0" in caplog.text

        # the row reads back as a sentinel and ends sheet A
        decoded = Workbook()
        LXVDecoder().decode(io.StringIO(text), decoded, LXVFormatArgument(separator=","))
        assert decoded.sheet_names == ["A", ""]
        assert decoded["A"].get_cell_text(0, 0) == ""
        assert decoded[1].get_cell_text(0, 0) == "after"

    def test_plain_rows_do_not_warn(self, caplog: pytest.LogCaptureFixture) -> None:
        workbook = Workbook([Worksheet("A", rows=1, columns=2)])
        workbook[0].set_cell_data(0, 0, "a---")

        with caplog.at_level(logging.WARNING, logger="lxv_codec.services.encoder"):
            encode(workbook)
        assert "sentinel prefix" not in caplog.text

    def test_whitespace_only_cells_do_not_extend_columns(self) -> None:
        workbook = Workbook([Worksheet("S", rows=1, columns=5)])
        workbook[0].set_cell_data(0, 0, "a")
        workbook[0].set_cell_data(0, 3, "   ")
        assert encode(workbook).splitlines()[2] == "a"

    def test_absent_cell_keeps_following_column(self) -> None:
        workbook = Workbook([Worksheet("S", rows=1, columns=5)])
        workbook[0].set_cell_data(0, 3, "d")

        decoded = Workbook()
        LXVDecoder().decode(io.StringIO(encode(workbook)), decoded, LXVFormatArgument(separator=","))
        assert decoded[0].get_cell_text(0, 3) == "d"
        assert decoded[0].max_content_col == 3

    def test_merged_cell_is_one_field(self) -> None:
        workbook = Workbook([Worksheet("S", rows=1, columns=4)])
        sheet = workbook[0]
        sheet.set_cell_data(0, 0, "wide")
        sheet.merge_cells(0, 0, 2)
        sheet.set_cell_data(0, 2, "x")
        assert encode(workbook).splitlines()[2] == "wide,x"

    @pytest.mark.parametrize("separator", [",,", "\n", "\r"])
    def test_invalid_separator(self, separator: str) -> None:
        with pytest.raises(ConfigurationError):
            LXVEncoder(separator)


class TestColumnExtent:
    """Tests for used column extent detection."""

    def setup_method(self) -> None:
        self.encoder = LXVEncoder(",")
        self.sheet = Worksheet("S", rows=4, columns=8)

    def test_blank_range(self) -> None:
        target = RangePosition(0, 2, 4, 6)
        assert self.encoder.used_column_extent(self.sheet, target) == 2

    def test_maximum_over_rows(self) -> None:
        self.sheet.set_cell_data(0, 1, "a")
        self.sheet.set_cell_data(3, 5, "b")
        self.sheet.set_cell_data(2, 7, "")
        target = RangePosition(0, 0, 4, 8)
        assert self.encoder.used_column_extent(self.sheet, target) == 6

    def test_only_rows_in_range_are_scanned(self) -> None:
        self.sheet.set_cell_data(0, 1, "a")
        self.sheet.set_cell_data(3, 5, "b")
        target = RangePosition(0, 0, 2, 8)
        assert self.encoder.used_column_extent(self.sheet, target) == 2

    def test_merged_head_counts_once(self) -> None:
        self.sheet.set_cell_data(0, 2, "m")
        self.sheet.merge_cells(0, 2, 3)
        target = RangePosition(0, 0, 4, 8)
        assert self.encoder.used_column_extent(self.sheet, target) == 3

    def test_serialize_row_from_inside_merge(self) -> None:
        """A covered cell at the start of a range is an empty field."""
        self.sheet.set_cell_data(0, 0, "m")
        self.sheet.merge_cells(0, 0, 2)
        self.sheet.set_cell_data(0, 2, "x")
        assert self.encoder.serialize_row(self.sheet, 0, 1, 3) == ",x"


class TestEncodeRange:
    """Tests for single-range export."""

    def setup_method(self) -> None:
        self.encoder = LXVEncoder(",")
        self.sheet = Worksheet("S", rows=5, columns=5)
        self.sheet.set_cell_data(0, 0, "top")
        self.sheet.set_cell_data(1, 1, "b")
        self.sheet.set_cell_data(1, 2, "c")
        self.sheet.set_cell_data(2, 1, "d")
        self.sheet.set_cell_data(4, 4, "far")

    def test_address_range(self) -> None:
        stream = io.StringIO()
        written = self.encoder.encode_range(
            self.sheet, RangePosition.from_address("B2:C3"), stream
        )
        assert written == 2
        assert stream.getvalue() == "---sep:,\n---sheet:S\nb,c\nd,\n"

    def test_stops_at_last_content_row(self) -> None:
        sheet = Worksheet("S")
        sheet.set_cell_data(0, 0, "a")
        sheet.set_cell_data(2, 1, "b")

        stream = io.StringIO()
        written = self.encoder.encode_range(sheet, RangePosition.ENTIRE, stream)
        assert written == 3
        assert stream.getvalue() == "---sep:,\n---sheet:S\na,\n,\n,b\n"

    def test_range_past_content(self) -> None:
        stream = io.StringIO()
        sheet = Worksheet("S", rows=10, columns=3)
        sheet.set_cell_data(0, 0, "a")
        written = self.encoder.encode_range(sheet, RangePosition(5, 0, -1, -1), stream)
        assert written == 0
        assert stream.getvalue() == "---sep:,\n---sheet:S\n"

    def test_range_is_clamped(self) -> None:
        stream = io.StringIO()
        self.encoder.encode_range(self.sheet, RangePosition(4, 3, 50, 50), stream)
        assert stream.getvalue() == "---sep:,\n---sheet:S\n,far\n"


class TestRoundTrip:
    """Tests that encoded workbooks decode to the same cell texts."""

    def test_round_trip(self, sample_workbook: Workbook) -> None:
        stream = io.StringIO(encode(sample_workbook))
        decoded = Workbook()
        LXVDecoder().decode(stream, decoded, LXVFormatArgument(separator=","))

        assert decoded.sheet_names == sample_workbook.sheet_names
        for original in sample_workbook:
            copy = decoded[original.name]
            assert copy.max_content_row == original.max_content_row
            for r in range(original.max_content_row + 1):
                for c in range(original.max_content_col + 1):
                    assert copy.get_cell_text(r, c) == original.get_cell_text(r, c)

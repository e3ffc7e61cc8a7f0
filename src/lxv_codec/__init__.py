"""LXV Codec - streaming reader and writer for multi-sheet LXV text workbooks."""

from lxv_codec.grid import Cell, CellValue, RangePosition, ValueKind
from lxv_codec.models import LXVFormatArgument
from lxv_codec.services import (
    LXVDecoder,
    LXVEncoder,
    LXVFileFormatProvider,
    export_lxv,
    load_lxv,
    save_lxv,
)
from lxv_codec.workbook import Workbook, Worksheet

__version__ = "0.1.0"

__all__ = [
    "Cell",
    "CellValue",
    "LXVDecoder",
    "LXVEncoder",
    "LXVFileFormatProvider",
    "LXVFormatArgument",
    "RangePosition",
    "ValueKind",
    "Workbook",
    "Worksheet",
    "export_lxv",
    "load_lxv",
    "main",
    "save_lxv",
]


def main() -> int:
    """Run the ``lxv`` command-line tool."""
    from lxv_codec.cli import main as cli_main

    return cli_main()

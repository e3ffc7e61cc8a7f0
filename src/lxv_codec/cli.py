"""Command-line interface for converting and inspecting LXV files.

Commands:
- ``lxv convert SRC DST``: convert between ``.lxv`` and ``.xlsx`` (either way,
  or ``.lxv`` to ``.lxv`` to re-encode)
- ``lxv export SRC DST --sheet NAME --range B2:D10``: write one range of one
  sheet as a single-sheet LXV file
- ``lxv info FILE [--preview N]``: list sheets with their used sizes and
  optionally their first rows
"""

import argparse
import sys
from pathlib import Path

from lxv_codec import __version__
from lxv_codec.config import settings, validate_settings_on_startup
from lxv_codec.models import LXVFormatArgument
from lxv_codec.services.excel_bridge import (
    XLSX_EXTENSION,
    load_xlsx,
    save_xlsx,
    sheet_to_dataframe,
)
from lxv_codec.services.file_format import LXV_EXTENSION, export_lxv, load_lxv, save_lxv
from lxv_codec.utils.exceptions import LXVError, UnsupportedFormatError
from lxv_codec.utils.logging import configure_logging, get_logger
from lxv_codec.workbook import Workbook

logger = get_logger(__name__)


def _extension(path: str) -> str:
    extension = Path(path).suffix.lower()
    if extension not in (LXV_EXTENSION, XLSX_EXTENSION):
        raise UnsupportedFormatError(
            f"Unsupported file type {extension or '(none)'}; expected .lxv or .xlsx",
            extension=extension,
            file_path=path,
        )
    return extension


def _format_argument(args: argparse.Namespace) -> LXVFormatArgument:
    overrides: dict[str, object] = {}
    if args.buffer_lines is not None:
        overrides["buffer_lines"] = args.buffer_lines
    if args.no_auto_spread:
        overrides["auto_spread"] = False
    if args.separator is not None:
        overrides["separator"] = args.separator
    return LXVFormatArgument.from_settings(settings, **overrides)


def _load(path: str, args: argparse.Namespace) -> Workbook:
    if _extension(path) == XLSX_EXTENSION:
        return load_xlsx(path)
    return load_lxv(path, encoding=args.encoding, arg=_format_argument(args))


def convert_command(args: argparse.Namespace) -> int:
    """Convert a workbook file to another format."""
    target_extension = _extension(args.destination)
    workbook = _load(args.source, args)

    if target_extension == XLSX_EXTENSION:
        save_xlsx(workbook, args.destination)
    else:
        save_lxv(workbook, args.destination, args.encoding, args.separator)

    print(f"Converted {args.source} -> {args.destination} ({len(workbook)} sheets)")
    return 0


def export_command(args: argparse.Namespace) -> int:
    """Export one range of one sheet as LXV."""
    if _extension(args.destination) != LXV_EXTENSION:
        raise UnsupportedFormatError(
            "Range export writes LXV only",
            extension=Path(args.destination).suffix.lower(),
            file_path=args.destination,
        )
    workbook = _load(args.source, args)

    sheet = workbook.get_worksheet(args.sheet) if args.sheet else workbook[0]
    if sheet is None:
        print(f"Sheet not found: {args.sheet}", file=sys.stderr)
        return 1

    export_range: str | int = args.range if args.range else args.start_row
    export_lxv(sheet, args.destination, export_range, args.encoding, args.separator)
    print(f"Exported {sheet.name!r} from {args.source} -> {args.destination}")
    return 0


def info_command(args: argparse.Namespace) -> int:
    """Print the sheets of a workbook file."""
    workbook = _load(args.file, args)
    print(f"{args.file}: {len(workbook)} sheet(s)")
    for index, sheet in enumerate(workbook):
        used_rows = sheet.max_content_row + 1
        used_cols = sheet.max_content_col + 1
        print(f"  [{index}] {sheet.name!r}: {used_rows} rows x {used_cols} columns used")
        if args.preview:
            preview = sheet_to_dataframe(sheet).head(args.preview)
            for line in preview.to_string(index=False, header=False).splitlines():
                print(f"      {line}")
    return 0


def _add_format_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--encoding", "-e", help="Text encoding of LXV files (default: detect on load, settings default on save)")
    parser.add_argument("--buffer-lines", type=int, help=f"Rows per decode batch (default: {settings.buffer_lines})")
    parser.add_argument("--no-auto-spread", action="store_true", help="Do not grow sheets beyond their default size while loading")
    parser.add_argument("--separator", help="Field separator character")


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser.

    Returns:
        Configured argument parser
    """
    parser = argparse.ArgumentParser(prog="lxv", description="LXV multi-sheet text format tool")
    parser.add_argument("--version", "-V", action="version", version=f"lxv {__version__}")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    convert_parser = subparsers.add_parser("convert", help="Convert between .lxv and .xlsx")
    convert_parser.add_argument("source", help="Input file (.lxv or .xlsx)")
    convert_parser.add_argument("destination", help="Output file (.lxv or .xlsx)")
    _add_format_options(convert_parser)
    convert_parser.set_defaults(func=convert_command)

    export_parser = subparsers.add_parser("export", help="Export a sheet range as .lxv")
    export_parser.add_argument("source", help="Input file (.lxv or .xlsx)")
    export_parser.add_argument("destination", help="Output .lxv file")
    export_parser.add_argument("--sheet", "-s", help="Sheet name (default: first sheet)")
    export_parser.add_argument("--range", "-r", help="A1-style address or named range")
    export_parser.add_argument("--start-row", type=int, default=0, help="First row to export when no range is given")
    _add_format_options(export_parser)
    export_parser.set_defaults(func=export_command)

    info_parser = subparsers.add_parser("info", help="Show sheets of a workbook file")
    info_parser.add_argument("file", help="Workbook file (.lxv or .xlsx)")
    info_parser.add_argument("--preview", type=int, default=0, metavar="N", help="Also print the first N used rows of each sheet")
    _add_format_options(info_parser)
    info_parser.set_defaults(func=info_command)

    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entry point.

    Args:
        argv: Arguments without the program name; ``sys.argv[1:]`` when None.

    Returns:
        Process exit code.
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    configure_logging("DEBUG" if args.verbose or settings.debug else settings.log_level)
    validate_settings_on_startup(settings)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        return int(args.func(args))
    except LXVError as e:
        logger.debug("Command failed", error_code=e.error_code.value)
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())

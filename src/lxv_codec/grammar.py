"""Line grammar of the LXV format.

An LXV stream is a sequence of lines. Lines starting with ``---`` are
sentinels carrying metadata; every other line is one row of the current
sheet, its fields separated by a single reserved character::

    ---sep:∤
    ---sheet:Prices
    apple∤1.25
    pear∤0.80
    ---sheet:Notes
    fresh daily

There is no quoting. Text is made line-safe on export by replacing tab and
newline characters with two-character escapes and dropping carriage returns.
"""

import re
from dataclasses import dataclass
from enum import Enum

SENTINEL_PREFIX = "---"
SEPARATOR_PREFIX = "---sep:"
SHEET_PREFIX = "---sheet:"

_SENTINEL_RE = re.compile(r"^---(?P<keyword>[A-Za-z]*)(?::(?P<value>.*))?$", re.DOTALL)


class SentinelKind(str, Enum):
    """Kinds of sentinel lines."""

    SEPARATOR = "sep"
    SHEET = "sheet"
    OTHER = "other"


@dataclass(frozen=True)
class Sentinel:
    """A parsed sentinel line."""

    kind: SentinelKind
    value: str
    raw: str


def strip_line_ending(line: str) -> str:
    """Remove a trailing ``\\n`` or ``\\r\\n`` from a line read off a stream."""
    if line.endswith("\n"):
        line = line[:-1]
    if line.endswith("\r"):
        line = line[:-1]
    return line


def is_sentinel(line: str) -> bool:
    """Return True if the line carries metadata rather than row data."""
    return line.startswith(SENTINEL_PREFIX)


def parse_sentinel(line: str) -> Sentinel | None:
    """Parse a sentinel line.

    Unknown keywords and malformed sentinels are reported as
    ``SentinelKind.OTHER`` instead of raising; they still end a sheet's row
    region.

    Args:
        line: A line without its terminator.

    Returns:
        The parsed sentinel, or None when the line is row data.
    """
    if not is_sentinel(line):
        return None

    match = _SENTINEL_RE.match(line)
    if match is None or match.group("value") is None:
        return Sentinel(SentinelKind.OTHER, line[len(SENTINEL_PREFIX) :], line)

    keyword = match.group("keyword")
    value = match.group("value")
    if keyword == SentinelKind.SHEET.value:
        return Sentinel(SentinelKind.SHEET, value, line)
    if keyword == SentinelKind.SEPARATOR.value:
        return Sentinel(SentinelKind.SEPARATOR, value, line)
    return Sentinel(SentinelKind.OTHER, value, line)


def split_fields(line: str, separator: str) -> list[str]:
    """Split a row line into fields.

    Interior empty fields are kept so later values stay in their columns.
    Trailing empty fields are dropped: ``a∤b∤∤`` and ``a∤b`` are the same row.
    """
    fields = line.split(separator)
    while fields and not fields[-1]:
        fields.pop()
    return fields


def escape_field(text: str) -> str:
    """Make cell text safe to place on a single LXV line.

    Carriage returns are removed; newlines and tabs become the literal
    sequences ``\\n`` and ``\\t``. Decoding does not reverse this.
    """
    return text.replace("\r", "").replace("\n", "\\n").replace("\t", "\\t")


def format_separator_line(separator: str) -> str:
    """Build the separator declaration line."""
    return f"{SEPARATOR_PREFIX}{separator}"


def format_sheet_line(name: str) -> str:
    """Build a sheet boundary line.

    Line breaks in the name would split the sentinel, so they are escaped the
    same way as cell text.
    """
    return f"{SHEET_PREFIX}{escape_field(name)}"

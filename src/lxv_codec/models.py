"""Argument record shared by the LXV decoder and encoder."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from lxv_codec.config import DEFAULT_READ_BUFFER_LINES, DEFAULT_SEPARATOR
from lxv_codec.grid import RangePosition
from lxv_codec.utils.exceptions import ConfigurationError

if TYPE_CHECKING:
    from lxv_codec.config import Settings


@dataclass
class LXVFormatArgument:
    """Options controlling how LXV data is loaded and saved.

    Attributes:
        auto_spread: Append rows and columns to a worksheet when loaded data
            does not fit. When False, loading a sheet stops at the target
            range's row capacity.
        buffer_lines: How many rows are read, split and written per batch.
        target_range: Where loaded data is written on each worksheet.
            ``RangePosition.ENTIRE`` places it at A1 without a size limit.
        separator: Field separator character.
    """

    auto_spread: bool = True
    buffer_lines: int = DEFAULT_READ_BUFFER_LINES
    target_range: RangePosition = field(default_factory=lambda: RangePosition.ENTIRE)
    separator: str = DEFAULT_SEPARATOR

    @classmethod
    def from_settings(cls, s: Settings, **overrides: object) -> LXVFormatArgument:
        """Build an argument from configured defaults, with explicit overrides."""
        values: dict[str, object] = {
            "auto_spread": s.auto_spread,
            "buffer_lines": s.buffer_lines,
            "separator": s.separator,
        }
        values.update(overrides)
        return cls(**values)  # type: ignore[arg-type]

    def validate(self) -> None:
        """Reject unusable arguments.

        Raises:
            ConfigurationError: For a non-positive buffer size, a bad separator
                or a target range with negative coordinates or zero extent.
        """
        if (
            not isinstance(self.buffer_lines, int)
            or isinstance(self.buffer_lines, bool)
            or self.buffer_lines <= 0
        ):
            raise ConfigurationError(
                f"buffer_lines must be a positive integer, got {self.buffer_lines!r}",
                field_name="buffer_lines",
                value=self.buffer_lines,
            )
        if len(self.separator) != 1 or self.separator in "\r\n":
            raise ConfigurationError(
                "separator must be a single character that is not a line break",
                field_name="separator",
                value=self.separator,
            )
        target = self.target_range
        if target.row < 0 or target.col < 0 or target.rows == 0 or target.cols == 0:
            raise ConfigurationError(
                f"target_range {target} does not address any cell",
                field_name="target_range",
                value=target,
            )

"""Configuration management for the LXV codec.

This module provides centralized configuration using pydantic-settings.
All configuration options can be set via environment variables with the
LXV_ prefix, or via a .env file in the working directory.

Environment Variables:
    LXV_BUFFER_LINES: Rows read per decode batch (default: 512)
    LXV_AUTO_SPREAD: Grow worksheets on demand while decoding (default: true)
    LXV_SEPARATOR: Field separator character (default: ∤)
    LXV_DEFAULT_ENCODING: Text encoding used when none is given (default: utf-8)
    LXV_ENCODING_SAMPLE_BYTES: Bytes sampled for encoding detection (default: 65536)
    LXV_MIN_ENCODING_CONFIDENCE: Minimum chardet confidence (default: 0.5)
    LXV_DEFAULT_ROWS: Row count of newly created worksheets (default: 200)
    LXV_DEFAULT_COLUMNS: Column count of newly created worksheets (default: 100)
    LXV_LOG_LEVEL: Logging level (default: INFO)
    LXV_DEBUG: Enable debug mode (default: false)
"""

import codecs
import logging
from typing import Any

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SEPARATOR = "∤"
DEFAULT_READ_BUFFER_LINES = 512


class Settings(BaseSettings):
    """Codec settings loaded from environment variables.

    Example .env file:
        LXV_BUFFER_LINES=2048
        LXV_DEFAULT_ENCODING=utf-16
        LXV_LOG_LEVEL=DEBUG
    """

    model_config = SettingsConfigDict(
        env_prefix="LXV_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # =========================================================================
    # Format Settings
    # =========================================================================

    buffer_lines: int = DEFAULT_READ_BUFFER_LINES
    """Number of rows buffered and written per batch while decoding."""

    auto_spread: bool = True
    """Append rows and columns to a worksheet when decoded data needs them."""

    separator: str = DEFAULT_SEPARATOR
    """Field separator written to and expected from LXV streams."""

    # =========================================================================
    # Encoding Settings
    # =========================================================================

    default_encoding: str = "utf-8"
    """Encoding used for saving, and for loading when detection is unavailable."""

    encoding_sample_bytes: int = 65536
    """How many leading bytes of a seekable stream are fed to chardet."""

    min_encoding_confidence: float = 0.5
    """Minimum chardet confidence before the fallback encodings are tried."""

    # =========================================================================
    # Worksheet Settings
    # =========================================================================

    default_rows: int = 200
    """Row count of a freshly created worksheet."""

    default_columns: int = 100
    """Column count of a freshly created worksheet."""

    # =========================================================================
    # Logging Settings
    # =========================================================================

    log_level: str = "INFO"
    """Logging level: DEBUG, INFO, WARNING, ERROR, or CRITICAL."""

    debug: bool = False
    """Enable debug mode with additional logging."""

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a valid Python logging level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_v = v.upper()
        if upper_v not in valid_levels:
            raise ValueError(
                f"Invalid log level: {v}. Must be one of: {', '.join(valid_levels)}"
            )
        return upper_v

    @field_validator("buffer_lines")
    @classmethod
    def validate_buffer_lines(cls, v: int) -> int:
        """Validate the decode batch size is positive and bounded."""
        if not 1 <= v <= 1_000_000:
            raise ValueError(f"buffer_lines must be between 1 and 1000000, got {v}")
        return v

    @field_validator("separator")
    @classmethod
    def validate_separator(cls, v: str) -> str:
        """Validate the separator is one character that is not a line break."""
        if len(v) != 1:
            raise ValueError(f"separator must be exactly one character, got {v!r}")
        if v in "\r\n":
            raise ValueError("separator must not be a line break")
        return v

    @field_validator("default_encoding")
    @classmethod
    def validate_encoding(cls, v: str) -> str:
        """Validate the encoding is known to Python's codec registry."""
        try:
            return codecs.lookup(v).name
        except LookupError as e:
            raise ValueError(f"Unknown encoding: {v}") from e

    @field_validator("min_encoding_confidence")
    @classmethod
    def validate_confidence(cls, v: float) -> float:
        """Validate confidence is between 0.0 and 1.0."""
        if not 0.0 <= v <= 1.0:
            raise ValueError(f"Confidence must be between 0.0 and 1.0, got {v}")
        return v

    @field_validator("encoding_sample_bytes", "default_rows", "default_columns")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """Validate sizes are positive."""
        if v < 1:
            raise ValueError(f"Value must be at least 1, got {v}")
        return v

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def log_level_int(self) -> int:
        """Get log level as integer for logging module."""
        level: int = getattr(logging, self.log_level)
        return level

    def to_safe_dict(self) -> dict[str, Any]:
        """Convert settings to a plain dictionary for logging."""
        return {
            "buffer_lines": self.buffer_lines,
            "auto_spread": self.auto_spread,
            "separator": self.separator,
            "default_encoding": self.default_encoding,
            "encoding_sample_bytes": self.encoding_sample_bytes,
            "min_encoding_confidence": self.min_encoding_confidence,
            "default_rows": self.default_rows,
            "default_columns": self.default_columns,
            "log_level": self.log_level,
            "debug": self.debug,
        }


def validate_settings_on_startup(s: Settings) -> None:
    """Log warnings for settings that are valid but likely to cause trouble.

    Args:
        s: Settings instance to validate.
    """
    logger = logging.getLogger(__name__)

    if s.separator.isascii():
        logger.warning(
            f"Separator {s.separator!r} is an ASCII character and may collide "
            "with cell text. LXV has no quoting, so such cells will be split."
        )

    logger.info(
        f"Configuration loaded: log_level={s.log_level}, debug={s.debug}, "
        f"buffer_lines={s.buffer_lines}, auto_spread={s.auto_spread}, "
        f"default_encoding={s.default_encoding}"
    )


settings = Settings()

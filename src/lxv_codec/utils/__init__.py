"""Utilities package for the LXV codec.

This package provides:
- Centralized exception classes (exceptions.py)
- Structured logging utilities (logging.py)
"""

from lxv_codec.utils.exceptions import (
    ConfigurationError,
    EncodingError,
    ErrorCode,
    FileError,
    InvalidAddressError,
    LXVError,
    LXVFileNotFoundError,
    RangeError,
    RangeOutOfBoundsError,
    UnsupportedFormatError,
)
from lxv_codec.utils.logging import (
    LogContext,
    StructuredLogger,
    configure_logging,
    get_logger,
    timed_operation,
)

__all__ = [
    # Exceptions
    "ConfigurationError",
    "EncodingError",
    "ErrorCode",
    "FileError",
    "InvalidAddressError",
    "LXVError",
    "LXVFileNotFoundError",
    "RangeError",
    "RangeOutOfBoundsError",
    "UnsupportedFormatError",
    # Logging
    "LogContext",
    "StructuredLogger",
    "configure_logging",
    "get_logger",
    "timed_operation",
]

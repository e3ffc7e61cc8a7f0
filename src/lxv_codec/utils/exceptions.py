"""Centralized exception classes for the LXV codec.

This module provides a hierarchy of custom exceptions with error codes and
structured error details for consistent error handling across the decoder,
the encoder and the file-level helpers.

Exception Hierarchy:
    LXVError (base)
    ├── FileError
    │   ├── LXVFileNotFoundError
    │   ├── UnsupportedFormatError
    │   └── EncodingError
    ├── RangeError
    │   ├── InvalidAddressError
    │   └── RangeOutOfBoundsError
    └── ConfigurationError

Underlying stream failures are not wrapped: ``OSError`` raised by a read or a
write reaches the caller unchanged.

Error Codes:
    All errors have a unique error code (e.g., "E1001") that can be used
    for programmatic error handling and documentation.
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Enumeration of all error codes used in the package.

    Error codes are grouped by category:
    - E1xxx: File/stream errors
    - E2xxx: Range and address errors
    - E9xxx: Internal/configuration errors
    """

    # File errors (E1xxx)
    FILE_NOT_FOUND = "E1001"
    UNSUPPORTED_FORMAT = "E1002"
    FILE_READ_ERROR = "E1003"
    FILE_WRITE_ERROR = "E1004"
    ENCODING_ERROR = "E1005"

    # Range errors (E2xxx)
    INVALID_ADDRESS = "E2001"
    RANGE_OUT_OF_BOUNDS = "E2002"

    # Internal errors (E9xxx)
    INTERNAL_ERROR = "E9001"
    CONFIGURATION_ERROR = "E9002"


class LXVError(Exception):
    """Base exception for all LXV codec errors.

    Attributes:
        message: Human-readable error message.
        error_code: Unique error code from ErrorCode enum.
        details: Optional dictionary with additional error details.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Error code from ErrorCode enum.
            details: Optional additional details about the error.
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert the exception to a dictionary for reporting.

        Returns:
            Dictionary with error information.
        """
        result: dict[str, Any] = {
            "error_code": self.error_code.value,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        """Return string representation with error code."""
        return f"[{self.error_code.value}] {self.message}"


# =============================================================================
# File Errors (E1xxx)
# =============================================================================


class FileError(LXVError):
    """Base class for file-related errors."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.FILE_READ_ERROR,
        file_path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with file path information.

        Args:
            message: Error message.
            error_code: Error code.
            file_path: Path to the problematic file.
            details: Additional details.
        """
        details = details or {}
        if file_path:
            details["file_path"] = file_path
        super().__init__(message, error_code, details)
        self.file_path = file_path


class LXVFileNotFoundError(FileError):
    """Raised when a file to load does not exist.

    Note: Named LXVFileNotFoundError to avoid shadowing built-in FileNotFoundError.
    """

    def __init__(
        self,
        file_path: str,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        message = message or f"File not found: {file_path}"
        super().__init__(
            message=message,
            error_code=ErrorCode.FILE_NOT_FOUND,
            file_path=file_path,
            details=details,
        )


class UnsupportedFormatError(FileError):
    """Raised when a file extension is not one the converters understand."""

    def __init__(
        self,
        message: str,
        extension: str | None = None,
        file_path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with format information.

        Args:
            message: Error message.
            extension: File extension that was rejected.
            file_path: Optional file path.
            details: Additional details.
        """
        details = details or {}
        if extension:
            details["extension"] = extension
        super().__init__(
            message=message,
            error_code=ErrorCode.UNSUPPORTED_FORMAT,
            file_path=file_path,
            details=details,
        )
        self.extension = extension


class EncodingError(FileError):
    """Raised when stream content cannot be decoded with the chosen encoding."""

    def __init__(
        self,
        message: str,
        encoding: str | None = None,
        file_path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with encoding information.

        Args:
            message: Error message.
            encoding: The encoding that failed.
            file_path: Optional file path.
            details: Additional details.
        """
        details = details or {}
        if encoding:
            details["encoding"] = encoding
        super().__init__(
            message=message,
            error_code=ErrorCode.ENCODING_ERROR,
            file_path=file_path,
            details=details,
        )
        self.encoding = encoding


# =============================================================================
# Range Errors (E2xxx)
# =============================================================================


class RangeError(LXVError):
    """Base class for range and address errors."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.RANGE_OUT_OF_BOUNDS,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, error_code, details)


class InvalidAddressError(RangeError):
    """Raised when an address is neither a valid A1 reference nor a named range."""

    def __init__(
        self,
        address: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with the rejected address.

        Args:
            address: The address or name that could not be resolved.
            details: Additional details.
        """
        details = details or {}
        details["address"] = address
        super().__init__(
            f"Invalid address or range name: {address!r}",
            error_code=ErrorCode.INVALID_ADDRESS,
            details=details,
        )
        self.address = address


class RangeOutOfBoundsError(RangeError):
    """Raised when a write touches cells outside a worksheet."""

    def __init__(
        self,
        row: int,
        col: int,
        row_count: int,
        column_count: int,
    ) -> None:
        super().__init__(
            f"Cell ({row}, {col}) is outside the worksheet "
            f"({row_count} rows x {column_count} columns)",
            error_code=ErrorCode.RANGE_OUT_OF_BOUNDS,
            details={
                "row": row,
                "col": col,
                "row_count": row_count,
                "column_count": column_count,
            },
        )


# =============================================================================
# Configuration Errors (E9xxx)
# =============================================================================


class ConfigurationError(LXVError):
    """Raised when a format argument is unusable.

    Always raised before any stream I/O begins.
    """

    def __init__(
        self,
        message: str,
        field_name: str | None = None,
        value: Any = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with the offending setting.

        Args:
            message: Error message.
            field_name: Name of the invalid argument field.
            value: The rejected value.
            details: Additional details.
        """
        details = details or {}
        if field_name:
            details["field"] = field_name
            details["value"] = value
        super().__init__(message, ErrorCode.CONFIGURATION_ERROR, details)
        self.field_name = field_name
        self.value = value

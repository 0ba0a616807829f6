"""Centralized exception classes for the spreadsheet viewer.

This module provides a hierarchy of custom exceptions with error codes,
HTTP status code mapping, and structured error details for consistent
error handling throughout the application.

Exception Hierarchy:
    ViewerError (base)
    ├── FileError
    │   ├── FileTooLargeError
    │   └── UnsupportedFormatError
    ├── ParseError
    │   ├── WorkbookParseError
    │   └── EmptyWorkbookError
    ├── ViewStateError
    │   ├── SheetNotFoundError
    │   └── NoWorkbookLoadedError
    └── ValidationError

Error Codes:
    All errors have a unique error code (e.g., "E1003") that can be used
    for programmatic error handling and documentation.
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Enumeration of all error codes used in the application.

    Error codes are grouped by category:
    - E1xxx: Upload/file errors
    - E2xxx: Workbook parsing errors
    - E3xxx: View state errors
    - E9xxx: Internal/unexpected errors
    """

    # File errors (E1xxx)
    FILE_TOO_LARGE = "E1002"
    UNSUPPORTED_FORMAT = "E1003"
    INVALID_UPLOAD = "E1004"

    # Parse errors (E2xxx)
    WORKBOOK_PARSE_FAILED = "E2001"
    EMPTY_WORKBOOK = "E2002"

    # View state errors (E3xxx)
    SHEET_NOT_FOUND = "E3001"
    NO_WORKBOOK_LOADED = "E3002"

    # Internal errors (E9xxx)
    INTERNAL_ERROR = "E9001"


class HTTPStatusMixin:
    """Mixin that provides HTTP status code for exceptions.

    Subclasses should set the `http_status` class attribute.
    """

    http_status: int = 500

    def get_http_status(self) -> int:
        """Get the HTTP status code for this exception."""
        return self.http_status


class ViewerError(Exception, HTTPStatusMixin):
    """Base exception for all spreadsheet viewer errors.

    Attributes:
        message: Human-readable error message.
        error_code: Unique error code from ErrorCode enum.
        details: Optional dictionary with additional error details.
        http_status: HTTP status code for API responses (default 500).
    """

    http_status: int = 500

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
        """Convert the exception to a dictionary for API responses."""
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


class FileError(ViewerError):
    """Base class for errors about the uploaded file itself."""

    http_status: int = 400

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INVALID_UPLOAD,
        file_name: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with file name information.

        Args:
            message: Error message.
            error_code: Error code.
            file_name: Name of the problematic file.
            details: Additional details.
        """
        details = details or {}
        if file_name:
            details["file_name"] = file_name
        super().__init__(message, error_code, details)
        self.file_name = file_name


class FileTooLargeError(FileError):
    """Raised when a file exceeds the maximum allowed size."""

    http_status: int = 413

    def __init__(
        self,
        file_size: int,
        max_size: int,
        file_name: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        details["file_size_bytes"] = file_size
        details["max_size_bytes"] = max_size
        message = (
            f"File size ({file_size} bytes) exceeds maximum "
            f"allowed size ({max_size} bytes)"
        )
        super().__init__(
            message=message,
            error_code=ErrorCode.FILE_TOO_LARGE,
            file_name=file_name,
            details=details,
        )
        self.file_size = file_size
        self.max_size = max_size


class UnsupportedFormatError(FileError):
    """Raised when the file extension is not in the allow-list."""

    http_status: int = 400

    def __init__(
        self,
        message: str,
        extension: str | None = None,
        file_name: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with format information.

        Args:
            message: Error message.
            extension: Extension that was rejected.
            file_name: Optional file name.
            details: Additional details.
        """
        details = details or {}
        if extension:
            details["extension"] = extension
        super().__init__(
            message=message,
            error_code=ErrorCode.UNSUPPORTED_FORMAT,
            file_name=file_name,
            details=details,
        )
        self.extension = extension


# =============================================================================
# Parse Errors (E2xxx)
# =============================================================================


class ParseError(ViewerError):
    """Base class for failures while decoding workbook bytes."""

    http_status: int = 422

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.WORKBOOK_PARSE_FAILED,
        file_name: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if file_name:
            details["file_name"] = file_name
        super().__init__(message, error_code, details)
        self.file_name = file_name


class WorkbookParseError(ParseError):
    """Raised when a spreadsheet library fails to read the file.

    The message is the underlying library message so it can be shown to the
    user as-is.
    """

    def __init__(
        self,
        message: str,
        file_name: str | None = None,
        cause_type: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if cause_type:
            details["cause_type"] = cause_type
        super().__init__(
            message=message,
            error_code=ErrorCode.WORKBOOK_PARSE_FAILED,
            file_name=file_name,
            details=details,
        )
        self.cause_type = cause_type


class EmptyWorkbookError(ParseError):
    """Raised when a workbook was read but contains no sheets."""

    def __init__(
        self,
        file_name: str | None = None,
        message: str = "Workbook contains no sheets",
    ) -> None:
        super().__init__(
            message=message,
            error_code=ErrorCode.EMPTY_WORKBOOK,
            file_name=file_name,
        )


# =============================================================================
# View State Errors (E3xxx)
# =============================================================================


class ViewStateError(ViewerError):
    """Base class for operations that do not fit the current view state."""

    http_status: int = 409

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.NO_WORKBOOK_LOADED,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, error_code, details)


class SheetNotFoundError(ViewStateError):
    """Raised when selecting a sheet the loaded workbook does not have."""

    http_status: int = 404

    def __init__(
        self,
        sheet_name: str,
        available: list[str] | None = None,
    ) -> None:
        """Initialize with the requested sheet name.

        Args:
            sheet_name: Sheet that was requested.
            available: Sheets the loaded workbook does have.
        """
        details: dict[str, Any] = {"sheet_name": sheet_name}
        if available is not None:
            details["available_sheets"] = available
        super().__init__(
            message=f"Sheet not found: {sheet_name}",
            error_code=ErrorCode.SHEET_NOT_FOUND,
            details=details,
        )
        self.sheet_name = sheet_name


class NoWorkbookLoadedError(ViewStateError):
    """Raised when an operation needs a workbook but none is loaded."""

    def __init__(self, message: str = "No workbook is loaded") -> None:
        super().__init__(message=message, error_code=ErrorCode.NO_WORKBOOK_LOADED)


# =============================================================================
# Validation Errors
# =============================================================================


class ValidationError(ViewerError):
    """General validation error for request input."""

    http_status: int = 400

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with validation details.

        Args:
            message: Main error message.
            field: Field that failed validation.
            details: Additional details.
        """
        details = details or {}
        if field:
            details["field"] = field
        super().__init__(
            message=message,
            error_code=ErrorCode.INVALID_UPLOAD,
            details=details,
        )

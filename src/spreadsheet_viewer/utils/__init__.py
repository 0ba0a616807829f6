"""Utilities package for the spreadsheet viewer.

This package provides:
- Centralized exception classes (exceptions.py)
- Structured logging utilities (logging.py)
"""

from spreadsheet_viewer.utils.exceptions import (
    EmptyWorkbookError,
    ErrorCode,
    FileError,
    FileTooLargeError,
    HTTPStatusMixin,
    NoWorkbookLoadedError,
    ParseError,
    SheetNotFoundError,
    UnsupportedFormatError,
    ValidationError,
    ViewerError,
    ViewStateError,
    WorkbookParseError,
)
from spreadsheet_viewer.utils.logging import (
    LogContext,
    StructuredLogger,
    get_logger,
    get_request_id,
    set_request_id,
)

__all__ = [
    # Exceptions
    "EmptyWorkbookError",
    "ErrorCode",
    "FileError",
    "FileTooLargeError",
    "HTTPStatusMixin",
    "NoWorkbookLoadedError",
    "ParseError",
    "SheetNotFoundError",
    "UnsupportedFormatError",
    "ValidationError",
    "ViewerError",
    "ViewStateError",
    "WorkbookParseError",
    # Logging
    "LogContext",
    "StructuredLogger",
    "get_logger",
    "get_request_id",
    "set_request_id",
]

"""Services for the spreadsheet viewer."""

from spreadsheet_viewer.services.file_intake import (
    SUPPORTED_EXTENSIONS,
    validate_upload,
)
from spreadsheet_viewer.services.session_store import SessionStore
from spreadsheet_viewer.services.table_view import TableView, build_table_view
from spreadsheet_viewer.services.view_state import ViewState, reduce
from spreadsheet_viewer.services.workbook_parser import WorkbookParser

__all__ = [
    "SUPPORTED_EXTENSIONS",
    "SessionStore",
    "TableView",
    "ViewState",
    "WorkbookParser",
    "build_table_view",
    "reduce",
    "validate_upload",
]

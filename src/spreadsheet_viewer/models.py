"""Workbook data model and pydantic models for API responses."""

from __future__ import annotations

import math
import numbers
from dataclasses import dataclass, field
from datetime import date, datetime, time
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from spreadsheet_viewer.utils.exceptions import ErrorCode, SheetNotFoundError

DisplayValue = str | int | float


class CellKind(str, Enum):
    """Kind of value held by a cell."""

    TEXT = "text"
    NUMBER = "number"
    EMPTY = "empty"


@dataclass(frozen=True)
class Cell:
    """A single spreadsheet cell: text, number, or empty."""

    kind: CellKind
    value: DisplayValue = ""

    @classmethod
    def text(cls, value: str) -> Cell:
        if value == "":
            return cls.empty()
        return cls(CellKind.TEXT, value)

    @classmethod
    def number(cls, value: int | float) -> Cell:
        return cls(CellKind.NUMBER, value)

    @classmethod
    def empty(cls) -> Cell:
        return cls(CellKind.EMPTY, "")

    @classmethod
    def from_value(cls, raw: Any) -> Cell:
        """Tag a raw value returned by a spreadsheet library.

        None, NaN and "" become empty cells. Booleans become the text TRUE or
        FALSE, dates and times their ISO 8601 text, other numbers stay numbers
        and everything else is converted with str().
        """
        if raw is None:
            return cls.empty()
        if isinstance(raw, bool):
            return cls.text("TRUE" if raw else "FALSE")
        if isinstance(raw, numbers.Real):
            if isinstance(raw, float) and math.isnan(raw):
                return cls.empty()
            if isinstance(raw, numbers.Integral):
                return cls.number(int(raw))
            return cls.number(float(raw))
        if isinstance(raw, (datetime, date, time)):
            return cls.text(raw.isoformat())
        return cls.text(str(raw))

    @property
    def display(self) -> str:
        """Text shown in a table cell."""
        if self.kind is CellKind.EMPTY:
            return ""
        if self.kind is CellKind.NUMBER:
            value = self.value
            if isinstance(value, float) and value.is_integer():
                return str(int(value))
            return str(value)
        return str(self.value)

    @property
    def is_empty(self) -> bool:
        return self.kind is CellKind.EMPTY

    @property
    def is_falsy(self) -> bool:
        """True for empty cells, empty text and the number zero."""
        if self.kind is CellKind.EMPTY:
            return True
        if self.kind is CellKind.NUMBER:
            return self.value == 0
        return self.value == ""


Row = tuple[Cell, ...]
Matrix = tuple[Row, ...]


@dataclass(frozen=True)
class Workbook:
    """Parsed workbook: sheet name to header-inclusive cell matrix.

    Sheet order is the order the spreadsheet library reported.
    """

    sheets: dict[str, Matrix] = field(default_factory=dict)

    @property
    def sheet_names(self) -> list[str]:
        return list(self.sheets)

    @property
    def total_rows(self) -> int:
        return sum(len(matrix) for matrix in self.sheets.values())

    def matrix(self, name: str) -> Matrix:
        """Return the matrix of a sheet.

        Raises:
            SheetNotFoundError: If the workbook has no sheet with that name.
        """
        try:
            return self.sheets[name]
        except KeyError:
            raise SheetNotFoundError(name, available=self.sheet_names) from None

    def to_display(self) -> dict[str, list[list[DisplayValue]]]:
        """Raw cell values per sheet, empty cells as empty strings."""
        return {
            name: [[cell.value for cell in row] for row in matrix]
            for name, matrix in self.sheets.items()
        }


# =============================================================================
# API models
# =============================================================================


class HealthResponse(BaseModel):
    """Response model for health check endpoint."""

    status: str
    timestamp: str
    version: str


class WorkbookResponse(BaseModel):
    """Response model for the stateless workbook parsing endpoint."""

    file_name: str = Field(..., description="Original name of the uploaded file")
    sheet_names: list[str] = Field(..., description="Sheets in workbook order")
    sheets: dict[str, list[list[DisplayValue]]] = Field(
        ..., description="Header-inclusive cell matrix per sheet"
    )


class TableResponse(BaseModel):
    """Render model of the active sheet."""

    header: list[str] | None = Field(
        default=None, description="Header labels, placeholders filled in"
    )
    rows: list[list[str]] = Field(
        default_factory=list, description="Body rows as display text"
    )
    row_count: int = Field(..., description="Body row count, header excluded")
    column_count: int = Field(..., description="Length of the header row")


class ViewStateResponse(BaseModel):
    """Snapshot of a viewer session."""

    file_name: str
    sheets: list[str]
    active_sheet: str
    is_dragging: bool
    error: str
    loaded: bool = Field(..., description="Whether a workbook is loaded")
    table: TableResponse | None = None


class ErrorDetail(BaseModel):
    """Error detail model for API error responses.

    - Human-readable error message
    - Machine-readable error code
    - Optional additional details for debugging
    - Optional request ID for correlation
    """

    detail: str = Field(..., description="Human-readable error message")
    error_code: str | None = Field(
        default=None,
        description="Machine-readable error code (e.g., 'E1003')",
    )
    details: dict[str, Any] | None = Field(
        default=None,
        description="Additional error details for debugging",
    )
    request_id: str | None = Field(
        default=None,
        description="Request ID for error correlation",
    )

    @classmethod
    def from_error_code(
        cls,
        error_code: ErrorCode,
        detail: str,
        details: dict[str, Any] | None = None,
        request_id: str | None = None,
    ) -> ErrorDetail:
        return cls(
            detail=detail,
            error_code=error_code.value,
            details=details,
            request_id=request_id,
        )

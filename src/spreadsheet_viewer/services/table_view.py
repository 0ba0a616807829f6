"""Render model of a sheet table.

Row 0 of a sheet matrix is the header; every following row is a body row
shown with a 1-based row number in front of it.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from spreadsheet_viewer.messages import message
from spreadsheet_viewer.models import Cell, Matrix


@dataclass(frozen=True)
class TableView:
    """Everything the template needs to draw one sheet."""

    header: list[str] | None
    rows: list[tuple[int, list[str]]] = field(default_factory=list)
    row_count: int = 0
    column_count: int = 0
    footer: str | None = None


def header_label(cell: Cell, index: int, lang: str = "fr") -> str:
    """Label of a header cell.

    Falsy cells (empty, empty text, the number 0) get the positional
    placeholder "Colonne <index + 1>". Whitespace-only text is kept as is.
    """
    if cell.is_falsy:
        return message("column_placeholder", lang, index=index + 1)
    return cell.display


def row_count(matrix: Matrix) -> int:
    """Body rows, header excluded."""
    return max(len(matrix) - 1, 0)


def column_count(matrix: Matrix) -> int:
    """Length of the header row, 0 for a sheet without rows."""
    return len(matrix[0]) if matrix else 0


def build_table_view(matrix: Matrix, lang: str = "fr") -> TableView:
    """Build the render model of a sheet matrix.

    The footer is only produced when the sheet has at least one body row.
    """
    if not matrix:
        return TableView(header=None)

    header = [header_label(cell, index, lang) for index, cell in enumerate(matrix[0])]
    rows = [
        (number, [cell.display for cell in row])
        for number, row in enumerate(matrix[1:], start=1)
    ]
    rows_total = row_count(matrix)
    columns_total = column_count(matrix)

    footer = None
    if rows_total > 0:
        footer = message("footer", lang, rows=rows_total, columns=columns_total)

    return TableView(
        header=header,
        rows=rows,
        row_count=rows_total,
        column_count=columns_total,
        footer=footer,
    )

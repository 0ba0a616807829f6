from __future__ import annotations

import io
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

import pandas as pd
import pytest
from openpyxl import Workbook as OpenpyxlWorkbook

from spreadsheet_viewer.models import Cell, Matrix, Workbook
from spreadsheet_viewer.utils.logging import clear_context

FIXTURES_DIR = Path(__file__).parent / "fixtures"

SheetsFactory = Callable[[dict[str, Sequence[Sequence[Any]]]], bytes]


@pytest.fixture(autouse=True)
def _reset_log_context() -> None:
    clear_context()


@pytest.fixture
def people_csv() -> bytes:
    """The Name/Age sheet with two people."""
    return b"Name,Age\nAna,30\nBo,25\n"


@pytest.fixture
def clients_xls() -> bytes:
    """Legacy .xls workbook: Clients (Name/Age) then Orders (Id/Total)."""
    return (FIXTURES_DIR / "clients.xls").read_bytes()


@pytest.fixture
def make_xlsx() -> SheetsFactory:
    """Build .xlsx bytes from {sheet name: rows}, sheets in insertion order."""

    def _make(sheets: dict[str, Sequence[Sequence[Any]]]) -> bytes:
        wb = OpenpyxlWorkbook()
        wb.remove(wb.active)
        for name, rows in sheets.items():
            ws = wb.create_sheet(name)
            for row in rows:
                ws.append(list(row))
        buffer = io.BytesIO()
        wb.save(buffer)
        return buffer.getvalue()

    return _make


@pytest.fixture
def make_ods() -> SheetsFactory:
    """Build .ods bytes from {sheet name: rows} through pandas and odfpy."""

    def _make(sheets: dict[str, Sequence[Sequence[Any]]]) -> bytes:
        buffer = io.BytesIO()
        with pd.ExcelWriter(buffer, engine="odf") as writer:
            for name, rows in sheets.items():
                frame = pd.DataFrame([list(row) for row in rows])
                frame.to_excel(writer, sheet_name=name, header=False, index=False)
        return buffer.getvalue()

    return _make


def matrix_of(rows: Sequence[Sequence[Any]]) -> Matrix:
    return tuple(tuple(Cell.from_value(value) for value in row) for row in rows)


@pytest.fixture
def make_matrix() -> Callable[[Sequence[Sequence[Any]]], Matrix]:
    """Tag plain rows without any reshaping."""
    return matrix_of


@pytest.fixture
def two_sheet_workbook() -> Workbook:
    return Workbook(
        sheets={
            "Clients": matrix_of([["Name", "City"], ["Ana", "Lyon"]]),
            "Orders": matrix_of([["Id", "Total"], [1, 9.5], [2, 12]]),
        }
    )

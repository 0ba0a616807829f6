"""Workbook parsing delegated to third-party spreadsheet readers.

The readers own every format-specific detail:

- .xlsx: openpyxl
- .xls: pandas with the xlrd engine
- .ods: pandas with the odf engine
- .csv: pandas, after chardet encoding detection and delimiter sniffing

This module only reshapes what they return into one header-inclusive,
rectangular cell matrix per sheet.
"""

from __future__ import annotations

import asyncio
import csv
import io
from collections.abc import Callable, Iterable, Sequence
from typing import Any

import chardet
import pandas as pd
from openpyxl import load_workbook

from spreadsheet_viewer.models import Cell, Matrix, Row, Workbook
from spreadsheet_viewer.services.file_intake import file_extension
from spreadsheet_viewer.utils.exceptions import (
    EmptyWorkbookError,
    UnsupportedFormatError,
    WorkbookParseError,
)
from spreadsheet_viewer.utils.logging import LogContext, get_logger, timed_operation

logger = get_logger(__name__)

RawSheet = tuple[str, list[Sequence[Any]]]


def to_matrix(rows: Iterable[Sequence[Any]]) -> Matrix:
    """Tag raw values and make the sheet rectangular.

    Trailing rows without any value are dropped. The width is the right-most
    column holding a value in any row; shorter rows are padded with empty
    cells so blank cells are never omitted.
    """
    tagged = [[Cell.from_value(value) for value in row] for row in rows]

    while tagged and all(cell.is_empty for cell in tagged[-1]):
        tagged.pop()

    width = 0
    for row in tagged:
        for index in range(len(row) - 1, -1, -1):
            if not row[index].is_empty:
                width = max(width, index + 1)
                break

    matrix: list[Row] = []
    for row in tagged:
        padded = row[:width] + [Cell.empty()] * (width - len(row))
        matrix.append(tuple(padded))
    return tuple(matrix)


class WorkbookParser:
    """Turns uploaded spreadsheet bytes into a Workbook."""

    # Name given to the single sheet of a CSV workbook
    CSV_SHEET_NAME = "Sheet1"

    # Common encodings to try if chardet fails
    FALLBACK_ENCODINGS = ["utf-8", "cp1252", "latin-1"]

    # Minimum confidence threshold for encoding detection
    MIN_ENCODING_CONFIDENCE = 0.5

    # pandas engines for the formats openpyxl cannot read
    PANDAS_ENGINES: dict[str, str] = {".xls": "xlrd", ".ods": "odf"}

    def __init__(self) -> None:
        self._readers: dict[str, Callable[[bytes], list[RawSheet]]] = {
            ".xlsx": self._read_xlsx,
            ".xls": lambda content: self._read_with_pandas(content, ".xls"),
            ".ods": lambda content: self._read_with_pandas(content, ".ods"),
            ".csv": self._read_csv,
        }

    def parse(self, content: bytes, filename: str) -> Workbook:
        """Parse file bytes into a Workbook.

        Args:
            content: Raw bytes of the uploaded file.
            filename: Original file name; its extension selects the reader.

        Returns:
            Workbook with every sheet, in the order the reader reported them.

        Raises:
            UnsupportedFormatError: If no reader handles the extension.
            WorkbookParseError: If the reader fails on the bytes.
            EmptyWorkbookError: If the reader found no sheets.
        """
        extension = file_extension(filename)
        reader = self._readers.get(extension)
        if reader is None:
            raise UnsupportedFormatError(
                message=f"No reader for '{extension}'",
                extension=extension,
                file_name=filename,
            )

        with (
            LogContext(file_name=filename),
            timed_operation(logger, "workbook_parse") as metrics,
        ):
            metrics.bytes_read = len(content)
            try:
                raw_sheets = reader(content)
                workbook = Workbook(
                    sheets={name: to_matrix(rows) for name, rows in raw_sheets}
                )
            except Exception as e:
                logger.warning(
                    "Spreadsheet reader failed",
                    error_type=type(e).__name__,
                    error=str(e),
                )
                raise WorkbookParseError(
                    message=str(e) or type(e).__name__,
                    file_name=filename,
                    cause_type=type(e).__name__,
                ) from e

            if not workbook.sheets:
                raise EmptyWorkbookError(file_name=filename)

            metrics.sheets_parsed = len(workbook.sheets)
            metrics.rows_parsed = workbook.total_rows

        return workbook

    async def parse_async(self, content: bytes, filename: str) -> Workbook:
        """Parse in a worker thread so the event loop keeps serving requests."""
        return await asyncio.to_thread(self.parse, content, filename)

    # ------------------------------------------------------------------ #
    # Readers
    # ------------------------------------------------------------------ #

    def _read_xlsx(self, content: bytes) -> list[RawSheet]:
        wb = load_workbook(filename=io.BytesIO(content), data_only=True, read_only=True)
        try:
            return [
                (ws.title, list(ws.iter_rows(values_only=True)))
                for ws in wb.worksheets
            ]
        finally:
            wb.close()

    def _read_with_pandas(self, content: bytes, extension: str) -> list[RawSheet]:
        engine = self.PANDAS_ENGINES[extension]
        sheets: list[RawSheet] = []
        with pd.ExcelFile(io.BytesIO(content), engine=engine) as xls:
            for name in xls.sheet_names:
                frame = xls.parse(
                    sheet_name=name,
                    header=None,
                    dtype=object,
                    keep_default_na=False,
                )
                sheets.append((str(name), self._frame_rows(frame)))
        return sheets

    def _read_csv(self, content: bytes) -> list[RawSheet]:
        encoding, confidence = self._detect_encoding(content)
        text = self._decode_content(content, encoding)
        if not text.strip():
            return [(self.CSV_SHEET_NAME, [])]

        delimiter = self._detect_csv_delimiter(text)
        # Ragged lines are allowed, so size the frame on the widest line
        lines = csv.reader(io.StringIO(text), delimiter=delimiter)
        width = max((len(fields) for fields in lines), default=0)
        logger.debug(
            "Reading CSV",
            encoding=encoding,
            encoding_confidence=f"{confidence:.2f}",
            delimiter=repr(delimiter),
            width=width,
        )

        frame = pd.read_csv(
            io.StringIO(text),
            delimiter=delimiter,
            header=None,
            names=list(range(width)),
            dtype=str,  # Keep all values as strings
            keep_default_na=False,  # Don't convert empty strings to NaN
            skip_blank_lines=False,
        )
        return [(self.CSV_SHEET_NAME, self._frame_rows(self._type_numbers(frame)))]

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def _type_numbers(frame: pd.DataFrame) -> pd.DataFrame:
        """Turn numeric-looking CSV fields into numbers, cell by cell.

        Fields that do not parse as a finite number keep their text.
        """
        numbers = frame.apply(pd.to_numeric, errors="coerce")
        is_number = numbers.notna() & (numbers.abs() != float("inf"))
        return frame.astype(object).where(~is_number, numbers.astype(object))

    @staticmethod
    def _frame_rows(frame: pd.DataFrame) -> list[Sequence[Any]]:
        cleaned = frame.astype(object).where(frame.notna(), None)
        rows: list[Sequence[Any]] = cleaned.to_numpy().tolist()
        return rows

    def _detect_encoding(self, content: bytes) -> tuple[str, float]:
        """Detect the encoding of byte content.

        Returns:
            Tuple of (encoding_name, confidence_score).
        """
        if not content:
            return "utf-8", 1.0
        if content.startswith(b"\xef\xbb\xbf"):
            return "utf-8-sig", 1.0
        try:
            content.decode("utf-8")
            return "utf-8", 1.0
        except UnicodeDecodeError:
            pass

        result = chardet.detect(content)
        encoding = result.get("encoding")
        confidence = result.get("confidence", 0.0) or 0.0

        if encoding and confidence >= self.MIN_ENCODING_CONFIDENCE:
            return encoding.lower(), confidence

        for fallback in self.FALLBACK_ENCODINGS:
            try:
                content.decode(fallback)
                logger.debug(f"Using fallback encoding: {fallback}")
                return fallback, 0.5
            except (UnicodeDecodeError, LookupError):
                continue

        # latin-1 accepts any byte sequence
        logger.warning("Could not detect encoding, falling back to latin-1")
        return "latin-1", 0.3

    def _decode_content(self, content: bytes, encoding: str) -> str:
        try:
            return content.decode(encoding)
        except (UnicodeDecodeError, LookupError):
            for fallback in self.FALLBACK_ENCODINGS:
                try:
                    return content.decode(fallback)
                except (UnicodeDecodeError, LookupError):
                    continue
            raise

    def _detect_csv_delimiter(self, content: str) -> str:
        """Detect the delimiter used in a CSV file, defaulting to a comma."""
        try:
            sample = content[:8192]
            dialect = csv.Sniffer().sniff(sample, delimiters=",;\t|")
            return dialect.delimiter
        except csv.Error:
            logger.debug("CSV delimiter detection failed, defaulting to comma")
            return ","


"""
app/parsing/tabular_parser.py

Decode submitted inventory files into ordered headers and raw rows.

Supported inputs:
- delimited text (.csv, .tsv, .txt) with comma, semicolon, or tab delimiters
- Office Open XML workbooks (.xlsx) via openpyxl
- legacy Excel workbooks (.xls) via xlrd

Only the first worksheet of a workbook is read.
"""

from __future__ import annotations

import csv
import io
import logging
from datetime import date, datetime, time
from pathlib import PurePath
from typing import Any, Iterable, Sequence
from zipfile import BadZipFile

import xlrd
from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from app.domain.errors import EmptyFileError, SpreadsheetDecodeError, UnsupportedFileFormatError
from app.domain.inventory import ParsedTable, RawRow

logger = logging.getLogger(__name__)

DELIMITED_EXTENSIONS = frozenset({".csv", ".tsv", ".txt"})
SPREADSHEET_EXTENSIONS = frozenset({".xlsx", ".xls"})
SUPPORTED_EXTENSIONS = DELIMITED_EXTENSIONS | SPREADSHEET_EXTENSIONS

# Candidate order doubles as the tie-break order.
DELIMITER_CANDIDATES: tuple[str, ...] = (",", ";", "\t")

# Hebrew Windows exports are common among Israeli vendors.
_TEXT_ENCODINGS: tuple[str, ...] = ("utf-8-sig", "cp1255", "latin-1")


def file_extension(filename: str) -> str:
    return PurePath(filename.strip()).suffix.lower()


def parse_tabular(content: bytes, filename: str) -> ParsedTable:
    """
    Parse one submitted file into a ParsedTable.

    Raises:
        UnsupportedFileFormatError: extension is not a supported tabular format.
        EmptyFileError: no header row or no data rows.
        SpreadsheetDecodeError: workbook is unreadable or has no sheets.
    """

    extension = file_extension(filename)
    if extension not in SUPPORTED_EXTENSIONS:
        raise UnsupportedFileFormatError(
            f"Unsupported file type '{extension or filename}'. "
            f"Allowed: {', '.join(sorted(SUPPORTED_EXTENSIONS))}."
        )

    if extension == ".xlsx":
        return _parse_xlsx(content)
    if extension == ".xls":
        return _parse_xls(content)
    return _parse_delimited(content)


# ---------------------------------------------------------------------------
# Delimited text
# ---------------------------------------------------------------------------


def decode_text(content: bytes) -> tuple[str, str]:
    """
    Decode raw bytes, returning (text, encoding used).
    """

    for encoding in _TEXT_ENCODINGS:
        try:
            return content.decode(encoding), encoding
        except UnicodeDecodeError:
            continue
    # latin-1 maps every byte, so this is unreachable in practice.
    raise EmptyFileError("File could not be decoded as text.")


def detect_delimiter(header_line: str) -> str:
    """
    Pick the candidate delimiter that splits the header into the most columns.
    """

    best_delimiter = DELIMITER_CANDIDATES[0]
    best_count = 0
    for candidate in DELIMITER_CANDIDATES:
        try:
            cells = next(csv.reader([header_line], delimiter=candidate), [])
        except csv.Error:
            continue
        if len(cells) > best_count:
            best_count = len(cells)
            best_delimiter = candidate
    return best_delimiter


def _parse_delimited(content: bytes) -> ParsedTable:
    text, encoding = decode_text(content)
    lines = text.splitlines()
    non_empty = [line for line in lines if line.strip()]
    if len(non_empty) < 2:
        raise EmptyFileError("File must contain a header row and at least one data row.")

    delimiter = detect_delimiter(non_empty[0])
    try:
        records = list(csv.reader(io.StringIO(text, newline=""), delimiter=delimiter))
    except csv.Error as exc:
        raise EmptyFileError(f"Invalid delimited text: {exc}") from exc

    table = _build_table(records, file_kind="csv" if delimiter != "\t" else "tsv")
    logger.debug(
        "Parsed delimited file delimiter=%r encoding=%s rows=%d",
        delimiter,
        encoding,
        len(table.rows),
    )
    return ParsedTable(
        headers=table.headers,
        rows=table.rows,
        file_kind=table.file_kind,
        delimiter=delimiter,
        encoding=encoding,
    )


# ---------------------------------------------------------------------------
# Spreadsheets
# ---------------------------------------------------------------------------


def _parse_xlsx(content: bytes) -> ParsedTable:
    try:
        workbook = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    except (InvalidFileException, BadZipFile, KeyError, OSError, ValueError) as exc:
        raise SpreadsheetDecodeError(f"Unable to read .xlsx workbook: {exc}") from exc

    try:
        if not workbook.worksheets:
            raise SpreadsheetDecodeError("Workbook contains no sheets.")
        sheet = workbook.worksheets[0]
        records = [
            [format_cell(value) for value in row]
            for row in sheet.iter_rows(values_only=True)
        ]
    finally:
        workbook.close()

    return _build_table(records, file_kind="xlsx")


def _parse_xls(content: bytes) -> ParsedTable:
    try:
        book = xlrd.open_workbook(file_contents=content)
    except (xlrd.XLRDError, OSError, ValueError) as exc:
        raise SpreadsheetDecodeError(f"Unable to read .xls workbook: {exc}") from exc

    if book.nsheets == 0:
        raise SpreadsheetDecodeError("Workbook contains no sheets.")

    sheet = book.sheet_by_index(0)
    records: list[list[str]] = []
    for row_index in range(sheet.nrows):
        row: list[str] = []
        for col_index in range(sheet.ncols):
            value = sheet.cell_value(row_index, col_index)
            if sheet.cell_type(row_index, col_index) == xlrd.XL_CELL_DATE:
                value = xlrd.xldate_as_datetime(value, book.datemode)
            row.append(format_cell(value))
        records.append(row)

    return _build_table(records, file_kind="xls")


def format_cell(value: Any) -> str:
    """
    Render a spreadsheet cell as the string an operator would see.
    """

    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, datetime):
        if value.time() == time(0, 0):
            return value.date().isoformat()
        return value.isoformat()
    if isinstance(value, (date, time)):
        return value.isoformat()
    return str(value).strip()


# ---------------------------------------------------------------------------
# Shared shaping
# ---------------------------------------------------------------------------


def _build_table(records: Iterable[Sequence[str]], *, file_kind: str) -> ParsedTable:
    """
    Shape decoded records into headers and numbered rows.

    Leading blank lines are skipped before the header. Data row numbers are
    1-indexed positions after the header, so skipped blank rows still consume
    their number.
    """

    iterator = iter(records)
    header_cells: Sequence[str] | None = None
    for record in iterator:
        if any(cell.strip() for cell in record):
            header_cells = record
            break
    if header_cells is None:
        raise EmptyFileError("File does not contain a header row.")

    headers = _clean_headers(header_cells)
    width = len(headers)

    rows: list[RawRow] = []
    for row_number, record in enumerate(iterator, start=1):
        cells = [cell.strip() for cell in record[:width]]
        if len(cells) < width:
            cells.extend([""] * (width - len(cells)))
        if not any(cells):
            continue
        rows.append(RawRow(row_number=row_number, values=dict(zip(headers, cells))))

    if not rows:
        raise EmptyFileError("File must contain a header row and at least one data row.")

    return ParsedTable(headers=headers, rows=tuple(rows), file_kind=file_kind)


def _clean_headers(cells: Sequence[str]) -> tuple[str, ...]:
    # Trailing empty header cells are spreadsheet padding, not columns.
    trimmed = list(cells)
    while trimmed and not trimmed[-1].strip():
        trimmed.pop()

    # Blank header cells stay blank so they can never map to a field.
    headers: list[str] = []
    seen: dict[str, int] = {}
    for cell in trimmed:
        name = cell.strip().strip('"').strip("'").strip()
        if not name:
            headers.append(name)
            continue
        count = seen.get(name, 0) + 1
        seen[name] = count
        headers.append(name if count == 1 else f"{name} ({count})")
    return tuple(headers)

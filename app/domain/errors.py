"""
app/domain/errors.py

File-level and persistence exceptions for inventory ingestion.

Row-level problems are never raised; they travel as RowError values.
"""

from __future__ import annotations

from typing import Any, Sequence


class InventoryFileError(ValueError):
    """
    Base class for fatal, file-level ingestion failures.
    """

    code = "invalid_file"

    def __init__(self, message: str, *, details: Sequence[dict[str, Any]] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = tuple(details or ())

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"message": self.message, "code": self.code}
        if self.details:
            payload["errors"] = [dict(detail) for detail in self.details]
        return payload


class EmptyFileError(InventoryFileError):
    """Raised when a file has no header row or no data rows."""

    code = "empty_file"


class UnsupportedFileFormatError(InventoryFileError):
    """Raised when the file extension is not a supported tabular format."""

    code = "unsupported_format"


class SpreadsheetDecodeError(InventoryFileError):
    """Raised when a workbook cannot be opened or has no sheets."""

    code = "unreadable_spreadsheet"


class MissingMandatoryColumnsError(InventoryFileError):
    """Raised when mandatory fields have no column in the file."""

    code = "missing_mandatory_columns"


class HeaderOverrideError(InventoryFileError):
    """Raised when a manual column mapping names an unknown header or field."""

    code = "invalid_column_mapping"


class BatchPersistenceError(RuntimeError):
    """
    Raised by an upserter when one batch cannot be stored.
    """


class ReportConsistencyError(RuntimeError):
    """
    Raised when row accounting does not add up while building a report.
    """

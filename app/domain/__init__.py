"""
app/domain package marker.
"""

from app.domain.errors import (
    BatchPersistenceError,
    EmptyFileError,
    HeaderOverrideError,
    InventoryFileError,
    MissingMandatoryColumnsError,
    ReportConsistencyError,
    SpreadsheetDecodeError,
    UnsupportedFileFormatError,
)
from app.domain.inventory import (
    BatchOutcome,
    CancellationToken,
    CanonicalField,
    HeaderMapping,
    IngestionReport,
    InventoryRecord,
    MappingSet,
    ParsedTable,
    RawRow,
    RowError,
)

__all__ = [
    "BatchOutcome",
    "BatchPersistenceError",
    "CancellationToken",
    "CanonicalField",
    "EmptyFileError",
    "HeaderMapping",
    "HeaderOverrideError",
    "IngestionReport",
    "InventoryFileError",
    "InventoryRecord",
    "MappingSet",
    "MissingMandatoryColumnsError",
    "ParsedTable",
    "RawRow",
    "ReportConsistencyError",
    "RowError",
    "SpreadsheetDecodeError",
    "UnsupportedFileFormatError",
]

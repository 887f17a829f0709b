"""
app/domain/inventory.py

Domain models used by the inventory ingestion flow.

Every value produced by a pipeline stage is immutable and handed to the next
stage explicitly: parser -> header mapper -> field normalizer -> row
validator -> batch persister -> report builder.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from enum import Enum
from functools import cached_property
from types import MappingProxyType
from typing import Any, Mapping, Union

SEVERITY_ERROR = "error"
SEVERITY_WARNING = "warning"


def _freeze_mapping(instance: object, name: str) -> None:
    # Frozen dataclasses only block rebinding; wrap the copy so it is read-only too.
    object.__setattr__(instance, name, MappingProxyType(dict(getattr(instance, name))))


class CanonicalField(str, Enum):
    """
    Standardized attributes of one gemstone inventory line item.

    Member order is the registry order used to break header-mapping ties.
    """

    STOCK_NUMBER = "stock_number"
    SHAPE = "shape"
    WEIGHT = "weight"
    COLOR = "color"
    CLARITY = "clarity"
    CUT = "cut"
    POLISH = "polish"
    SYMMETRY = "symmetry"
    FLUORESCENCE = "fluorescence"
    LAB = "lab"
    CERTIFICATE_NUMBER = "certificate_number"
    PRICE_PER_CARAT = "price_per_carat"
    TOTAL_PRICE = "total_price"
    RAPNET_DISCOUNT = "rapnet_discount"
    MEASUREMENTS = "measurements"
    MEASUREMENT_LENGTH = "measurement_length"
    MEASUREMENT_WIDTH = "measurement_width"
    MEASUREMENT_DEPTH = "measurement_depth"
    RATIO = "ratio"
    TABLE_PERCENTAGE = "table_percentage"
    DEPTH_PERCENTAGE = "depth_percentage"
    GIRDLE = "girdle"
    CULET = "culet"
    FANCY_COLOR = "fancy_color"
    FANCY_INTENSITY = "fancy_intensity"
    FANCY_OVERTONE = "fancy_overtone"
    CERTIFICATE_COMMENT = "certificate_comment"
    COMMENTS = "comments"
    IMAGE_URL = "image_url"
    VIDEO_URL = "video_url"
    CERTIFICATE_URL = "certificate_url"
    SARIN_FILE_URL = "sarin_file_url"
    COUNTRY_LOCATION = "country_location"
    CITY_LOCATION = "city_location"
    AVAILABILITY = "availability"


# ---------------------------------------------------------------------------
# Parser output
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RawRow:
    """
    One data row keyed by raw header, numbered as it appears in the source.
    """

    row_number: int
    values: Mapping[str, str]

    def __post_init__(self) -> None:
        _freeze_mapping(self, "values")


@dataclass(frozen=True)
class ParsedTable:
    """
    Ordered headers and data rows decoded from one submitted file.
    """

    headers: tuple[str, ...]
    rows: tuple[RawRow, ...]
    file_kind: str
    delimiter: str | None = None
    encoding: str | None = None


# ---------------------------------------------------------------------------
# Header mapping
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class HeaderMapping:
    """
    Association of one raw header with a canonical field and a confidence.
    """

    header: str
    field: CanonicalField | None
    confidence: float
    strategy: str

    @property
    def is_mapped(self) -> bool:
        return self.field is not None


@dataclass(frozen=True)
class MappingSet:
    """
    Header mappings for one file, computed once and applied to every row.
    """

    mappings: tuple[HeaderMapping, ...]

    @cached_property
    def field_sources(self) -> dict[CanonicalField, str]:
        """
        Canonical field -> the header its values are read from.

        When several headers resolve to the same field, the most confident one
        wins and earlier headers win ties.
        """

        best: dict[CanonicalField, HeaderMapping] = {}
        for mapping in self.mappings:
            if mapping.field is None:
                continue
            current = best.get(mapping.field)
            if current is None or mapping.confidence > current.confidence:
                best[mapping.field] = mapping
        return {canonical: mapping.header for canonical, mapping in best.items()}

    @property
    def mapped_fields(self) -> frozenset[CanonicalField]:
        return frozenset(self.field_sources)

    @property
    def unmapped_headers(self) -> tuple[str, ...]:
        return tuple(mapping.header for mapping in self.mappings if mapping.field is None)


# ---------------------------------------------------------------------------
# Field normalization results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Valid:
    """
    Successfully normalized field value.
    """

    value: Any


@dataclass(frozen=True)
class Invalid:
    """
    Field value that failed normalization.

    ``fallback`` is the safe substitute used when the field is optional;
    ``None`` means the value is dropped.
    """

    reason: str
    fallback: Any = None


FieldResult = Union[Valid, Invalid]


@dataclass(frozen=True)
class NormalizedRow:
    """
    Per-field normalization outcomes for one source row.

    Fields absent from ``outcomes`` were either unmapped or empty.
    """

    row_number: int
    raw_values: dict[CanonicalField, str]
    outcomes: dict[CanonicalField, FieldResult]
    derived_fields: frozenset[CanonicalField] = frozenset()


# ---------------------------------------------------------------------------
# Validation results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RowError:
    """
    One row-level problem, reported as data rather than raised.
    """

    row_number: int
    field: str
    value: str
    reason: str
    severity: str = SEVERITY_ERROR
    column: str | None = None


@dataclass(frozen=True)
class InventoryRecord:
    """
    Accepted, normalized line item handed to the persistence collaborator.
    """

    row_number: int
    stock_number: str
    attributes: dict[str, Any]
    assumed_fields: tuple[str, ...] = ()


@dataclass(frozen=True)
class RowDecision:
    """
    Accept/reject outcome for one row.
    """

    row_number: int
    record: InventoryRecord | None
    errors: tuple[RowError, ...] = ()

    @property
    def accepted(self) -> bool:
        return self.record is not None


# ---------------------------------------------------------------------------
# Persistence outcomes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BatchOutcome:
    """
    Result of persisting one contiguous batch of accepted rows.
    """

    index: int
    attempted: int
    persisted: int
    error: str | None = None
    row_numbers: tuple[int, ...] = ()

    @property
    def failed(self) -> bool:
        return self.error is not None


@dataclass(frozen=True)
class BatchProgress:
    """
    Progress notification emitted after each batch completes.
    """

    completed: int
    total: int
    outcome: BatchOutcome


class CancellationToken:
    """
    Cooperative cancellation flag checked between batches.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()


# ---------------------------------------------------------------------------
# Report
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class IngestionReport:
    """
    Complete, serializable outcome of processing one submitted file.
    """

    total_rows: int
    accepted_rows: int
    rejected_rows: int
    header_mappings: tuple[HeaderMapping, ...]
    errors: tuple[RowError, ...]
    batches: tuple[BatchOutcome, ...] = ()
    defaulted_fields: Mapping[int, tuple[str, ...]] = field(default_factory=dict)
    cancelled: bool = False
    file_kind: str | None = None
    delimiter: str | None = None

    def __post_init__(self) -> None:
        _freeze_mapping(self, "defaulted_fields")

    @property
    def persisted_rows(self) -> int:
        return sum(batch.persisted for batch in self.batches)

    @property
    def unmapped_headers(self) -> tuple[str, ...]:
        return tuple(mapping.header for mapping in self.header_mappings if mapping.field is None)

    @property
    def warning_count(self) -> int:
        return sum(1 for error in self.errors if error.severity == SEVERITY_WARNING)

    def to_dict(self) -> dict[str, Any]:
        batches: list[dict[str, Any]] = []
        for batch in self.batches:
            payload: dict[str, Any] = {
                "index": batch.index,
                "attempted": batch.attempted,
                "persisted": batch.persisted,
                "rows": list(batch.row_numbers),
            }
            if batch.error is not None:
                payload["error"] = batch.error
            batches.append(payload)

        return {
            "totalRows": self.total_rows,
            "acceptedRows": self.accepted_rows,
            "rejectedRows": self.rejected_rows,
            "persistedRows": self.persisted_rows,
            "headerMappings": [
                {
                    "header": mapping.header,
                    "field": mapping.field.value if mapping.field is not None else None,
                    "confidence": round(mapping.confidence, 4),
                }
                for mapping in self.header_mappings
            ],
            "unmappedHeaders": list(self.unmapped_headers),
            "errors": [
                {
                    "row": error.row_number,
                    "field": error.field,
                    "column": error.column,
                    "value": error.value,
                    "reason": error.reason,
                    "severity": error.severity,
                }
                for error in self.errors
            ],
            "batches": batches,
            "defaultedFields": [
                {"row": row_number, "fields": list(fields)}
                for row_number, fields in sorted(self.defaulted_fields.items())
            ],
            "cancelled": self.cancelled,
            "fileKind": self.file_kind,
            "delimiter": self.delimiter,
        }

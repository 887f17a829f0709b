"""
app/validators/row_validator.py

Mandatory-field gate and default back-filling for normalized rows.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Iterable

from app.domain.inventory import (
    SEVERITY_ERROR,
    SEVERITY_WARNING,
    CanonicalField,
    InventoryRecord,
    Invalid,
    MappingSet,
    NormalizedRow,
    RowDecision,
    RowError,
    Valid,
)
from app.mappers.field_registry import FieldRegistry
from app.normalizers import vocabularies as vocab


class DefaultsPolicy(str, Enum):
    """
    How to treat values the persistence layer needs but the file lacks.

    APPLY back-fills documented defaults and records which fields were
    assumed. SKIP only synthesizes the stock number (the upsert key) and
    leaves everything else empty.
    """

    APPLY = "apply"
    SKIP = "skip"


# Values the inventory store expects on every record.
BACKFILL_DEFAULTS: dict[CanonicalField, Any] = {
    CanonicalField.CUT: vocab.DEFAULT_GRADE,
    CanonicalField.POLISH: vocab.DEFAULT_GRADE,
    CanonicalField.SYMMETRY: vocab.DEFAULT_GRADE,
    CanonicalField.FLUORESCENCE: vocab.DEFAULT_FLUORESCENCE,
    CanonicalField.TABLE_PERCENTAGE: vocab.DEFAULT_TABLE_PERCENTAGE,
    CanonicalField.DEPTH_PERCENTAGE: vocab.DEFAULT_DEPTH_PERCENTAGE,
    CanonicalField.GIRDLE: vocab.DEFAULT_GIRDLE,
    CanonicalField.CULET: vocab.DEFAULT_CULET,
}


def synthetic_stock_number(*, certificate_number: str | None, submission_stamp: int, row_number: int) -> str:
    """
    Stock number for rows whose file has no stock column.

    Derived from the certificate number when there is one, so re-submitting
    the same file upserts the same records.
    """

    if certificate_number:
        return f"{vocab.SYNTHETIC_STOCK_PREFIX}-{certificate_number}"
    return f"{vocab.SYNTHETIC_STOCK_PREFIX}-{submission_stamp}-{row_number}"


class RowValidator:
    """
    Applies the mandatory-field contract to one normalized row.

    A row is accepted only when every mandatory field is mapped and valid.
    Invalid optional values become warnings and never reject a row.
    """

    def __init__(
        self,
        *,
        mandatory_fields: Iterable[CanonicalField],
        registry: FieldRegistry | None = None,
        defaults_policy: DefaultsPolicy = DefaultsPolicy.APPLY,
        submission_stamp: int = 0,
    ) -> None:
        self._mandatory = frozenset(mandatory_fields)
        self._registry = registry or FieldRegistry()
        self._defaults_policy = defaults_policy
        self._submission_stamp = submission_stamp

    @property
    def mandatory_fields(self) -> frozenset[CanonicalField]:
        return self._mandatory

    def validate(self, row: NormalizedRow, mapping_set: MappingSet) -> RowDecision:
        sources = mapping_set.field_sources
        problems: list[RowError] = []
        rejected = False
        attributes: dict[str, Any] = {}
        assumed: list[str] = []

        for spec in self._registry:
            field = spec.field
            outcome = row.outcomes.get(field)
            raw_value = row.raw_values.get(field, "")
            column = sources.get(field)

            if field in self._mandatory:
                if outcome is None:
                    if column is None and field not in row.derived_fields:
                        reason = f"Mandatory column for {spec.label} not found in file"
                    else:
                        reason = f"{spec.label} is mandatory and cannot be empty"
                    problems.append(self._error(row, field, raw_value, reason, SEVERITY_ERROR, column))
                    rejected = True
                elif isinstance(outcome, Invalid):
                    problems.append(self._error(row, field, raw_value, outcome.reason, SEVERITY_ERROR, column))
                    rejected = True
                else:
                    attributes[field.value] = outcome.value
                continue

            if isinstance(outcome, Valid):
                attributes[field.value] = outcome.value
            elif isinstance(outcome, Invalid):
                problems.append(self._error(row, field, raw_value, outcome.reason, SEVERITY_WARNING, column))
                if outcome.fallback is not None and self._defaults_policy is DefaultsPolicy.APPLY:
                    attributes[field.value] = outcome.fallback
                    assumed.append(field.value)

        if rejected:
            return RowDecision(row_number=row.row_number, record=None, errors=tuple(problems))

        stock_number = attributes.get(CanonicalField.STOCK_NUMBER.value)
        if not stock_number:
            stock_number = synthetic_stock_number(
                certificate_number=attributes.get(CanonicalField.CERTIFICATE_NUMBER.value),
                submission_stamp=self._submission_stamp,
                row_number=row.row_number,
            )
            attributes[CanonicalField.STOCK_NUMBER.value] = stock_number
            assumed.append(CanonicalField.STOCK_NUMBER.value)

        if self._defaults_policy is DefaultsPolicy.APPLY:
            for field, default in BACKFILL_DEFAULTS.items():
                if field.value not in attributes:
                    attributes[field.value] = default
                    assumed.append(field.value)

        record = InventoryRecord(
            row_number=row.row_number,
            stock_number=str(stock_number),
            attributes=attributes,
            assumed_fields=tuple(assumed),
        )
        return RowDecision(row_number=row.row_number, record=record, errors=tuple(problems))

    @staticmethod
    def _error(
        row: NormalizedRow,
        field: CanonicalField,
        raw_value: str,
        reason: str,
        severity: str,
        column: str | None,
    ) -> RowError:
        return RowError(
            row_number=row.row_number,
            field=field.value,
            value=raw_value,
            reason=reason,
            severity=severity,
            column=column,
        )

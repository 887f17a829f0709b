"""
app/normalizers/field_normalizer.py

Per-field value normalization against vocabularies, ranges and formats.

Normalization is total: every non-empty cell yields Valid(value) or
Invalid(reason, fallback). Empty cells yield no outcome at all, and the row
validator decides whether that absence matters.
"""

from __future__ import annotations

import re
from typing import Callable, Mapping
from urllib.parse import urlparse

from app.domain.inventory import (
    CanonicalField,
    FieldResult,
    Invalid,
    MappingSet,
    NormalizedRow,
    RawRow,
    Valid,
)
from app.mappers.field_registry import FieldRegistry, FieldRule, FieldSpec
from app.normalizers import vocabularies as vocab

_WHITESPACE_RE = re.compile(r"\s+")
_MONEY_NOISE_RE = re.compile(r"[^0-9.,\-]")
_NUMBER_SUFFIX_RE = re.compile(r"\s*(cts?|carats?|mm|%)\s*$", re.IGNORECASE)
_MEASUREMENT_SPLIT_RE = re.compile(r"\s*[x×X*\-]\s*")


def _collapse(value: str) -> str:
    return _WHITESPACE_RE.sub(" ", value).strip()


def _invalid(spec: FieldSpec, raw: str, fallback: object = None) -> Invalid:
    return Invalid(reason=f"Invalid {spec.label.lower()}: {raw}", fallback=fallback)


def parse_number(raw: str, *, decimal_comma: bool = False) -> float | None:
    """
    Parse a decimal number written with either decimal separator.

    "1,05" and "1.05" both parse to 1.05; "1,250.50" and "1.250,50" parse to
    1250.5. A lone comma followed by three digits ("4,250") is a thousands
    separator unless decimal_comma is set, in which case "0,305" is 0.305.
    """

    text = _NUMBER_SUFFIX_RE.sub("", raw.strip()).replace(" ", "")
    if not text:
        return None
    if "," in text and "." in text:
        if text.rfind(",") > text.rfind("."):
            text = text.replace(".", "").replace(",", ".")
        else:
            text = text.replace(",", "")
    elif "," in text:
        head, _, tail = text.rpartition(",")
        digits = head.lstrip("-")
        # Money columns read "4,250" as thousands; measured values read it as a decimal.
        thousands = text.count(",") == 1 and len(tail) == 3 and digits.isdigit() and len(digits) <= 3
        if thousands and not decimal_comma:
            text = head + tail
        else:
            text = text.replace(",", ".") if text.count(",") == 1 else text.replace(",", "")
    try:
        value = float(text)
    except ValueError:
        return None
    if value != value or value in (float("inf"), float("-inf")):
        return None
    return value


# ---------------------------------------------------------------------------
# Rule implementations
# ---------------------------------------------------------------------------


def normalize_shape(spec: FieldSpec, raw: str) -> FieldResult:
    lowered = _collapse(raw).lower()
    if lowered in vocab.SHAPES:
        return Valid(lowered)
    resolved = vocab.SHAPE_ALIASES.get(vocab.compact_key(raw))
    if resolved is not None:
        return Valid(resolved)
    return _invalid(spec, raw, fallback=vocab.DEFAULT_SHAPE)


def normalize_weight(spec: FieldSpec, raw: str) -> FieldResult:
    value = parse_number(raw, decimal_comma=True)
    if value is None or value <= 0:
        return _invalid(spec, raw)
    return Valid(round(value, 3))


def normalize_color(spec: FieldSpec, raw: str) -> FieldResult:
    value = _collapse(raw).upper()
    if value in vocab.COLORS:
        return Valid(value)
    return _invalid(spec, raw)


def normalize_clarity(spec: FieldSpec, raw: str) -> FieldResult:
    key = vocab.compact_key(raw)
    if key in vocab.CLARITIES:
        return Valid(key)
    resolved = vocab.CLARITY_ALIASES.get(key)
    if resolved is not None:
        return Valid(resolved)
    return _invalid(spec, raw)


def normalize_grade(spec: FieldSpec, raw: str) -> FieldResult:
    resolved = vocab.GRADE_ALIASES.get(vocab.compact_key(raw))
    if resolved is not None:
        return Valid(resolved)
    return _invalid(spec, raw, fallback=vocab.DEFAULT_GRADE)


def normalize_fluorescence(spec: FieldSpec, raw: str) -> FieldResult:
    key = vocab.compact_key(raw)
    resolved = vocab.FLUORESCENCE_ALIASES.get(key)
    if resolved is None:
        for suffix in vocab.FLUORESCENCE_COLOR_SUFFIXES:
            if key.endswith(suffix) and len(key) > len(suffix):
                resolved = vocab.FLUORESCENCE_ALIASES.get(key[: -len(suffix)])
                if resolved is not None:
                    break
    if resolved is not None:
        return Valid(resolved)
    return _invalid(spec, raw, fallback=vocab.DEFAULT_FLUORESCENCE)


def normalize_culet(spec: FieldSpec, raw: str) -> FieldResult:
    resolved = vocab.CULET_ALIASES.get(vocab.compact_key(raw))
    if resolved is not None:
        return Valid(resolved)
    return _invalid(spec, raw, fallback=vocab.DEFAULT_CULET)


def normalize_lab(spec: FieldSpec, raw: str) -> FieldResult:
    key = vocab.compact_key(raw)
    if key in vocab.LABS:
        return Valid(key)
    resolved = vocab.LAB_ALIASES.get(key)
    if resolved is not None:
        return Valid(resolved)
    return _invalid(spec, raw)


def normalize_identifier(spec: FieldSpec, raw: str) -> FieldResult:
    value = _collapse(raw)
    if not value:
        return _invalid(spec, raw)
    return Valid(value)


def normalize_money(spec: FieldSpec, raw: str) -> FieldResult:
    value = parse_number(_MONEY_NOISE_RE.sub("", raw))
    if value is None or value <= 0:
        return _invalid(spec, raw)
    return Valid(round(value, 2))


def normalize_percentage(spec: FieldSpec, raw: str) -> FieldResult:
    value = parse_number(raw, decimal_comma=True)
    if value is None or not 0 <= value <= 100:
        return _invalid(spec, raw)
    return Valid(value)


def normalize_signed_percentage(spec: FieldSpec, raw: str) -> FieldResult:
    value = parse_number(raw, decimal_comma=True)
    if value is None or not -100 <= value <= 100:
        return _invalid(spec, raw)
    return Valid(value)


def normalize_dimension(spec: FieldSpec, raw: str) -> FieldResult:
    value = parse_number(raw, decimal_comma=True)
    if value is None or value <= 0:
        return _invalid(spec, raw)
    return Valid(value)


def parse_measurements(raw: str) -> tuple[float, float, float] | None:
    """
    Split "6.50x6.45x4.01" style measurements into length, width, depth.
    """

    parts = [part for part in _MEASUREMENT_SPLIT_RE.split(raw.strip()) if part]
    if len(parts) != 3:
        return None
    values = [parse_number(part, decimal_comma=True) for part in parts]
    if any(value is None or value <= 0 for value in values):
        return None
    length, width, depth = values
    return length, width, depth  # type: ignore[return-value]


def normalize_measurements(spec: FieldSpec, raw: str) -> FieldResult:
    if parse_measurements(raw) is None:
        return _invalid(spec, raw)
    return Valid(_collapse(raw))


def normalize_text(spec: FieldSpec, raw: str) -> FieldResult:
    return Valid(_collapse(raw))


def normalize_url(spec: FieldSpec, raw: str) -> FieldResult:
    value = raw.strip()
    parsed = urlparse(value)
    if parsed.scheme.lower() not in {"http", "https"} or not parsed.netloc or " " in value:
        return _invalid(spec, raw)
    return Valid(value)


_RULES: dict[FieldRule, Callable[[FieldSpec, str], FieldResult]] = {
    FieldRule.IDENTIFIER: normalize_identifier,
    FieldRule.SHAPE: normalize_shape,
    FieldRule.WEIGHT: normalize_weight,
    FieldRule.COLOR: normalize_color,
    FieldRule.CLARITY: normalize_clarity,
    FieldRule.GRADE: normalize_grade,
    FieldRule.FLUORESCENCE: normalize_fluorescence,
    FieldRule.LAB: normalize_lab,
    FieldRule.MONEY: normalize_money,
    FieldRule.PERCENTAGE: normalize_percentage,
    FieldRule.SIGNED_PERCENTAGE: normalize_signed_percentage,
    FieldRule.DIMENSION: normalize_dimension,
    FieldRule.MEASUREMENTS: normalize_measurements,
    FieldRule.CULET: normalize_culet,
    FieldRule.TEXT: normalize_text,
    FieldRule.URL: normalize_url,
}


def normalize_value(spec: FieldSpec, raw: str | None) -> FieldResult | None:
    """
    Normalize one raw cell for one field; ``None`` when the cell is empty.
    """

    if raw is None or not raw.strip():
        return None
    outcome = _RULES[spec.rule](spec, raw)
    if (
        spec.max_length is not None
        and isinstance(outcome, Valid)
        and isinstance(outcome.value, str)
        and len(outcome.value) > spec.max_length
    ):
        return Invalid(reason=f"{spec.label} exceeds {spec.max_length} characters")
    return outcome


# ---------------------------------------------------------------------------
# Row normalizer
# ---------------------------------------------------------------------------


class FieldNormalizer:
    """
    Converts one raw row into per-field normalization outcomes.
    """

    def __init__(self, registry: FieldRegistry | None = None) -> None:
        self._registry = registry or FieldRegistry()

    def normalize_row(self, raw_row: RawRow, mapping_set: MappingSet) -> NormalizedRow:
        sources = mapping_set.field_sources
        raw_values: dict[CanonicalField, str] = {}
        outcomes: dict[CanonicalField, FieldResult] = {}

        for spec in self._registry:
            header = sources.get(spec.field)
            if header is None:
                continue
            raw = raw_row.values.get(header, "")
            raw_values[spec.field] = raw
            outcome = normalize_value(spec, raw)
            if outcome is not None:
                outcomes[spec.field] = outcome

        derived = self._derive(outcomes)
        return NormalizedRow(
            row_number=raw_row.row_number,
            raw_values=raw_values,
            outcomes={**outcomes, **derived},
            derived_fields=frozenset(derived),
        )

    @staticmethod
    def _derive(outcomes: Mapping[CanonicalField, FieldResult]) -> dict[CanonicalField, FieldResult]:
        """
        Fill dimension, ratio and price fields computable from other columns.
        """

        derived: dict[CanonicalField, FieldResult] = {}

        measurements = outcomes.get(CanonicalField.MEASUREMENTS)
        if isinstance(measurements, Valid):
            parsed = parse_measurements(measurements.value)
            if parsed is not None:
                for field, value in zip(
                    (
                        CanonicalField.MEASUREMENT_LENGTH,
                        CanonicalField.MEASUREMENT_WIDTH,
                        CanonicalField.MEASUREMENT_DEPTH,
                    ),
                    parsed,
                ):
                    if field not in outcomes:
                        derived[field] = Valid(value)

        def _valid_number(field: CanonicalField) -> float | None:
            outcome = derived.get(field) or outcomes.get(field)
            if isinstance(outcome, Valid) and isinstance(outcome.value, (int, float)):
                return float(outcome.value)
            return None

        if CanonicalField.RATIO not in outcomes:
            length = _valid_number(CanonicalField.MEASUREMENT_LENGTH)
            width = _valid_number(CanonicalField.MEASUREMENT_WIDTH)
            if length and width:
                derived[CanonicalField.RATIO] = Valid(round(length / width, 2))

        if CanonicalField.PRICE_PER_CARAT not in outcomes:
            total = _valid_number(CanonicalField.TOTAL_PRICE)
            weight = _valid_number(CanonicalField.WEIGHT)
            if total and weight:
                derived[CanonicalField.PRICE_PER_CARAT] = Valid(round(total / weight, 2))

        return derived

"""
app/mappers/header_mapper.py

Fuzzy header-to-canonical-field mapping with confidence scores.

Scoring contract for one (header, alias) pair, after normalization:

1. exact match                     -> 1.0
2. one contains the other          -> shorter/longer length ratio * 0.9
3. position-wise character overlap -> overlap ratio * 0.6 when ratio >= 0.4
4. otherwise                       -> 0.0

A header maps to the best-scoring field when that score reaches the
acceptance threshold. Ties go to the field that comes first in the registry.
"""

from __future__ import annotations

import logging
from typing import Mapping, Sequence

from app.domain.errors import HeaderOverrideError
from app.domain.inventory import CanonicalField, HeaderMapping, MappingSet
from app.mappers.field_registry import FieldRegistry

logger = logging.getLogger(__name__)

DEFAULT_ACCEPT_THRESHOLD = 0.2
CONTAINMENT_WEIGHT = 0.9
OVERLAP_WEIGHT = 0.6
MIN_OVERLAP_RATIO = 0.4

STRATEGY_OVERRIDE = "override"
STRATEGY_EXACT = "exact"
STRATEGY_FUZZY = "fuzzy"
STRATEGY_UNMAPPED = "unmapped"


def normalize_header(header: str) -> str:
    """
    Normalize a column name for flexible matching.
    """

    return "".join(ch for ch in header.strip().lower() if ch.isalnum())


def score_similarity(header: str, alias: str) -> float:
    """
    Similarity of a raw header to one alias, in [0, 1].
    """

    a = normalize_header(header)
    b = normalize_header(alias)
    if not a or not b:
        return 0.0
    if a == b:
        return 1.0

    shorter, longer = sorted((len(a), len(b)))
    if a in b or b in a:
        return shorter / longer * CONTAINMENT_WEIGHT

    matches = sum(1 for left, right in zip(a, b) if left == right)
    ratio = matches / longer
    if ratio >= MIN_OVERLAP_RATIO:
        return ratio * OVERLAP_WEIGHT
    return 0.0


class HeaderMapper:
    """
    Resolves raw spreadsheet headers into canonical field mappings.
    """

    def __init__(
        self,
        registry: FieldRegistry | None = None,
        *,
        threshold: float = DEFAULT_ACCEPT_THRESHOLD,
    ) -> None:
        self._registry = registry or FieldRegistry()
        self._threshold = max(0.0, min(1.0, threshold))
        # Alias normalization is done once per mapper, not per header.
        self._normalized_aliases: tuple[tuple[CanonicalField, tuple[str, ...]], ...] = tuple(
            (
                spec.field,
                tuple(
                    dict.fromkeys(
                        normalized
                        for normalized in (normalize_header(alias) for alias in spec.all_aliases())
                        if normalized
                    )
                ),
            )
            for spec in self._registry
        )

    @property
    def registry(self) -> FieldRegistry:
        return self._registry

    def best_match(self, header: str) -> tuple[CanonicalField | None, float]:
        """
        Best (field, score) for one header across every alias of every field.
        """

        normalized = normalize_header(header)
        if not normalized:
            return None, 0.0

        best_field: CanonicalField | None = None
        best_score = 0.0
        for field, aliases in self._normalized_aliases:
            for alias in aliases:
                score = score_similarity(normalized, alias)
                if score > best_score:
                    best_score = score
                    best_field = field
                    if score == 1.0:
                        break
            if best_score == 1.0:
                break
        return best_field, best_score

    def map_headers(
        self,
        headers: Sequence[str],
        *,
        overrides: Mapping[str, str] | None = None,
    ) -> MappingSet:
        """
        Map every header to a canonical field or "unmapped".

        ``overrides`` maps raw header -> canonical field value and always wins.
        """

        resolved_overrides = self._resolve_overrides(headers, overrides or {})

        mappings: list[HeaderMapping] = []
        for header in headers:
            override = resolved_overrides.get(header)
            if override is not None:
                mappings.append(
                    HeaderMapping(header=header, field=override, confidence=1.0, strategy=STRATEGY_OVERRIDE)
                )
                continue

            field, score = self.best_match(header)
            if field is None or score < self._threshold:
                mappings.append(
                    HeaderMapping(header=header, field=None, confidence=0.0, strategy=STRATEGY_UNMAPPED)
                )
                continue

            strategy = STRATEGY_EXACT if score == 1.0 else STRATEGY_FUZZY
            mappings.append(HeaderMapping(header=header, field=field, confidence=score, strategy=strategy))

        mapping_set = MappingSet(mappings=tuple(mappings))
        logger.debug(
            "Resolved header mapping mapped=%d unmapped=%d",
            len(mapping_set.mapped_fields),
            len(mapping_set.unmapped_headers),
        )
        return mapping_set

    def _resolve_overrides(
        self,
        headers: Sequence[str],
        overrides: Mapping[str, str],
    ) -> dict[str, CanonicalField]:
        header_lookup = {normalize_header(header): header for header in headers if normalize_header(header)}
        resolved: dict[str, CanonicalField] = {}
        problems: list[dict[str, str]] = []

        for raw_header, raw_field in overrides.items():
            if not raw_header.strip() or not raw_field.strip():
                continue

            field = self._registry.lookup_field(raw_field)
            if field is None:
                problems.append(
                    {
                        "code": "invalid_override_field",
                        "message": "Column mapping names an unknown canonical field.",
                        "source_column": raw_header,
                        "canonical_field": raw_field,
                    }
                )
                continue

            header = raw_header if raw_header in headers else header_lookup.get(normalize_header(raw_header))
            if header is None:
                problems.append(
                    {
                        "code": "override_source_not_found",
                        "message": "Column mapping points to a column not present in the file.",
                        "source_column": raw_header,
                        "canonical_field": raw_field,
                    }
                )
                continue

            resolved[header] = field

        if problems:
            raise HeaderOverrideError("Column mapping could not be applied.", details=problems)
        return resolved

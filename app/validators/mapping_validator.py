"""
app/validators/mapping_validator.py

File-level check of the header mapping against the mandatory fields.
"""

from __future__ import annotations

import logging
from typing import Iterable

from app.domain.errors import MissingMandatoryColumnsError
from app.domain.inventory import CanonicalField, MappingSet
from app.mappers.field_registry import FieldRegistry

logger = logging.getLogger(__name__)

# Fields the normalizer can compute from other mapped columns.
DERIVABLE_FROM: dict[CanonicalField, tuple[CanonicalField, ...]] = {
    CanonicalField.PRICE_PER_CARAT: (CanonicalField.TOTAL_PRICE, CanonicalField.WEIGHT),
    CanonicalField.MEASUREMENT_LENGTH: (CanonicalField.MEASUREMENTS,),
    CanonicalField.MEASUREMENT_WIDTH: (CanonicalField.MEASUREMENTS,),
    CanonicalField.MEASUREMENT_DEPTH: (CanonicalField.MEASUREMENTS,),
}


class MappingValidator:
    """
    Decides whether unmapped mandatory fields abort a submission.

    Missing every mandatory column is always fatal. Missing only some is
    fatal when ``abort_on_partial`` is set; otherwise the rows are rejected
    one by one by the row validator.
    """

    def __init__(
        self,
        *,
        mandatory_fields: Iterable[CanonicalField],
        registry: FieldRegistry | None = None,
        abort_on_partial: bool = False,
    ) -> None:
        self._registry = registry or FieldRegistry()
        wanted = frozenset(mandatory_fields)
        self._mandatory = tuple(field for field in self._registry.fields if field in wanted)
        self._abort_on_partial = abort_on_partial

    def missing_fields(self, mapping_set: MappingSet) -> tuple[CanonicalField, ...]:
        mapped = mapping_set.mapped_fields
        return tuple(
            field
            for field in self._mandatory
            if field not in mapped
            and not (field in DERIVABLE_FROM and set(DERIVABLE_FROM[field]) <= mapped)
        )

    def validate(self, mapping_set: MappingSet) -> tuple[CanonicalField, ...]:
        """
        Return the unmapped mandatory fields, raising when they are fatal.
        """

        missing = self.missing_fields(mapping_set)
        if not missing:
            return missing

        all_missing = len(missing) == len(self._mandatory)
        if all_missing or self._abort_on_partial:
            labels = ", ".join(self._registry.label(field) for field in missing)
            raise MissingMandatoryColumnsError(
                f"Mandatory columns not found in file: {labels}.",
                details=[
                    {
                        "code": "required_field_unmapped",
                        "message": "Required canonical field is not mapped.",
                        "canonical_field": field.value,
                    }
                    for field in missing
                ],
            )

        logger.warning(
            "Mandatory columns missing; affected rows will be rejected fields=%s",
            ",".join(field.value for field in missing),
        )
        return missing

"""
app/mappers package marker.
"""

from app.mappers.field_registry import FieldRegistry, FieldSpec, resolve_mandatory_fields
from app.mappers.header_mapper import HeaderMapper, score_similarity

__all__ = [
    "FieldRegistry",
    "FieldSpec",
    "HeaderMapper",
    "resolve_mandatory_fields",
    "score_similarity",
]

"""
app/normalizers package marker.
"""

from app.normalizers.field_normalizer import FieldNormalizer, normalize_value

__all__ = [
    "FieldNormalizer",
    "normalize_value",
]

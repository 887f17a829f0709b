"""
app/validators package marker.
"""

from app.validators.mapping_validator import MappingValidator
from app.validators.row_validator import DefaultsPolicy, RowValidator

__all__ = [
    "DefaultsPolicy",
    "MappingValidator",
    "RowValidator",
]

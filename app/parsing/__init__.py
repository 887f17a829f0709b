"""
app/parsing package marker.
"""

from app.parsing.tabular_parser import detect_delimiter, parse_tabular

__all__ = [
    "detect_delimiter",
    "parse_tabular",
]

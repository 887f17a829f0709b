"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.inventory_diamond import InventoryDiamond

__all__ = [
    "InventoryDiamond",
]

"""
app/repositories package marker.
"""

from app.repositories.inventory_repository import InventoryRepository, SqlAlchemyInventoryUpserter

__all__ = [
    "InventoryRepository",
    "SqlAlchemyInventoryUpserter",
]

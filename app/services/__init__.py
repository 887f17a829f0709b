"""
app/services package marker.
"""

from app.services.batch_persister import BatchPersister, InventoryUpserter
from app.services.inventory_ingestion_service import (
    InventoryIngestionService,
    get_inventory_ingestion_service,
)

__all__ = [
    "BatchPersister",
    "InventoryIngestionService",
    "InventoryUpserter",
    "get_inventory_ingestion_service",
]

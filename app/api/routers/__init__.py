"""
app/api/routers package marker.
"""

from app.api.routers.inventory_ingestion import router as inventory_ingestion_router

__all__ = [
    "inventory_ingestion_router",
]

"""
app/schemas package marker.
"""

from app.schemas.inventory_ingestion import IngestionReportResponse, RowErrorResponse

__all__ = [
    "IngestionReportResponse",
    "RowErrorResponse",
]

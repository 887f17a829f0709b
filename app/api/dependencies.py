"""
app/api/dependencies.py

Shared FastAPI dependencies for request validation.
"""

from __future__ import annotations

import logging

from fastapi import File, HTTPException, Query, UploadFile, status
from sqlalchemy.exc import SQLAlchemyError

from app.config import InventoryIngestionSettings
from app.parsing.tabular_parser import SUPPORTED_EXTENSIONS, file_extension
from app.repositories.inventory_repository import SqlAlchemyInventoryUpserter
from app.services.batch_persister import InventoryUpserter
from db.session import SessionLocal, get_engine

logger = logging.getLogger(__name__)


def get_inventory_upload(file: UploadFile = File(...)) -> UploadFile:
    """
    Validate that the uploaded file is a supported spreadsheet export by extension.
    """

    filename = (file.filename or "").strip()
    if file_extension(filename) not in SUPPORTED_EXTENSIONS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=(
                "Only spreadsheet exports are allowed "
                f"({', '.join(sorted(SUPPORTED_EXTENSIONS))})."
            ),
        )
    return file


def read_upload_bytes(file: UploadFile, settings: InventoryIngestionSettings) -> bytes:
    """
    Read the upload fully, enforcing the configured size limit.
    """

    content = file.file.read(settings.max_file_bytes + 1)
    if len(content) > settings.max_file_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File exceeds the {settings.max_file_bytes} byte upload limit.",
        )
    return content


def get_inventory_upserter(
    validate_only: bool = Query(default=False, description="Validate and report without persisting"),
) -> InventoryUpserter | None:
    """
    Storage collaborator for inventory batches, one session per batch.

    Validate-only requests get no upserter. Otherwise the engine is resolved
    first and storage configuration errors become a 500 response.
    """

    if validate_only:
        return None
    try:
        get_engine()
    except (RuntimeError, SQLAlchemyError) as exc:
        logger.error("Inventory storage is not configured: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"message": "Inventory storage is not configured.", "code": "persistence_unavailable"},
        ) from exc
    return SqlAlchemyInventoryUpserter(SessionLocal)

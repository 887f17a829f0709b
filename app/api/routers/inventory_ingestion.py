"""
app/api/routers/inventory_ingestion.py

Inventory file ingestion HTTP endpoints.
"""

from __future__ import annotations

import json

from fastapi import APIRouter, Depends, Form, HTTPException, Query, Response, UploadFile, status

from app.api.dependencies import get_inventory_upload, get_inventory_upserter, read_upload_bytes
from app.config import InventoryIngestionSettings, get_inventory_ingestion_settings
from app.domain.errors import InventoryFileError
from app.schemas.inventory_ingestion import IngestionReportResponse
from app.services.batch_persister import InventoryUpserter
from app.services.inventory_ingestion_service import (
    InventoryIngestionService,
    get_inventory_ingestion_service,
)
from app.services.report_builder import error_report_csv

router = APIRouter(prefix="/inventory", tags=["inventory"])


def _parse_column_mapping(raw: str | None) -> dict[str, str] | None:
    if raw is None or not raw.strip():
        return None
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="column_mapping must be a JSON object of header -> field.",
        ) from exc
    if not isinstance(parsed, dict) or not all(
        isinstance(key, str) and isinstance(value, str) for key, value in parsed.items()
    ):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="column_mapping must be a JSON object of header -> field.",
        )
    return parsed


@router.post("/uploads", response_model=IngestionReportResponse)
def upload_inventory(
    file: UploadFile = Depends(get_inventory_upload),
    owner_id: str = Query(..., min_length=1, description="Opaque submitter identity used for upsert keying"),
    validate_only: bool = Query(default=False, description="Validate and report without persisting"),
    batch_size: int | None = Query(default=None, ge=1, le=1000, description="Rows per persistence batch"),
    column_mapping: str | None = Form(default=None, description="Optional JSON object of header -> field"),
    settings: InventoryIngestionSettings = Depends(get_inventory_ingestion_settings),
    upserter: InventoryUpserter | None = Depends(get_inventory_upserter),
    ingestion_service: InventoryIngestionService = Depends(get_inventory_ingestion_service),
) -> IngestionReportResponse:
    """
    Ingest one inventory spreadsheet export and return its ingestion report.
    """

    overrides = _parse_column_mapping(column_mapping)
    try:
        content = read_upload_bytes(file, settings)
        report = ingestion_service.ingest(
            content=content,
            filename=file.filename or "",
            owner_id=owner_id,
            upserter=None if validate_only else upserter,
            overrides=overrides,
            batch_size=batch_size,
        )
    except InventoryFileError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=exc.to_dict(),
        ) from exc
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except RuntimeError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Unable to process inventory file.",
        ) from exc
    finally:
        file.file.close()

    return IngestionReportResponse.from_report(report)


@router.post("/uploads/error-report")
def download_error_report(report: IngestionReportResponse) -> Response:
    """
    Render a report's row errors as a downloadable CSV for correction and re-upload.
    """

    return Response(
        content=error_report_csv(report.to_report()),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="inventory_errors.csv"'},
    )

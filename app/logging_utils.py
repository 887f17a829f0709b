"""
app/logging_utils.py

Structured logging helpers for ingestion workflows.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from app.domain.inventory import IngestionReport


def log_event(
    logger: logging.Logger,
    level: int,
    event: str,
    **fields: Any,
) -> None:
    """
    Emit one structured log line as compact JSON.
    """

    if not logger.isEnabledFor(level):
        return
    payload = {"event": event, **fields}
    logger.log(level, json.dumps(payload, default=str, sort_keys=True))


def report_log_fields(report: IngestionReport) -> dict[str, Any]:
    """
    Summary counters of a report, suitable for one log line.
    """

    return {
        "total_rows": report.total_rows,
        "accepted_rows": report.accepted_rows,
        "rejected_rows": report.rejected_rows,
        "persisted_rows": report.persisted_rows,
        "warnings": report.warning_count,
        "batches": len(report.batches),
        "failed_batches": sum(1 for batch in report.batches if batch.failed),
        "unmapped_headers": len(report.unmapped_headers),
        "cancelled": report.cancelled,
    }

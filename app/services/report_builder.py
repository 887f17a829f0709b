"""
app/services/report_builder.py

Aggregation of mapping, validation and persistence outcomes into one
IngestionReport, plus the downloadable error table.
"""

from __future__ import annotations

import csv
import io
from collections.abc import Sequence

from app.domain.errors import ReportConsistencyError
from app.domain.inventory import (
    BatchOutcome,
    IngestionReport,
    MappingSet,
    ParsedTable,
    RowDecision,
    RowError,
)

ERROR_REPORT_COLUMNS: tuple[str, ...] = ("Row", "Column", "Value", "Error", "Severity")


def build_report(
    *,
    table: ParsedTable,
    mapping_set: MappingSet,
    decisions: Sequence[RowDecision],
    batch_outcomes: Sequence[BatchOutcome] = (),
    cancelled: bool = False,
) -> IngestionReport:
    """
    Merge every stage's output into one immutable report.
    """

    total_rows = len(table.rows)
    accepted = sum(1 for decision in decisions if decision.accepted)
    rejected = sum(1 for decision in decisions if not decision.accepted)
    if len(decisions) != total_rows or accepted + rejected != total_rows:
        raise ReportConsistencyError(
            f"Row accounting mismatch: total={total_rows} decisions={len(decisions)} "
            f"accepted={accepted} rejected={rejected}"
        )

    ordered = sorted(decisions, key=lambda decision: decision.row_number)
    errors: list[RowError] = [error for decision in ordered for error in decision.errors]
    defaulted = {
        decision.row_number: decision.record.assumed_fields
        for decision in ordered
        if decision.record is not None and decision.record.assumed_fields
    }

    return IngestionReport(
        total_rows=total_rows,
        accepted_rows=accepted,
        rejected_rows=rejected,
        header_mappings=mapping_set.mappings,
        errors=tuple(errors),
        batches=tuple(sorted(batch_outcomes, key=lambda outcome: outcome.index)),
        defaulted_fields=defaulted,
        cancelled=cancelled,
        file_kind=table.file_kind,
        delimiter=table.delimiter,
    )


def failed_batch_rows(report: IngestionReport) -> tuple[int, ...]:
    """
    Source row numbers of every failed batch, for an explicit operator retry.
    """

    return tuple(row for batch in report.batches if batch.failed for row in batch.row_numbers)


# ---------------------------------------------------------------------------
# Error table
# ---------------------------------------------------------------------------


def error_report_rows(errors: Sequence[RowError]) -> list[list[str]]:
    return [
        [
            str(error.row_number),
            error.column or error.field,
            error.value,
            error.reason,
            error.severity,
        ]
        for error in errors
    ]


def error_report_csv(report: IngestionReport) -> str:
    """
    Serialize the report's row errors as a CSV table, one line per error.
    """

    buffer = io.StringIO(newline="")
    writer = csv.writer(buffer, lineterminator="\r\n")
    writer.writerow(ERROR_REPORT_COLUMNS)
    writer.writerows(error_report_rows(report.errors))
    return buffer.getvalue()


def read_error_report_csv(text: str) -> list[dict[str, str]]:
    """
    Parse an error table produced by ``error_report_csv``.
    """

    reader = csv.DictReader(io.StringIO(text.lstrip("\ufeff"), newline=""))
    missing = [column for column in ERROR_REPORT_COLUMNS if column not in (reader.fieldnames or [])]
    if missing:
        raise ValueError(f"Error report is missing columns: {', '.join(missing)}.")
    return [dict(row) for row in reader]

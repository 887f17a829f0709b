"""
app/services/inventory_ingestion_service.py

Service layer for inventory file ingestion.

One call processes one submitted file for one owner:

    parse -> map headers -> normalize rows -> validate rows
          -> persist accepted rows in batches -> build report

File-level problems raise InventoryFileError subclasses before any row is
processed. Row problems and batch failures are returned inside the report.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable, Mapping
from concurrent.futures import ThreadPoolExecutor
from functools import lru_cache

from app.config import get_inventory_ingestion_settings
from app.domain.inventory import (
    BatchOutcome,
    CancellationToken,
    IngestionReport,
    InventoryRecord,
    MappingSet,
    RawRow,
    RowDecision,
    RowError,
)
from app.logging_utils import log_event, report_log_fields
from app.mappers.field_registry import FieldRegistry, resolve_mandatory_fields
from app.mappers.header_mapper import DEFAULT_ACCEPT_THRESHOLD, HeaderMapper
from app.normalizers.field_normalizer import FieldNormalizer
from app.parsing.tabular_parser import parse_tabular
from app.services.batch_persister import (
    DEFAULT_BATCH_SIZE,
    BatchPersister,
    InventoryUpserter,
    ProgressCallback,
)
from app.services.report_builder import build_report
from app.validators.mapping_validator import MappingValidator
from app.validators.row_validator import DefaultsPolicy, RowValidator

logger = logging.getLogger(__name__)


class InventoryIngestionService:
    """
    Coordinates parsing, mapping, validation, persistence and reporting.
    """

    def __init__(
        self,
        *,
        batch_size: int = DEFAULT_BATCH_SIZE,
        mandatory_profile: str = "ingestion",
        defaults_policy: DefaultsPolicy | str = DefaultsPolicy.APPLY,
        abort_on_missing_mandatory: bool = False,
        header_threshold: float = DEFAULT_ACCEPT_THRESHOLD,
        row_workers: int = 1,
        batch_workers: int = 1,
        log_row_errors: bool = True,
        max_logged_row_errors: int = 200,
        registry: FieldRegistry | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._batch_size = max(1, batch_size)
        self._mandatory_profile = mandatory_profile
        self._defaults_policy = DefaultsPolicy(defaults_policy)
        self._abort_on_missing_mandatory = abort_on_missing_mandatory
        self._row_workers = max(1, row_workers)
        self._batch_workers = max(1, batch_workers)
        self._log_row_errors = log_row_errors
        self._max_logged_row_errors = max(0, max_logged_row_errors)
        self._registry = registry or FieldRegistry()
        self._mapper = HeaderMapper(self._registry, threshold=header_threshold)
        self._normalizer = FieldNormalizer(self._registry)
        self._clock = clock

    @property
    def batch_size(self) -> int:
        return self._batch_size

    def ingest(
        self,
        *,
        content: bytes,
        filename: str,
        owner_id: str,
        upserter: InventoryUpserter | None = None,
        overrides: Mapping[str, str] | None = None,
        cancel_token: CancellationToken | None = None,
        on_progress: ProgressCallback | None = None,
        batch_size: int | None = None,
    ) -> IngestionReport:
        """
        Ingest one file and return its report.

        Args:
            content:      Raw file bytes.
            filename:     Original filename; its extension selects the reader.
            owner_id:     Opaque submitter identity used for upsert keying.
            upserter:     Storage collaborator. ``None`` validates without
                          persisting anything.
            overrides:    Optional raw header -> canonical field mapping.
            cancel_token: Checked between batches.
            on_progress:  Called with a BatchProgress after each batch.
            batch_size:   Per-call batch size override.
        """

        owner_id = (owner_id or "").strip()
        if not owner_id:
            raise ValueError("owner_id is required.")

        started = time.monotonic()
        table = parse_tabular(content, filename)
        mapping_set = self._mapper.map_headers(table.headers, overrides=overrides)

        mandatory = resolve_mandatory_fields(self._mandatory_profile, mapping_set)
        MappingValidator(
            mandatory_fields=mandatory,
            registry=self._registry,
            abort_on_partial=self._abort_on_missing_mandatory,
        ).validate(mapping_set)

        validator = RowValidator(
            mandatory_fields=mandatory,
            registry=self._registry,
            defaults_policy=self._defaults_policy,
            submission_stamp=int(self._clock() * 1000),
        )
        decisions = self._decide_rows(table.rows, mapping_set, validator)
        self._log_errors(error for decision in decisions for error in decision.errors)

        records: list[InventoryRecord] = [decision.record for decision in decisions if decision.record is not None]
        batch_outcomes: tuple[BatchOutcome, ...] = ()
        cancelled = False
        if upserter is not None and records:
            result = BatchPersister(
                upserter,
                batch_size=batch_size or self._batch_size,
                max_workers=self._batch_workers,
            ).persist(
                records,
                owner_id=owner_id,
                cancel_token=cancel_token,
                on_progress=on_progress,
            )
            batch_outcomes = result.outcomes
            cancelled = result.cancelled

        report = build_report(
            table=table,
            mapping_set=mapping_set,
            decisions=decisions,
            batch_outcomes=batch_outcomes,
            cancelled=cancelled,
        )
        log_event(
            logger,
            logging.INFO,
            "inventory_ingestion_completed",
            owner_id=owner_id,
            filename=filename,
            file_kind=table.file_kind,
            validate_only=upserter is None,
            duration_ms=round((time.monotonic() - started) * 1000, 1),
            **report_log_fields(report),
        )
        return report

    def _decide_rows(
        self,
        rows: tuple[RawRow, ...],
        mapping_set: MappingSet,
        validator: RowValidator,
    ) -> list[RowDecision]:
        def _process(raw_row: RawRow) -> RowDecision:
            return validator.validate(self._normalizer.normalize_row(raw_row, mapping_set), mapping_set)

        if self._row_workers == 1 or len(rows) < 2:
            return [_process(row) for row in rows]

        # Executor.map yields in submission order, keeping row order stable.
        with ThreadPoolExecutor(max_workers=self._row_workers) as executor:
            return list(executor.map(_process, rows))

    def _log_errors(self, errors: Iterable[RowError]) -> None:
        if not self._log_row_errors:
            return
        logged = 0
        for error in errors:
            if logged >= self._max_logged_row_errors:
                logger.warning("Further inventory row errors suppressed after %d entries", logged)
                return
            logger.warning(
                "Inventory row %s row=%s field=%s message=%s value=%r",
                error.severity,
                error.row_number,
                error.field,
                error.reason,
                error.value,
            )
            logged += 1


@lru_cache(maxsize=1)
def get_inventory_ingestion_service() -> InventoryIngestionService:
    """
    FastAPI dependency provider for inventory ingestion service.
    """

    settings = get_inventory_ingestion_settings()
    return InventoryIngestionService(
        batch_size=settings.batch_size,
        mandatory_profile=settings.mandatory_profile,
        defaults_policy=settings.defaults_policy,
        abort_on_missing_mandatory=settings.abort_on_missing_mandatory,
        header_threshold=settings.header_match_threshold,
        row_workers=settings.row_workers,
        batch_workers=settings.batch_workers,
        log_row_errors=settings.log_row_errors,
        max_logged_row_errors=settings.max_logged_row_errors,
    )

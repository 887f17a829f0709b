"""
app/services/batch_persister.py

Chunked persistence of accepted inventory records with per-batch isolation.

A failing batch is recorded and skipped; it never aborts sibling batches and
is never retried automatically. Cancellation is cooperative and only takes
effect between batches.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Protocol, TypeVar

from app.domain.inventory import BatchOutcome, BatchProgress, CancellationToken, InventoryRecord

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 50

T = TypeVar("T")


class InventoryUpserter(Protocol):
    """
    Storage collaborator: upsert one batch keyed by (stock number, owner).

    Returns the number of persisted rows; raising marks the batch failed.
    """

    def upsert(self, records: Sequence[InventoryRecord], owner_id: str) -> int: ...


ProgressCallback = Callable[[BatchProgress], None]


@dataclass(frozen=True)
class PersistResult:
    """
    Ordered batch outcomes plus whether the run stopped early.
    """

    outcomes: tuple[BatchOutcome, ...]
    total_batches: int
    cancelled: bool = False


def partition(items: Sequence[T], batch_size: int) -> list[list[T]]:
    """
    Split items into contiguous batches preserving order.
    """

    size = max(1, batch_size)
    return [list(items[start : start + size]) for start in range(0, len(items), size)]


class BatchPersister:
    """
    Persists accepted records batch by batch.

    Batches run sequentially unless ``max_workers`` is greater than one, in
    which case up to that many batches run at once. Outcomes are always
    reported in batch-index order.
    """

    def __init__(
        self,
        upserter: InventoryUpserter,
        *,
        batch_size: int = DEFAULT_BATCH_SIZE,
        max_workers: int = 1,
    ) -> None:
        self._upserter = upserter
        self._batch_size = max(1, batch_size)
        self._max_workers = max(1, max_workers)

    @property
    def batch_size(self) -> int:
        return self._batch_size

    def persist(
        self,
        records: Sequence[InventoryRecord],
        *,
        owner_id: str,
        cancel_token: CancellationToken | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> PersistResult:
        batches = partition(records, self._batch_size)
        total = len(batches)
        if self._max_workers == 1 or total <= 1:
            return self._persist_sequential(batches, owner_id, cancel_token, on_progress)
        return self._persist_concurrent(batches, owner_id, cancel_token, on_progress)

    def _persist_sequential(
        self,
        batches: list[list[InventoryRecord]],
        owner_id: str,
        cancel_token: CancellationToken | None,
        on_progress: ProgressCallback | None,
    ) -> PersistResult:
        total = len(batches)
        outcomes: list[BatchOutcome] = []
        for index, batch in enumerate(batches, start=1):
            if cancel_token is not None and cancel_token.is_cancelled:
                logger.info("Inventory persistence cancelled before batch %d/%d", index, total)
                return PersistResult(outcomes=tuple(outcomes), total_batches=total, cancelled=True)

            outcome = self._persist_batch(index, batch, owner_id)
            outcomes.append(outcome)
            self._notify(on_progress, len(outcomes), total, outcome)

        return PersistResult(outcomes=tuple(outcomes), total_batches=total)

    def _persist_concurrent(
        self,
        batches: list[list[InventoryRecord]],
        owner_id: str,
        cancel_token: CancellationToken | None,
        on_progress: ProgressCallback | None,
    ) -> PersistResult:
        total = len(batches)
        outcomes: list[BatchOutcome] = []
        numbered = list(enumerate(batches, start=1))

        with ThreadPoolExecutor(max_workers=self._max_workers) as executor:
            # Windows of max_workers batches keep cancellation checks between batches.
            for start in range(0, total, self._max_workers):
                if cancel_token is not None and cancel_token.is_cancelled:
                    logger.info("Inventory persistence cancelled before batch %d/%d", start + 1, total)
                    return PersistResult(outcomes=tuple(outcomes), total_batches=total, cancelled=True)

                window = numbered[start : start + self._max_workers]
                futures = [
                    executor.submit(self._persist_batch, index, batch, owner_id)
                    for index, batch in window
                ]
                for future in futures:
                    outcome = future.result()
                    outcomes.append(outcome)
                    self._notify(on_progress, len(outcomes), total, outcome)

        return PersistResult(outcomes=tuple(outcomes), total_batches=total)

    def _persist_batch(self, index: int, batch: list[InventoryRecord], owner_id: str) -> BatchOutcome:
        row_numbers = tuple(record.row_number for record in batch)
        try:
            persisted = self._upserter.upsert(batch, owner_id)
        except Exception as exc:  # noqa: BLE001
            logger.error(
                "Inventory batch failed index=%d rows=%d owner_id=%s: %s",
                index,
                len(batch),
                owner_id,
                exc,
            )
            return BatchOutcome(
                index=index,
                attempted=len(batch),
                persisted=0,
                error=str(exc) or exc.__class__.__name__,
                row_numbers=row_numbers,
            )

        logger.debug("Inventory batch persisted index=%d rows=%d persisted=%d", index, len(batch), persisted)
        return BatchOutcome(
            index=index,
            attempted=len(batch),
            persisted=persisted,
            row_numbers=row_numbers,
        )

    @staticmethod
    def _notify(
        on_progress: ProgressCallback | None,
        completed: int,
        total: int,
        outcome: BatchOutcome,
    ) -> None:
        if on_progress is None:
            return
        on_progress(BatchProgress(completed=completed, total=total, outcome=outcome))

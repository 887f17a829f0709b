"""
tests/test_batch_persister.py

Pytest unit tests for BatchPersister.

Coverage
--------
- Contiguous partitioning
- Partial-failure isolation (a failing batch never aborts siblings)
- Progress notifications
- Cooperative cancellation between batches
- Ordered outcomes under concurrent workers
"""

from __future__ import annotations

import threading
from collections.abc import Sequence

import pytest

from app.domain.errors import BatchPersistenceError
from app.domain.inventory import BatchProgress, CancellationToken, InventoryRecord
from app.services.batch_persister import BatchPersister, partition


class FakeUpserter:
    """Records calls; fails any batch whose first row number is in ``fail_on``."""

    def __init__(self, fail_on: set[int] | None = None) -> None:
        self.fail_on = fail_on or set()
        self.calls: list[tuple[int, ...]] = []
        self._lock = threading.Lock()

    def upsert(self, records: Sequence[InventoryRecord], owner_id: str) -> int:
        with self._lock:
            self.calls.append(tuple(record.row_number for record in records))
        if records[0].row_number in self.fail_on:
            raise BatchPersistenceError("duplicate key value violates unique constraint")
        return len(records)


def _records(count: int) -> list[InventoryRecord]:
    return [
        InventoryRecord(row_number=n, stock_number=f"S{n}", attributes={"shape": "round brilliant", "weight": 1.0})
        for n in range(1, count + 1)
    ]


# ---------------------------------------------------------------------------
# partition
# ---------------------------------------------------------------------------


class TestPartition:
    def test_splits_into_contiguous_batches(self) -> None:
        assert partition([1, 2, 3, 4, 5], 2) == [[1, 2], [3, 4], [5]]

    def test_empty_input(self) -> None:
        assert partition([], 50) == []

    def test_non_positive_size_is_clamped(self) -> None:
        assert partition([1, 2], 0) == [[1], [2]]


# ---------------------------------------------------------------------------
# Sequential persistence
# ---------------------------------------------------------------------------


class TestSequentialPersistence:
    def test_120_rows_in_batches_of_50(self) -> None:
        upserter = FakeUpserter()

        result = BatchPersister(upserter, batch_size=50).persist(_records(120), owner_id="vendor-1")

        assert [outcome.attempted for outcome in result.outcomes] == [50, 50, 20]
        assert [outcome.index for outcome in result.outcomes] == [1, 2, 3]
        assert result.total_batches == 3
        assert not result.cancelled

    def test_failed_batch_does_not_abort_siblings(self) -> None:
        upserter = FakeUpserter(fail_on={51})

        result = BatchPersister(upserter, batch_size=50).persist(_records(120), owner_id="vendor-1")

        assert len(upserter.calls) == 3
        assert [outcome.failed for outcome in result.outcomes] == [False, True, False]
        assert sum(outcome.persisted for outcome in result.outcomes) == 100
        failed = result.outcomes[1]
        assert failed.persisted == 0
        assert "unique constraint" in failed.error
        assert failed.row_numbers == tuple(range(51, 101))

    def test_unexpected_exceptions_are_contained(self) -> None:
        class ExplodingUpserter:
            def upsert(self, records: Sequence[InventoryRecord], owner_id: str) -> int:
                raise KeyError("stock_number")

        result = BatchPersister(ExplodingUpserter(), batch_size=10).persist(_records(5), owner_id="vendor-1")

        assert result.outcomes[0].failed
        assert result.outcomes[0].error

    def test_progress_is_reported_after_each_batch(self) -> None:
        seen: list[BatchProgress] = []

        BatchPersister(FakeUpserter(), batch_size=50).persist(
            _records(120),
            owner_id="vendor-1",
            on_progress=seen.append,
        )

        assert [(progress.completed, progress.total) for progress in seen] == [(1, 3), (2, 3), (3, 3)]

    def test_cancellation_stops_before_next_batch(self) -> None:
        token = CancellationToken()
        upserter = FakeUpserter()

        def cancel_after_first(progress: BatchProgress) -> None:
            token.cancel()

        result = BatchPersister(upserter, batch_size=50).persist(
            _records(120),
            owner_id="vendor-1",
            cancel_token=token,
            on_progress=cancel_after_first,
        )

        assert result.cancelled
        assert len(result.outcomes) == 1
        assert len(upserter.calls) == 1
        assert result.total_batches == 3

    def test_cancelled_before_start_persists_nothing(self) -> None:
        token = CancellationToken()
        token.cancel()
        upserter = FakeUpserter()

        result = BatchPersister(upserter, batch_size=50).persist(_records(10), owner_id="vendor-1", cancel_token=token)

        assert result.cancelled
        assert result.outcomes == ()
        assert upserter.calls == []


# ---------------------------------------------------------------------------
# Concurrent persistence
# ---------------------------------------------------------------------------


class TestConcurrentPersistence:
    @pytest.mark.parametrize("workers", [2, 3, 8])
    def test_outcomes_stay_in_batch_order(self, workers: int) -> None:
        upserter = FakeUpserter(fail_on={51})

        result = BatchPersister(upserter, batch_size=50, max_workers=workers).persist(
            _records(120),
            owner_id="vendor-1",
        )

        assert [outcome.index for outcome in result.outcomes] == [1, 2, 3]
        assert [outcome.failed for outcome in result.outcomes] == [False, True, False]
        assert sum(outcome.persisted for outcome in result.outcomes) == 100
        assert sorted(upserter.calls) == [tuple(range(1, 51)), tuple(range(51, 101)), tuple(range(101, 121))]

    def test_cancellation_checked_between_windows(self) -> None:
        token = CancellationToken()
        upserter = FakeUpserter()

        def cancel_now(progress: BatchProgress) -> None:
            token.cancel()

        result = BatchPersister(upserter, batch_size=10, max_workers=2).persist(
            _records(60),
            owner_id="vendor-1",
            cancel_token=token,
            on_progress=cancel_now,
        )

        assert result.cancelled
        assert [outcome.index for outcome in result.outcomes] == [1, 2]
        assert len(upserter.calls) == 2

"""
app/repositories/inventory_repository.py

Persistence layer for normalized diamond inventory records.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import Any

from sqlalchemy import func
from sqlalchemy.dialects.postgresql import Insert, insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.domain.errors import BatchPersistenceError
from app.domain.inventory import InventoryRecord
from db.models.inventory_diamond import UPSERT_CONSTRAINT, InventoryDiamond

logger = logging.getLogger(__name__)

_ATTRIBUTE_COLUMNS: frozenset[str] = frozenset(
    column.name
    for column in InventoryDiamond.__table__.columns
    if column.name
    not in {"id", "owner_id", "assumed_fields", "source_row_number", "metadata_json", "created_at", "updated_at"}
)
_KEY_COLUMNS = ("owner_id", "stock_number")


class InventoryRepository:
    """
    Repository for batch upserts of inventory records.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def upsert_many(self, records: Sequence[InventoryRecord], *, owner_id: str) -> int:
        """
        Insert or update records keyed by (owner_id, stock_number).

        Returns the number of rows written. The caller owns the transaction.
        """

        if not records:
            return 0

        payloads = self._deduplicate_payloads([self._to_payload(record, owner_id) for record in records])
        stmt = build_upsert_statement(payloads)
        return len(self._session.scalars(stmt).all())

    @staticmethod
    def _to_payload(record: InventoryRecord, owner_id: str) -> dict[str, Any]:
        payload: dict[str, Any] = {column: None for column in _ATTRIBUTE_COLUMNS}
        for key, value in record.attributes.items():
            if key in _ATTRIBUTE_COLUMNS:
                payload[key] = value
        payload["owner_id"] = owner_id
        payload["stock_number"] = record.stock_number
        payload["assumed_fields"] = list(record.assumed_fields)
        payload["source_row_number"] = record.row_number
        return payload

    @staticmethod
    def _deduplicate_payloads(payloads: Sequence[dict[str, Any]]) -> list[dict[str, Any]]:
        # One INSERT cannot touch the same conflict key twice; the last row wins.
        by_key: dict[tuple[str, str], dict[str, Any]] = {}
        for payload in payloads:
            key = (payload["owner_id"], payload["stock_number"])
            by_key.pop(key, None)
            by_key[key] = payload
        return list(by_key.values())


def build_upsert_statement(payloads: Sequence[dict[str, Any]]) -> Insert:
    """
    PostgreSQL INSERT ... ON CONFLICT DO UPDATE for inventory payloads.
    """

    stmt = insert(InventoryDiamond).values(list(payloads))
    updatable = {
        name: stmt.excluded[name]
        for name in (*sorted(_ATTRIBUTE_COLUMNS), "assumed_fields", "source_row_number")
        if name not in _KEY_COLUMNS
    }
    updatable["updated_at"] = func.now()
    return stmt.on_conflict_do_update(
        constraint=UPSERT_CONSTRAINT,
        set_=updatable,
    ).returning(InventoryDiamond.id)


class SqlAlchemyInventoryUpserter:
    """
    Upserts one batch per session and transaction.

    Each call opens its own session, so batches can run on worker threads
    without sharing connection state.
    """

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def upsert(self, records: Sequence[InventoryRecord], owner_id: str) -> int:
        session = self._session_factory()
        try:
            persisted = InventoryRepository(session).upsert_many(records, owner_id=owner_id)
            session.commit()
            return persisted
        except SQLAlchemyError as exc:
            session.rollback()
            logger.error("Inventory batch upsert failed owner_id=%s rows=%d: %s", owner_id, len(records), exc)
            raise BatchPersistenceError(f"Inventory upsert failed: {exc}") from exc
        finally:
            session.close()

"""
db/models/inventory_diamond.py

Normalized diamond inventory line items, one row per (owner, stock number).
"""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import Float, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin

UPSERT_CONSTRAINT = "uq_inventory_diamonds_owner_stock"


class InventoryDiamond(Base, TimestampMixin):
    __tablename__ = "inventory_diamonds"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    owner_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Opaque submitter identity used for upsert keying",
    )
    stock_number: Mapped[str] = mapped_column(String(120), nullable=False)

    shape: Mapped[str] = mapped_column(String(32), nullable=False)
    weight: Mapped[float] = mapped_column(Float, nullable=False, comment="Carats")
    color: Mapped[str | None] = mapped_column(String(8), nullable=True)
    clarity: Mapped[str | None] = mapped_column(String(8), nullable=True)
    cut: Mapped[str | None] = mapped_column(String(16), nullable=True)
    polish: Mapped[str | None] = mapped_column(String(16), nullable=True)
    symmetry: Mapped[str | None] = mapped_column(String(16), nullable=True)
    fluorescence: Mapped[str | None] = mapped_column(String(16), nullable=True)
    lab: Mapped[str | None] = mapped_column(String(16), nullable=True)
    certificate_number: Mapped[str | None] = mapped_column(String(64), nullable=True)

    price_per_carat: Mapped[float | None] = mapped_column(Float, nullable=True)
    total_price: Mapped[float | None] = mapped_column(Float, nullable=True)
    rapnet_discount: Mapped[float | None] = mapped_column(Float, nullable=True)

    measurements: Mapped[str | None] = mapped_column(String(64), nullable=True)
    measurement_length: Mapped[float | None] = mapped_column(Float, nullable=True, comment="mm")
    measurement_width: Mapped[float | None] = mapped_column(Float, nullable=True, comment="mm")
    measurement_depth: Mapped[float | None] = mapped_column(Float, nullable=True, comment="mm")
    ratio: Mapped[float | None] = mapped_column(Float, nullable=True)
    table_percentage: Mapped[float | None] = mapped_column(Float, nullable=True)
    depth_percentage: Mapped[float | None] = mapped_column(Float, nullable=True)
    girdle: Mapped[str | None] = mapped_column(String(64), nullable=True)
    culet: Mapped[str | None] = mapped_column(String(32), nullable=True)

    fancy_color: Mapped[str | None] = mapped_column(String(64), nullable=True)
    fancy_intensity: Mapped[str | None] = mapped_column(String(64), nullable=True)
    fancy_overtone: Mapped[str | None] = mapped_column(String(64), nullable=True)
    certificate_comment: Mapped[str | None] = mapped_column(Text, nullable=True)
    comments: Mapped[str | None] = mapped_column(Text, nullable=True)

    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    video_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    certificate_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    sarin_file_url: Mapped[str | None] = mapped_column(Text, nullable=True)

    country_location: Mapped[str | None] = mapped_column(String(120), nullable=True)
    city_location: Mapped[str | None] = mapped_column(String(120), nullable=True)
    availability: Mapped[str | None] = mapped_column(String(64), nullable=True)

    assumed_fields: Mapped[list[str]] = mapped_column(
        JSONB,
        nullable=False,
        default=list,
        comment="Fields filled with defaults instead of file values",
    )
    source_row_number: Mapped[int | None] = mapped_column(
        Integer,
        nullable=True,
        comment="Data row number in the last submitted file",
    )
    metadata_json: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)

    __table_args__ = (
        UniqueConstraint("owner_id", "stock_number", name=UPSERT_CONSTRAINT),
        Index("ix_inventory_diamonds_owner_id", "owner_id"),
        Index("ix_inventory_diamonds_certificate_number", "certificate_number"),
        Index("ix_inventory_diamonds_owner_shape", "owner_id", "shape"),
    )

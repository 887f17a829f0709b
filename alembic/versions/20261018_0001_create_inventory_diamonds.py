"""create inventory_diamonds table

Revision ID: 20261018_0001
Revises:
Create Date: 2026-10-18 09:30:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20261018_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "inventory_diamonds",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("owner_id", sa.String(length=255), nullable=False, comment="Opaque submitter identity used for upsert keying"),
        sa.Column("stock_number", sa.String(length=120), nullable=False),
        sa.Column("shape", sa.String(length=32), nullable=False),
        sa.Column("weight", sa.Float(), nullable=False, comment="Carats"),
        sa.Column("color", sa.String(length=8), nullable=True),
        sa.Column("clarity", sa.String(length=8), nullable=True),
        sa.Column("cut", sa.String(length=16), nullable=True),
        sa.Column("polish", sa.String(length=16), nullable=True),
        sa.Column("symmetry", sa.String(length=16), nullable=True),
        sa.Column("fluorescence", sa.String(length=16), nullable=True),
        sa.Column("lab", sa.String(length=16), nullable=True),
        sa.Column("certificate_number", sa.String(length=64), nullable=True),
        sa.Column("price_per_carat", sa.Float(), nullable=True),
        sa.Column("total_price", sa.Float(), nullable=True),
        sa.Column("rapnet_discount", sa.Float(), nullable=True),
        sa.Column("measurements", sa.String(length=64), nullable=True),
        sa.Column("measurement_length", sa.Float(), nullable=True, comment="mm"),
        sa.Column("measurement_width", sa.Float(), nullable=True, comment="mm"),
        sa.Column("measurement_depth", sa.Float(), nullable=True, comment="mm"),
        sa.Column("ratio", sa.Float(), nullable=True),
        sa.Column("table_percentage", sa.Float(), nullable=True),
        sa.Column("depth_percentage", sa.Float(), nullable=True),
        sa.Column("girdle", sa.String(length=64), nullable=True),
        sa.Column("culet", sa.String(length=32), nullable=True),
        sa.Column("fancy_color", sa.String(length=64), nullable=True),
        sa.Column("fancy_intensity", sa.String(length=64), nullable=True),
        sa.Column("fancy_overtone", sa.String(length=64), nullable=True),
        sa.Column("certificate_comment", sa.Text(), nullable=True),
        sa.Column("comments", sa.Text(), nullable=True),
        sa.Column("image_url", sa.Text(), nullable=True),
        sa.Column("video_url", sa.Text(), nullable=True),
        sa.Column("certificate_url", sa.Text(), nullable=True),
        sa.Column("sarin_file_url", sa.Text(), nullable=True),
        sa.Column("country_location", sa.String(length=120), nullable=True),
        sa.Column("city_location", sa.String(length=120), nullable=True),
        sa.Column("availability", sa.String(length=64), nullable=True),
        sa.Column(
            "assumed_fields",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            comment="Fields filled with defaults instead of file values",
        ),
        sa.Column(
            "source_row_number",
            sa.Integer(),
            nullable=True,
            comment="Data row number in the last submitted file",
        ),
        sa.Column("metadata_json", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_inventory_diamonds"),
        sa.UniqueConstraint("owner_id", "stock_number", name="uq_inventory_diamonds_owner_stock"),
    )
    op.create_index("ix_inventory_diamonds_owner_id", "inventory_diamonds", ["owner_id"], unique=False)
    op.create_index(
        "ix_inventory_diamonds_certificate_number",
        "inventory_diamonds",
        ["certificate_number"],
        unique=False,
    )
    op.create_index(
        "ix_inventory_diamonds_owner_shape",
        "inventory_diamonds",
        ["owner_id", "shape"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_inventory_diamonds_owner_shape", table_name="inventory_diamonds")
    op.drop_index("ix_inventory_diamonds_certificate_number", table_name="inventory_diamonds")
    op.drop_index("ix_inventory_diamonds_owner_id", table_name="inventory_diamonds")
    op.drop_table("inventory_diamonds")

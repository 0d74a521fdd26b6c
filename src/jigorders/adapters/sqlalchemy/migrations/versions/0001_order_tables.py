"""Create order tables and the related entity tables they read.

Revision ID: 0001_order_tables
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

from jigorders.adapters.sqlalchemy.mappings import UTCDateTime

revision = "0001_order_tables"
down_revision = None
branch_labels = None
depends_on = None

ORDER_TABLE_NAMES = ("purchase_orders", "cutting_orders")


def _create_order_table(name: str) -> None:
    op.create_table(
        name,
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("inventory_number", sa.String(length=128), nullable=False),
        sa.Column("project_name", sa.String(length=255), nullable=True),
        sa.Column("part_name", sa.String(length=255), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=True),
        sa.Column("unit", sa.String(length=64), nullable=False),
        sa.Column("model", sa.String(length=255), nullable=True),
        sa.Column("supplier", sa.String(length=255), nullable=True),
        sa.Column("required_date", sa.Date(), nullable=True),
        sa.Column("remark", sa.Text(), nullable=True),
        sa.Column("weight", sa.Float(), nullable=True),
        sa.Column("total_price", sa.Float(), nullable=True),
        sa.Column("production_unit", sa.String(length=255), nullable=True),
        sa.Column("applicant", sa.String(length=255), nullable=True),
        sa.Column("demand_date", sa.Date(), nullable=True),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("tooling_id", sa.String(length=64), nullable=True),
        sa.Column("child_item_id", sa.String(length=64), nullable=True),
        sa.Column("part_id", sa.String(length=64), nullable=True),
        sa.Column("created_date", UTCDateTime(), nullable=False),
        sa.Column("updated_date", UTCDateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id", name=f"pk_{name}"),
    )
    child_item_scope = sa.text("child_item_id IS NOT NULL")
    part_scope = sa.text("part_id IS NOT NULL")
    tooling_part_scope = sa.text(
        "part_id IS NULL AND child_item_id IS NULL AND tooling_id IS NOT NULL"
    )
    inventory_scope = sa.text(
        "part_id IS NULL AND child_item_id IS NULL AND tooling_id IS NULL"
    )
    op.create_index(
        f"uq_{name}_child_item_id",
        name,
        ["child_item_id"],
        unique=True,
        sqlite_where=child_item_scope,
        postgresql_where=child_item_scope,
    )
    op.create_index(
        f"uq_{name}_part_id",
        name,
        ["part_id"],
        unique=True,
        sqlite_where=part_scope,
        postgresql_where=part_scope,
    )
    op.create_index(
        f"uq_{name}_tooling_part",
        name,
        ["tooling_id", "part_name"],
        unique=True,
        sqlite_where=tooling_part_scope,
        postgresql_where=tooling_part_scope,
    )
    op.create_index(
        f"uq_{name}_inventory_number",
        name,
        ["inventory_number"],
        unique=True,
        sqlite_where=inventory_scope,
        postgresql_where=inventory_scope,
    )
    op.create_index(f"ix_{name}_created_date", name, ["created_date"])
    op.create_index(f"ix_{name}_status", name, ["status"])


def upgrade() -> None:
    op.create_table(
        "tooling_info",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("production_unit", sa.String(length=255), nullable=True),
        sa.Column("recorder", sa.String(length=255), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_tooling_info"),
    )
    op.create_table(
        "parts_info",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("remarks", sa.Text(), nullable=True),
        sa.Column("weight", sa.Float(), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_parts_info"),
    )
    op.create_table(
        "child_items",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("tooling_id", sa.String(length=64), nullable=True),
        sa.Column("name", sa.String(length=255), nullable=True),
        sa.Column("required_date", sa.Date(), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_child_items"),
    )
    op.create_index("ix_child_items_tooling_id", "child_items", ["tooling_id"])
    for name in ORDER_TABLE_NAMES:
        _create_order_table(name)


def downgrade() -> None:
    for name in reversed(ORDER_TABLE_NAMES):
        op.drop_table(name)
    op.drop_index("ix_child_items_tooling_id", table_name="child_items")
    op.drop_table("child_items")
    op.drop_table("parts_info")
    op.drop_table("tooling_info")

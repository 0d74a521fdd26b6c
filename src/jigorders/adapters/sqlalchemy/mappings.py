"""SQLAlchemy table metadata for order tables and the entities they read."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import Final

from sqlalchemy import (
    Column,
    Date,
    DateTime,
    Dialect,
    Float,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    TypeDecorator,
    Uuid,
    and_,
)

UUIDColumnType = Uuid[uuid.UUID]


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


metadata = MetaData(
    naming_convention={
        "ix": "ix_%(column_0_label)s",
        "uq": "uq_%(table_name)s_%(column_0_label)s",
        "ck": "ck_%(table_name)s_%(constraint_name)s",
        "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
        "pk": "pk_%(table_name)s",
    }
)


def _order_table(name: str) -> Table:
    table = Table(
        name,
        metadata,
        Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
        Column("inventory_number", String(128), nullable=False),
        Column("project_name", String(255)),
        Column("part_name", String(255), nullable=False),
        Column("quantity", Integer),
        Column("unit", String(64), nullable=False),
        Column("model", String(255)),
        Column("supplier", String(255)),
        Column("required_date", Date),
        Column("remark", Text),
        Column("weight", Float),
        Column("total_price", Float),
        Column("production_unit", String(255)),
        Column("applicant", String(255)),
        Column("demand_date", Date),
        Column("status", String(32), nullable=False, default="pending"),
        Column("tooling_id", String(64)),
        Column("child_item_id", String(64)),
        Column("part_id", String(64)),
        Column("created_date", UTCDateTime(), nullable=False),
        Column("updated_date", UTCDateTime()),
    )
    c = table.c
    Index(
        f"uq_{name}_child_item_id",
        c.child_item_id,
        unique=True,
        sqlite_where=c.child_item_id.is_not(None),
        postgresql_where=c.child_item_id.is_not(None),
    )
    Index(
        f"uq_{name}_part_id",
        c.part_id,
        unique=True,
        sqlite_where=c.part_id.is_not(None),
        postgresql_where=c.part_id.is_not(None),
    )
    tooling_part_scope = and_(
        c.part_id.is_(None), c.child_item_id.is_(None), c.tooling_id.is_not(None)
    )
    Index(
        f"uq_{name}_tooling_part",
        c.tooling_id,
        c.part_name,
        unique=True,
        sqlite_where=tooling_part_scope,
        postgresql_where=tooling_part_scope,
    )
    inventory_scope = and_(c.part_id.is_(None), c.child_item_id.is_(None), c.tooling_id.is_(None))
    Index(
        f"uq_{name}_inventory_number",
        c.inventory_number,
        unique=True,
        sqlite_where=inventory_scope,
        postgresql_where=inventory_scope,
    )
    Index(f"ix_{name}_created_date", c.created_date)
    Index(f"ix_{name}_status", c.status)
    return table


purchase_order_table = _order_table("purchase_orders")
cutting_order_table = _order_table("cutting_orders")

ORDER_TABLES: Final[dict[str, Table]] = {
    purchase_order_table.name: purchase_order_table,
    cutting_order_table.name: cutting_order_table,
}

# Related entities -------------------------------------------------------------
# Owned by the tooling side of the factory system; only the columns read here.

tooling_info_table = Table(
    "tooling_info",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("production_unit", String(255)),
    Column("recorder", String(255)),
)

parts_info_table = Table(
    "parts_info",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("remarks", Text),
    Column("weight", Float),
)

child_items_table = Table(
    "child_items",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("tooling_id", String(64), index=True),
    Column("name", String(255)),
    Column("required_date", Date),
)


def order_table_for(table_name: str) -> Table:
    try:
        return ORDER_TABLES[table_name]
    except KeyError as exc:
        raise ValueError(f"Unknown order table: {table_name}") from exc

"""SQLAlchemy storage adapter."""

from __future__ import annotations

from .gateway import DatabaseGateway, build_engine, is_transient
from .mappings import (
    ORDER_TABLES,
    child_items_table,
    cutting_order_table,
    metadata,
    order_table_for,
    parts_info_table,
    purchase_order_table,
    tooling_info_table,
)
from .repositories import SqlAlchemyOrderRepository, SqlAlchemyRelatedEntityReader

__all__ = [
    "ORDER_TABLES",
    "DatabaseGateway",
    "SqlAlchemyOrderRepository",
    "SqlAlchemyRelatedEntityReader",
    "build_engine",
    "child_items_table",
    "cutting_order_table",
    "is_transient",
    "metadata",
    "order_table_for",
    "parts_info_table",
    "purchase_order_table",
    "tooling_info_table",
]

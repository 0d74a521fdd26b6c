from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import uuid4

import pytest
from sqlalchemy import inspect, insert
from sqlalchemy.exc import IntegrityError

from jigorders.adapters.sqlalchemy.mappings import purchase_order_table
from jigorders.adapters.sqlalchemy.migrations import upgrade_head
from tests.helpers.orders import BASE_TIME

if TYPE_CHECKING:
    from jigorders.adapters.sqlalchemy.gateway import DatabaseGateway


def _row(**overrides: object) -> dict[str, object]:
    values: dict[str, object] = {
        "id": uuid4(),
        "inventory_number": "INV-1",
        "part_name": "Locating pin",
        "unit": "pcs",
        "status": "pending",
        "created_date": BASE_TIME,
    }
    values.update(overrides)
    return values


def test_upgrade_creates_all_tables(gateway: DatabaseGateway) -> None:
    tables = set(inspect(gateway.engine).get_table_names())

    assert {
        "purchase_orders",
        "cutting_orders",
        "tooling_info",
        "parts_info",
        "child_items",
        "alembic_version",
    } <= tables


def test_upgrade_is_repeatable(gateway: DatabaseGateway) -> None:
    upgrade_head(engine=gateway.engine)

    assert gateway.query("SELECT version_num FROM alembic_version") == [
        {"version_num": "0001_order_tables"}
    ]


def test_partial_unique_indexes(gateway: DatabaseGateway) -> None:
    engine = gateway.engine
    with engine.begin() as connection:
        connection.execute(insert(purchase_order_table), [_row(child_item_id="C1")])
        # same inventory number is fine once a structural id is present
        connection.execute(insert(purchase_order_table), [_row(part_id="P1")])
        connection.execute(insert(purchase_order_table), [_row()])

    with pytest.raises(IntegrityError), engine.begin() as connection:
        connection.execute(insert(purchase_order_table), [_row(child_item_id="C1")])

    with pytest.raises(IntegrityError), engine.begin() as connection:
        connection.execute(insert(purchase_order_table), [_row(inventory_number="INV-1")])

    with engine.begin() as connection:
        connection.execute(
            insert(purchase_order_table), [_row(tooling_id="T1", part_name="Clamp")]
        )
    with pytest.raises(IntegrityError), engine.begin() as connection:
        connection.execute(
            insert(purchase_order_table),
            [_row(inventory_number="INV-2", tooling_id="T1", part_name="Clamp")],
        )

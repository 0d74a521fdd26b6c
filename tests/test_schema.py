from __future__ import annotations

from datetime import date

import pytest

from jigorders.domain.errors import BatchValidationError
from jigorders.schema import parse_manual_plans, parse_order_batch


def test_parse_order_batch_normalizes_wire_values() -> None:
    candidates = parse_order_batch(
        {
            "orders": [
                {
                    "inventory_number": 1001,
                    "project_name": "  Fixture overhaul ",
                    "part_name": "Clamp",
                    "part_quantity": "4",
                    "unit": "pcs",
                    "supplier": "   ",
                    "required_date": "2024-05-01",
                    "tooling_id": 17,
                    "unexpected": "ignored",
                }
            ]
        }
    )

    candidate = candidates[0]
    assert candidate.inventory_number == "1001"
    assert candidate.project_name == "Fixture overhaul"
    assert candidate.quantity == 4
    assert candidate.supplier is None
    assert candidate.required_date == date(2024, 5, 1)
    assert candidate.tooling_id == "17"


def test_quantity_is_accepted_by_field_name() -> None:
    candidates = parse_order_batch({"orders": [{"quantity": 2, "demand_date": ""}]})

    assert candidates[0].quantity == 2
    assert candidates[0].demand_date is None


def test_malformed_records_report_their_index() -> None:
    with pytest.raises(BatchValidationError) as excinfo:
        parse_order_batch({"orders": [{"part_name": "ok"}, {"required_date": "not-a-date"}]})

    problem = excinfo.value.problems[0]
    assert problem.index == 1
    assert problem.fields == ("required_date",)


def test_missing_orders_key_is_rejected() -> None:
    with pytest.raises(BatchValidationError):
        parse_order_batch({})


def test_manual_plans_accept_either_key() -> None:
    assert parse_manual_plans({"plans": [{"part_name": "Shim"}]}) == [{"part_name": "Shim"}]
    assert parse_manual_plans({"orders": [{"part_name": "Shim"}]}) == [{"part_name": "Shim"}]

from __future__ import annotations

from datetime import date

from jigorders.domain.reconciliation.diff import changed, changed_fields
from tests.helpers.orders import make_candidate, make_order


def test_none_and_empty_string_are_equal() -> None:
    existing = make_order(model=None, supplier="")
    candidate = make_candidate(model="", supplier=None)

    assert not changed(existing, candidate)


def test_numbers_compare_by_value() -> None:
    existing = make_order(weight=2.0, quantity=2)
    candidate = make_candidate(weight=2, quantity=2)

    assert not changed(existing, candidate)


def test_reports_changed_field_names() -> None:
    existing = make_order(quantity=5, demand_date=date(2024, 5, 1))
    candidate = make_candidate(quantity=6, demand_date=date(2024, 5, 2))

    assert changed_fields(existing, candidate) == ("quantity", "demand_date")


def test_status_and_identity_hints_are_not_compared() -> None:
    existing = make_order(status="completed", tooling_id="T1")
    candidate = make_candidate(status="pending", tooling_id=None)

    assert not changed(existing, candidate)

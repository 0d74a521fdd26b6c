"""Decide whether a resolved candidate would change its stored row."""

from __future__ import annotations

from datetime import date, datetime
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from jigorders.domain.model import Candidate

COMPARED_FIELDS: Final[tuple[str, ...]] = (
    "inventory_number",
    "project_name",
    "part_name",
    "quantity",
    "unit",
    "model",
    "supplier",
    "required_date",
    "remark",
    "weight",
    "total_price",
    "demand_date",
    "production_unit",
    "applicant",
)


def normalize(value: object) -> object:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return value


def changed_fields(
    existing: Candidate, candidate: Candidate, *, fields: tuple[str, ...] = COMPARED_FIELDS
) -> tuple[str, ...]:
    return tuple(
        name
        for name in fields
        if normalize(getattr(existing, name)) != normalize(getattr(candidate, name))
    )


def changed(existing: Candidate, candidate: Candidate) -> bool:
    return bool(changed_fields(existing, candidate))

"""Per-record intake for manually entered purchase plans."""

from __future__ import annotations

import random
import re
import string
from dataclasses import dataclass
from datetime import date, datetime
from typing import TYPE_CHECKING, Any, Final

from .model import Candidate, is_blank

if TYPE_CHECKING:
    from collections.abc import Mapping

MANUAL_APPLICANT: Final[str] = "manual entry"
MANUAL_PREFIX: Final[str] = "MANUAL"
ISO_DATE: Final[re.Pattern[str]] = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_SUFFIX_ALPHABET: Final[str] = string.ascii_uppercase + string.digits

_TEXT_FIELDS: Final[tuple[str, ...]] = (
    "inventory_number",
    "project_name",
    "part_name",
    "unit",
    "model",
    "supplier",
    "remark",
    "production_unit",
    "status",
    "tooling_id",
    "child_item_id",
    "part_id",
)


class ManualPlanError(ValueError):
    """Raised for a single manual plan record that cannot be accepted."""


@dataclass(frozen=True, slots=True)
class PreparedPlan:
    index: int
    candidate: Candidate | None = None
    error: str | None = None


def generate_inventory_number(now: datetime, rng: random.Random | None = None) -> str:
    chooser = rng or random.Random()
    suffix = "".join(chooser.choice(_SUFFIX_ALPHABET) for _ in range(4))
    return f"{MANUAL_PREFIX}-{int(now.timestamp() * 1000)}-{suffix}"


def _text(record: Mapping[str, Any], name: str) -> str | None:
    value = record.get(name)
    if is_blank(value):
        return None
    return str(value).strip()


def _positive_int(value: object) -> int | None:
    if is_blank(value):
        return None
    if isinstance(value, bool):
        raise ManualPlanError("quantity must be a positive integer")
    if isinstance(value, float):
        if not value.is_integer():
            raise ManualPlanError("quantity must be a positive integer")
        value = int(value)
    try:
        quantity = int(str(value).strip())
    except ValueError as exc:
        raise ManualPlanError("quantity must be a positive integer") from exc
    if quantity <= 0:
        raise ManualPlanError("quantity must be a positive integer")
    return quantity


def _optional_float(name: str, value: object) -> float | None:
    if is_blank(value):
        return None
    try:
        return float(str(value).strip())
    except ValueError as exc:
        raise ManualPlanError(f"{name} must be a number") from exc


def _iso_date(name: str, value: object) -> date | None:
    if is_blank(value):
        return None
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not ISO_DATE.match(text):
        raise ManualPlanError(f"{name} must use YYYY-MM-DD")
    try:
        return date.fromisoformat(text)
    except ValueError as exc:
        raise ManualPlanError(f"{name} is not a valid date") from exc


def prepare_manual_plan(
    record: Mapping[str, Any],
    *,
    now: datetime,
    rng: random.Random | None = None,
) -> Candidate:
    """Turn one manual plan record into a purchase candidate or raise ``ManualPlanError``."""

    part_name = _text(record, "part_name")
    if part_name is None:
        raise ManualPlanError("part_name is required")
    unit = _text(record, "unit")
    if unit is None:
        raise ManualPlanError("unit is required")

    quantity = _positive_int(record.get("quantity", record.get("part_quantity")))
    demand_date = _iso_date("demand_date", record.get("demand_date"))
    required_date = _iso_date("required_date", record.get("required_date"))

    values: dict[str, Any] = {name: _text(record, name) for name in _TEXT_FIELDS}
    values.update(
        part_name=part_name,
        unit=unit,
        quantity=quantity,
        weight=_optional_float("weight", record.get("weight")),
        total_price=_optional_float("total_price", record.get("total_price")),
        required_date=demand_date or required_date,
        demand_date=demand_date or required_date,
        applicant=_text(record, "applicant") or _text(record, "recorder") or MANUAL_APPLICANT,
    )
    if values["inventory_number"] is None:
        values["inventory_number"] = generate_inventory_number(now, rng)
    return Candidate(**values)


def prepare_manual_plans(
    records: list[Mapping[str, Any]],
    *,
    now: datetime,
    rng: random.Random | None = None,
) -> list[PreparedPlan]:
    prepared: list[PreparedPlan] = []
    for index, record in enumerate(records):
        try:
            candidate = prepare_manual_plan(record, now=now, rng=rng)
        except ManualPlanError as exc:
            prepared.append(PreparedPlan(index=index, error=str(exc)))
            continue
        prepared.append(PreparedPlan(index=index, candidate=candidate))
    return prepared

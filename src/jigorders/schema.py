"""Inbound payload models for order batches and manual plans."""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from jigorders.domain.errors import BatchValidationError, ValidationProblem
from jigorders.domain.model import Candidate

if TYPE_CHECKING:
    from collections.abc import Mapping


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


def _identifier(value: object) -> object:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return str(value)
    return _blank_to_none(value)


class JigOrdersBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class CandidatePayload(JigOrdersBaseModel):
    inventory_number: str | None = None
    project_name: str | None = None
    part_name: str | None = None
    quantity: int | None = Field(default=None, alias="part_quantity")
    unit: str | None = None
    model: str | None = None
    supplier: str | None = None
    required_date: date | None = None
    remark: str | None = None
    weight: float | None = None
    total_price: float | None = None
    production_unit: str | None = None
    applicant: str | None = None
    demand_date: date | None = None
    status: str | None = None
    tooling_id: str | None = None
    child_item_id: str | None = None
    part_id: str | None = None

    _normalize_text = field_validator(
        "project_name",
        "part_name",
        "unit",
        "model",
        "supplier",
        "remark",
        "production_unit",
        "applicant",
        "status",
        "quantity",
        "weight",
        "total_price",
        "required_date",
        "demand_date",
        mode="before",
    )(_blank_to_none)
    _normalize_identifiers = field_validator(
        "inventory_number",
        "tooling_id",
        "child_item_id",
        "part_id",
        mode="before",
    )(_identifier)

    def to_candidate(self) -> Candidate:
        return Candidate(**self.model_dump(by_alias=False))


class OrderBatchPayload(JigOrdersBaseModel):
    orders: list[CandidatePayload]


class ManualPlanBatchPayload(JigOrdersBaseModel):
    plans: list[dict[str, Any]] = Field(alias="orders")


def _problems_from(error: ValidationError) -> list[ValidationProblem]:
    problems: list[ValidationProblem] = []
    for detail in error.errors():
        location = tuple(detail.get("loc", ()))
        position = next((i for i, part in enumerate(location) if isinstance(part, int)), None)
        index = -1 if position is None else int(location[position])
        tail = location if position is None else location[position + 1 :]
        field_names = tuple(str(part) for part in tail if isinstance(part, str))
        problems.append(
            ValidationProblem(index=index, message=detail.get("msg", "invalid"), fields=field_names)
        )
    return problems


def parse_order_batch(payload: Mapping[str, Any]) -> list[Candidate]:
    """Validate a ``{"orders": [...]}`` payload into candidates.

    Raises ``BatchValidationError`` for malformed payloads; required-field checks
    are left to the reconciliation engine.
    """

    try:
        batch = OrderBatchPayload.model_validate(payload)
    except ValidationError as exc:
        raise BatchValidationError("Malformed order batch", _problems_from(exc)) from exc
    return [order.to_candidate() for order in batch.orders]


def parse_manual_plans(payload: Mapping[str, Any]) -> list[dict[str, Any]]:
    try:
        batch = ManualPlanBatchPayload.model_validate(payload)
    except ValidationError as exc:
        raise BatchValidationError("Malformed manual plan batch", _problems_from(exc)) from exc
    return batch.plans

"""Order lines and the external entities they are derived from."""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Final, Self

if TYPE_CHECKING:
    from datetime import date, datetime
    from uuid import UUID


class OrderKind(StrEnum):
    PURCHASE = "purchase"
    CUTTING = "cutting"


class OrderStatus(StrEnum):
    PENDING = "pending"
    COMPLETED = "completed"


DEFAULT_STATUS: Final[str] = OrderStatus.PENDING.value

STRUCTURAL_ID_FIELDS: Final[tuple[str, ...]] = ("tooling_id", "child_item_id", "part_id")


def is_blank(value: object) -> bool:
    """Return ``True`` for ``None`` and empty or whitespace-only strings."""

    if value is None:
        return True
    return isinstance(value, str) and not value.strip()


@dataclass(slots=True, kw_only=True)
class Candidate:
    """An order line submitted for reconciliation, not yet persisted."""

    inventory_number: str | None = None
    project_name: str | None = None
    part_name: str | None = None
    quantity: int | None = None
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

    def with_values(self, **changes: Any) -> Self:
        return replace(self, **changes)

    @property
    def has_structural_id(self) -> bool:
        return any(not is_blank(getattr(self, name)) for name in STRUCTURAL_ID_FIELDS)


CANDIDATE_FIELDS: Final[tuple[str, ...]] = tuple(field.name for field in fields(Candidate))


@dataclass(slots=True, kw_only=True)
class PersistedOrder(Candidate):
    id: UUID
    created_date: datetime
    updated_date: datetime | None = None

    def as_dict(self) -> dict[str, Any]:
        return {field.name: getattr(self, field.name) for field in fields(self)}


# External entities -----------------------------------------------------------


@dataclass(frozen=True, slots=True, kw_only=True)
class ToolingMeta:
    id: str
    production_unit: str | None = None
    applicant_name: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class PurchasablePart:
    id: str
    free_text_notes: str | None = None
    unit_weight: float | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class StandardItem:
    id: str
    tooling_id: str | None = None
    name: str | None = None
    required_date: date | None = None


class OrderSource(StrEnum):
    TOOLING = "tooling"
    TEMPORARY_PLAN = "temporary_plan"
    UNKNOWN = "unknown"


TEMPORARY_PLAN_PREFIXES: Final[tuple[str, ...]] = ("MANUAL-", "BACKUP-")


def order_source(order: Candidate) -> OrderSource:
    """Classify where an order line came from, for listings."""

    if order.has_structural_id:
        return OrderSource.TOOLING
    if order.inventory_number and order.inventory_number.startswith(TEMPORARY_PLAN_PREFIXES):
        return OrderSource.TEMPORARY_PLAN
    return OrderSource.UNKNOWN

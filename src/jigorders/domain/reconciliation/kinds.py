"""Order kind definitions: target table, required fields and identity keys."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Final

from jigorders.domain.model import OrderKind


class IdentityKey(StrEnum):
    CHILD_ITEM = "child_item_id"
    PART = "part_id"
    TOOLING_PART = "tooling_part"
    INVENTORY_NUMBER = "inventory_number"


IDENTITY_KEY_FIELDS: Final[dict[IdentityKey, tuple[str, ...]]] = {
    IdentityKey.CHILD_ITEM: ("child_item_id",),
    IdentityKey.PART: ("part_id",),
    IdentityKey.TOOLING_PART: ("tooling_id", "part_name"),
    IdentityKey.INVENTORY_NUMBER: ("inventory_number",),
}

# Highest priority first.
DEFAULT_IDENTITY_KEYS: Final[tuple[IdentityKey, ...]] = (
    IdentityKey.CHILD_ITEM,
    IdentityKey.PART,
    IdentityKey.TOOLING_PART,
    IdentityKey.INVENTORY_NUMBER,
)


@dataclass(frozen=True, slots=True, kw_only=True)
class OrderKindDefinition:
    kind: OrderKind
    name: str
    table_name: str
    required_fields: tuple[str, ...]
    identity_keys: tuple[IdentityKey, ...] = DEFAULT_IDENTITY_KEYS
    positive_quantity: bool = False
    backfill_weight: bool = False


PURCHASE_ORDERS: Final = OrderKindDefinition(
    kind=OrderKind.PURCHASE,
    name="purchase",
    table_name="purchase_orders",
    required_fields=("inventory_number", "project_name", "part_name", "quantity", "unit"),
)

CUTTING_ORDERS: Final = OrderKindDefinition(
    kind=OrderKind.CUTTING,
    name="cutting",
    table_name="cutting_orders",
    required_fields=("inventory_number", "part_name", "quantity", "unit"),
    positive_quantity=True,
    backfill_weight=True,
)

# Manually entered plans land in the purchase table with a looser contract;
# per-record checks happen in ``jigorders.domain.manual_plans`` beforehand.
MANUAL_PLANS: Final = OrderKindDefinition(
    kind=OrderKind.PURCHASE,
    name="manual_plan",
    table_name="purchase_orders",
    required_fields=("inventory_number", "part_name", "unit"),
    positive_quantity=True,
)

_DEFINITIONS: Final[dict[OrderKind, OrderKindDefinition]] = {
    OrderKind.PURCHASE: PURCHASE_ORDERS,
    OrderKind.CUTTING: CUTTING_ORDERS,
}


def definition_for(kind: OrderKind | str) -> OrderKindDefinition:
    try:
        return _DEFINITIONS[OrderKind(kind)]
    except ValueError as exc:
        choices = ", ".join(member.value for member in OrderKind)
        raise ValueError(f"Unknown order kind {kind!r}; expected one of {choices}") from exc

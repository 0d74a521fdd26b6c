"""Persistence ports for order tables and the related entities they read."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime
    from uuid import UUID

    from jigorders.domain.model import (
        Candidate,
        PersistedOrder,
        PurchasablePart,
        StandardItem,
        ToolingMeta,
    )
    from jigorders.domain.reconciliation.kinds import IdentityKey


@dataclass(frozen=True, slots=True, kw_only=True)
class OrderPage:
    orders: list[PersistedOrder] = field(default_factory=list)
    total: int = 0
    page: int = 1
    page_size: int = 20


@dataclass(frozen=True, slots=True, kw_only=True)
class OrderSummary:
    total: int = 0
    pending: int = 0
    completed: int = 0
    total_weight: float = 0.0
    total_price: float = 0.0
    average_weight: float | None = None
    average_price: float | None = None


class OrderRepository(Protocol):
    """Reads and writes one order table.

    ``find_by_identity`` locks the matched row for the rest of the transaction
    where the backend supports row locks.
    """

    def find_by_identity(
        self, key: IdentityKey, values: tuple[str, ...]
    ) -> PersistedOrder | None: ...

    def get(self, order_id: UUID) -> PersistedOrder | None: ...

    def insert(self, candidate: Candidate, *, created_at: datetime) -> PersistedOrder: ...

    def update(
        self, order_id: UUID, candidate: Candidate, *, updated_at: datetime
    ) -> PersistedOrder: ...

    def set_status(
        self, order_id: UUID, status: str, *, updated_at: datetime
    ) -> PersistedOrder | None: ...

    def delete(self, order_ids: Sequence[UUID]) -> int: ...

    def page(
        self,
        *,
        page: int,
        page_size: int,
        search: str | None = None,
        status: str | None = None,
    ) -> OrderPage: ...

    def summary(self) -> OrderSummary: ...


class RelatedEntityReader(Protocol):
    """Best-effort lookups used by the backfill resolver.

    Implementations raise ``BackfillLookupError`` when the lookup itself fails;
    a missing row is ``None``.
    """

    def tooling_meta(self, tooling_id: str) -> ToolingMeta | None: ...

    def purchasable_part(self, part_id: str) -> PurchasablePart | None: ...

    def standard_item(self, child_item_id: str) -> StandardItem | None: ...

    def standard_item_by_name(self, tooling_id: str, name: str) -> StandardItem | None: ...

"""Repository implementations backed by SQLAlchemy Core connections."""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING, Any, Final

from sqlalchemy import ColumnElement, and_, case, delete, func, or_, select, update

from jigorders.adapters.sqlalchemy.mappings import (
    child_items_table,
    parts_info_table,
    tooling_info_table,
)
from jigorders.domain.errors import BackfillLookupError, PersistenceError, StorageError
from jigorders.domain.model import (
    CANDIDATE_FIELDS,
    OrderStatus,
    PersistedOrder,
    PurchasablePart,
    StandardItem,
    ToolingMeta,
)
from jigorders.domain.ports import OrderPage, OrderSummary
from jigorders.domain.reconciliation.diff import COMPARED_FIELDS
from jigorders.domain.reconciliation.kinds import IdentityKey

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence
    from datetime import datetime

    from sqlalchemy import Table
    from sqlalchemy.engine import Connection, RowMapping

    from jigorders.adapters.sqlalchemy.gateway import DatabaseGateway
    from jigorders.domain.model import Candidate

PERSISTED_FIELDS: Final[tuple[str, ...]] = (*CANDIDATE_FIELDS, "id", "created_date", "updated_date")
UPDATED_FIELDS: Final[tuple[str, ...]] = COMPARED_FIELDS
SEARCH_COLUMNS: Final[tuple[str, ...]] = (
    "inventory_number",
    "project_name",
    "part_name",
    "supplier",
)


def _order_from_row(row: RowMapping | Mapping[str, Any]) -> PersistedOrder:
    return PersistedOrder(**{name: row[name] for name in PERSISTED_FIELDS})


class SqlAlchemyOrderRepository:
    """Order table access bound to one connection (and its open transaction)."""

    def __init__(self, connection: Connection, table: Table) -> None:
        self.connection = connection
        self.table = table

    def _identity_conditions(
        self, key: IdentityKey, values: tuple[str, ...]
    ) -> list[ColumnElement[bool]]:
        c = self.table.c
        if key is IdentityKey.CHILD_ITEM:
            return [c.child_item_id == values[0]]
        if key is IdentityKey.PART:
            return [c.part_id == values[0]]
        if key is IdentityKey.TOOLING_PART:
            tooling_id, part_name = values
            return [c.tooling_id == tooling_id, c.part_name == part_name, c.part_id.is_(None)]
        return [c.inventory_number == values[0]]

    def find_by_identity(self, key: IdentityKey, values: tuple[str, ...]) -> PersistedOrder | None:
        stmt = (
            select(self.table)
            .where(*self._identity_conditions(key, values))
            .order_by(self.table.c.created_date)
            .limit(1)
            .with_for_update()
        )
        row = self.connection.execute(stmt).mappings().first()
        return _order_from_row(row) if row is not None else None

    def get(self, order_id: uuid.UUID) -> PersistedOrder | None:
        stmt = select(self.table).where(self.table.c.id == order_id)
        row = self.connection.execute(stmt).mappings().first()
        return _order_from_row(row) if row is not None else None

    def insert(self, candidate: Candidate, *, created_at: datetime) -> PersistedOrder:
        order_id = uuid.uuid4()
        values: dict[str, Any] = {name: getattr(candidate, name) for name in CANDIDATE_FIELDS}
        values.update(id=order_id, created_date=created_at, updated_date=created_at)
        self.connection.execute(self.table.insert().values(**values))
        return self._require(order_id)

    def update(
        self, order_id: uuid.UUID, candidate: Candidate, *, updated_at: datetime
    ) -> PersistedOrder:
        values: dict[str, Any] = {name: getattr(candidate, name) for name in UPDATED_FIELDS}
        values["updated_date"] = updated_at
        self.connection.execute(
            update(self.table).where(self.table.c.id == order_id).values(**values)
        )
        return self._require(order_id)

    def set_status(
        self, order_id: uuid.UUID, status: str, *, updated_at: datetime
    ) -> PersistedOrder | None:
        result = self.connection.execute(
            update(self.table)
            .where(self.table.c.id == order_id)
            .values(status=status, updated_date=updated_at)
        )
        if result.rowcount == 0:
            return None
        return self.get(order_id)

    def delete(self, order_ids: Sequence[uuid.UUID]) -> int:
        if not order_ids:
            return 0
        result = self.connection.execute(
            delete(self.table).where(self.table.c.id.in_(list(order_ids)))
        )
        return result.rowcount

    def page(
        self,
        *,
        page: int,
        page_size: int,
        search: str | None = None,
        status: str | None = None,
    ) -> OrderPage:
        c = self.table.c
        conditions: list[ColumnElement[bool]] = []
        if search:
            needle = search.strip().lower()
            conditions.append(
                or_(
                    *(
                        func.lower(c[name]).contains(needle, autoescape=True)
                        for name in SEARCH_COLUMNS
                    )
                )
            )
        if status:
            conditions.append(c.status == status)
        where = and_(True, *conditions)

        total = self.connection.execute(
            select(func.count()).select_from(self.table).where(where)
        ).scalar_one()
        stmt = (
            select(self.table)
            .where(where)
            .order_by(c.created_date.desc(), c.id)
            .limit(page_size)
            .offset((page - 1) * page_size)
        )
        rows = self.connection.execute(stmt).mappings().all()
        return OrderPage(
            orders=[_order_from_row(row) for row in rows],
            total=total,
            page=page,
            page_size=page_size,
        )

    def summary(self) -> OrderSummary:
        c = self.table.c
        stmt = select(
            func.count().label("total"),
            func.coalesce(
                func.sum(case((c.status == OrderStatus.PENDING.value, 1), else_=0)), 0
            ).label("pending"),
            func.coalesce(
                func.sum(case((c.status == OrderStatus.COMPLETED.value, 1), else_=0)), 0
            ).label("completed"),
            func.coalesce(func.sum(c.weight), 0.0).label("total_weight"),
            func.coalesce(func.sum(c.total_price), 0.0).label("total_price"),
            func.avg(c.weight).label("average_weight"),
            func.avg(c.total_price).label("average_price"),
        ).select_from(self.table)
        row = self.connection.execute(stmt).mappings().one()
        return OrderSummary(
            total=int(row["total"]),
            pending=int(row["pending"]),
            completed=int(row["completed"]),
            total_weight=float(row["total_weight"]),
            total_price=float(row["total_price"]),
            average_weight=_optional_float(row["average_weight"]),
            average_price=_optional_float(row["average_price"]),
        )

    def _require(self, order_id: uuid.UUID) -> PersistedOrder:
        order = self.get(order_id)
        if order is None:
            raise PersistenceError(f"Order {order_id} vanished during write")
        return order


def _optional_float(value: Any) -> float | None:
    return None if value is None else float(value)


class SqlAlchemyRelatedEntityReader:
    """Reads tooling, part and child-item rows through the gateway.

    Each lookup runs on its own pooled connection so a failure never poisons the
    candidate transaction that asked for it.
    """

    def __init__(self, gateway: DatabaseGateway) -> None:
        self.gateway = gateway

    def _first(self, stmt: Any) -> dict[str, Any] | None:
        try:
            rows = self.gateway.query(stmt.limit(1))
        except StorageError as exc:
            raise BackfillLookupError(str(exc)) from exc
        return rows[0] if rows else None

    def tooling_meta(self, tooling_id: str) -> ToolingMeta | None:
        row = self._first(select(tooling_info_table).where(tooling_info_table.c.id == tooling_id))
        if row is None:
            return None
        return ToolingMeta(
            id=row["id"],
            production_unit=row["production_unit"],
            applicant_name=row["recorder"],
        )

    def purchasable_part(self, part_id: str) -> PurchasablePart | None:
        row = self._first(select(parts_info_table).where(parts_info_table.c.id == part_id))
        if row is None:
            return None
        return PurchasablePart(
            id=row["id"],
            free_text_notes=row["remarks"],
            unit_weight=row["weight"],
        )

    def standard_item(self, child_item_id: str) -> StandardItem | None:
        row = self._first(select(child_items_table).where(child_items_table.c.id == child_item_id))
        return _standard_item(row)

    def standard_item_by_name(self, tooling_id: str, name: str) -> StandardItem | None:
        row = self._first(
            select(child_items_table).where(
                child_items_table.c.tooling_id == tooling_id,
                child_items_table.c.name == name,
            )
        )
        return _standard_item(row)


def _standard_item(row: Mapping[str, Any] | None) -> StandardItem | None:
    if row is None:
        return None
    return StandardItem(
        id=row["id"],
        tooling_id=row["tooling_id"],
        name=row["name"],
        required_date=row["required_date"],
    )

"""SQLAlchemy-backed unit of work: one connection and transaction per order table."""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal, Self

from jigorders.adapters.sqlalchemy.mappings import order_table_for
from jigorders.adapters.sqlalchemy.migrations import upgrade_head
from jigorders.adapters.sqlalchemy.repositories import SqlAlchemyOrderRepository

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Connection, RootTransaction

    from jigorders.adapters.sqlalchemy.gateway import DatabaseGateway
    from jigorders.domain.reconciliation.kinds import OrderKindDefinition


class StartupError(RuntimeError):
    """Raised when a unit of work is used outside its ``with`` block."""


def startup(gateway: DatabaseGateway, *, prewarm: bool = True) -> None:
    """Open the pool, migrate the schema and schedule the prewarm query."""

    upgrade_head(engine=gateway.open())
    if prewarm:
        gateway.prewarm()


def shutdown(gateway: DatabaseGateway) -> None:
    gateway.close()


class SqlAlchemyOrderUnitOfWork:
    """Unit of work around one order table.

    The transaction is rolled back on exit unless ``commit`` was called.
    """

    def __init__(self, gateway: DatabaseGateway, kind: OrderKindDefinition) -> None:
        self.gateway = gateway
        self.kind = kind
        self._connection: Connection | None = None
        self._transaction: RootTransaction | None = None
        self._orders: SqlAlchemyOrderRepository | None = None

    def __enter__(self) -> Self:
        if self._connection is not None:
            raise StartupError("Unit of work already entered")
        self._connection = self.gateway.engine.connect()
        self._transaction = self._connection.begin()
        self._orders = SqlAlchemyOrderRepository(
            self._connection, order_table_for(self.kind.table_name)
        )
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        try:
            self.rollback()
        finally:
            if self._connection is not None:
                self._connection.close()
            self._connection = None
            self._transaction = None
            self._orders = None
        return False

    @property
    def orders(self) -> SqlAlchemyOrderRepository:
        if self._orders is None:
            raise StartupError("Unit of work not entered")
        return self._orders

    def commit(self) -> None:
        if self._transaction is None:
            raise StartupError("Unit of work not entered")
        self._transaction.commit()

    def rollback(self) -> None:
        if self._transaction is not None and self._transaction.is_active:
            self._transaction.rollback()


if TYPE_CHECKING:
    from jigorders.domain.ports import OrderUnitOfWork

    def _check(uow: SqlAlchemyOrderUnitOfWork) -> OrderUnitOfWork:
        return uow

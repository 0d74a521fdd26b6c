"""Application orchestration entry points."""

from __future__ import annotations

import random
from datetime import UTC, datetime
from functools import partial
from logging import getLogger
from typing import TYPE_CHECKING, Any, Final, Self
from uuid import UUID

from jigorders.adapters.sqlalchemy.gateway import DatabaseGateway
from jigorders.adapters.sqlalchemy.mappings import order_table_for
from jigorders.adapters.sqlalchemy.repositories import (
    SqlAlchemyOrderRepository,
    SqlAlchemyRelatedEntityReader,
)
from jigorders.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyOrderUnitOfWork,
    shutdown,
    startup,
)
from jigorders.config import get_database_config, get_reconciliation_config, get_retry_policy
from jigorders.domain.errors import (
    BatchValidationError,
    OrderNotFoundError,
    PersistenceError,
    TransientStorageError,
)
from jigorders.domain.manual_plans import prepare_manual_plans
from jigorders.domain.model import is_blank
from jigorders.domain.reconciliation import (
    MANUAL_PLANS,
    FailureMode,
    ReconciliationEngine,
    definition_for,
)
from jigorders.responses import (
    ErrorCode,
    error_response,
    serialize_order,
    success_response,
    validation_failure,
)
from jigorders.schema import parse_manual_plans, parse_order_batch

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping, Sequence
    from types import TracebackType

    from sqlalchemy.engine import Connection

    from jigorders.domain.model import Candidate, OrderKind
    from jigorders.domain.reconciliation import (
        OrderKindDefinition,
        ReconciliationReport,
        RecordResult,
    )

log = getLogger(__name__)

MAX_PAGE_SIZE: Final[int] = 200


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _storage_failure(exc: TransientStorageError | PersistenceError) -> dict[str, Any]:
    if isinstance(exc, TransientStorageError):
        log.error("Storage unavailable: %s", exc)
        return error_response(str(exc), code=ErrorCode.STORAGE_UNAVAILABLE)
    log.error("Persistence failed: %s", exc)
    return error_response(str(exc), code=ErrorCode.PERSISTENCE_ERROR)


def _record_response(result: RecordResult, *, index: int | None = None) -> dict[str, Any]:
    entry: dict[str, Any] = {
        "index": result.index if index is None else index,
        "success": result.succeeded,
        "outcome": result.outcome.value,
    }
    if result.order is not None:
        entry["id"] = str(result.order.id)
    if result.error is not None:
        entry["error"] = result.error
    return entry


def _report_results(report: ReconciliationReport) -> list[dict[str, Any]]:
    entries = [_record_response(result) for result in report.results]
    entries.extend(
        {"index": index, "success": True, "outcome": "duplicate", "duplicate_of": kept}
        for index, kept in report.duplicate_of.items()
    )
    return sorted(entries, key=lambda entry: entry["index"])


class OrderService:
    """Owns the database gateway and exposes the order operations.

    Every public operation returns a response envelope instead of raising.
    """

    def __init__(
        self,
        gateway: DatabaseGateway,
        *,
        failure_mode: FailureMode = FailureMode.ISOLATE,
        clock: Callable[[], datetime] = _utcnow,
        rng: random.Random | None = None,
    ) -> None:
        self.gateway = gateway
        self.failure_mode = failure_mode
        self.clock = clock
        self.rng = rng or random.Random()

    @classmethod
    def from_environment(cls) -> Self:
        gateway = DatabaseGateway(get_database_config(), get_retry_policy())
        return cls(gateway, failure_mode=get_reconciliation_config().failure_mode)

    def start(self, *, prewarm: bool = True) -> None:
        startup(self.gateway, prewarm=prewarm)

    def close(self) -> None:
        shutdown(self.gateway)

    def __enter__(self) -> Self:
        self.start()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()

    # Reconciliation -----------------------------------------------------------

    def engine_for(
        self,
        definition: OrderKindDefinition,
        *,
        failure_mode: FailureMode | None = None,
    ) -> ReconciliationEngine:
        return ReconciliationEngine(
            kind=definition,
            unit_of_work_factory=partial(SqlAlchemyOrderUnitOfWork, self.gateway, definition),
            readers=SqlAlchemyRelatedEntityReader(self.gateway),
            failure_mode=failure_mode or self.failure_mode,
            run_attempt=self.gateway.retrying,
            clock=self.clock,
        )

    def reconcile(
        self, kind: OrderKind | str, candidates: Sequence[Candidate]
    ) -> ReconciliationReport:
        """Reconcile already-parsed candidates; raises domain errors."""

        return self.engine_for(definition_for(kind)).reconcile(candidates)

    def submit_orders(self, kind: OrderKind | str, payload: Mapping[str, Any]) -> dict[str, Any]:
        try:
            definition = definition_for(kind)
        except ValueError as exc:
            return error_response(str(exc), code=ErrorCode.VALIDATION_ERROR)
        try:
            candidates = parse_order_batch(payload)
            report = self.engine_for(definition).reconcile(candidates)
        except BatchValidationError as exc:
            log.warning("Rejected %s batch: %s", definition.name, exc)
            return validation_failure(exc)
        except (TransientStorageError, PersistenceError) as exc:
            return _storage_failure(exc)

        orders = [serialize_order(order) for order in report.orders]
        return success_response(
            data=orders,
            count=len(orders),
            stats=report.stats.as_dict(),
            results=_report_results(report),
        )

    def submit_manual_plans(self, payload: Mapping[str, Any]) -> dict[str, Any]:
        try:
            records = parse_manual_plans(payload)
        except BatchValidationError as exc:
            return validation_failure(exc)
        if not records:
            return error_response("No manual plans submitted", code=ErrorCode.VALIDATION_ERROR)

        prepared = prepare_manual_plans(records, now=self.clock(), rng=self.rng)
        results: dict[int, dict[str, Any]] = {
            plan.index: {"index": plan.index, "success": False, "error": plan.error}
            for plan in prepared
            if plan.candidate is None
        }
        accepted = [plan for plan in prepared if plan.candidate is not None]
        orders: list[dict[str, Any]] = []
        if accepted:
            engine = self.engine_for(MANUAL_PLANS, failure_mode=FailureMode.ISOLATE)
            try:
                report = engine.reconcile([plan.candidate for plan in accepted if plan.candidate])
            except BatchValidationError as exc:
                return validation_failure(exc)
            except (TransientStorageError, PersistenceError) as exc:
                return _storage_failure(exc)
            for result in report.results:
                submitted = accepted[result.index].index
                entry = _record_response(result, index=submitted)
                if result.order is not None:
                    entry["data"] = serialize_order(result.order)
                    orders.append(entry["data"])
                results[submitted] = entry
            for index, kept in report.duplicate_of.items():
                submitted = accepted[index].index
                results[submitted] = {
                    "index": submitted,
                    "success": True,
                    "outcome": "duplicate",
                    "duplicate_of": accepted[kept].index,
                }

        succeeded = sum(1 for entry in results.values() if entry["success"])
        log.info("Manual plans: %s of %s accepted", succeeded, len(records))
        return success_response(
            data=orders,
            count=succeeded,
            total=len(records),
            results=[results[index] for index in sorted(results)],
        )

    # Order maintenance --------------------------------------------------------

    def _with_orders[T](
        self, kind: OrderKind | str, work: Callable[[SqlAlchemyOrderRepository], T]
    ) -> T:
        table = order_table_for(definition_for(kind).table_name)

        def run(connection: Connection) -> T:
            return work(SqlAlchemyOrderRepository(connection, table))

        return self.gateway.run_in_transaction(run)

    def update_order_status(
        self, kind: OrderKind | str, order_id: str | UUID, status: str | None
    ) -> dict[str, Any]:
        if is_blank(status):
            return error_response("status is required", code=ErrorCode.VALIDATION_ERROR)
        try:
            parsed_id = order_id if isinstance(order_id, UUID) else UUID(str(order_id))
        except ValueError:
            return error_response(f"Invalid order id: {order_id}", code=ErrorCode.VALIDATION_ERROR)
        new_status = str(status).strip()

        def apply(orders: SqlAlchemyOrderRepository) -> dict[str, Any]:
            order = orders.set_status(parsed_id, new_status, updated_at=self.clock())
            if order is None:
                raise OrderNotFoundError(parsed_id)
            return serialize_order(order)

        try:
            data = self._with_orders(kind, apply)
        except ValueError as exc:
            return error_response(str(exc), code=ErrorCode.VALIDATION_ERROR)
        except OrderNotFoundError as exc:
            return error_response(str(exc), code=ErrorCode.NOT_FOUND)
        except (TransientStorageError, PersistenceError) as exc:
            return _storage_failure(exc)
        log.info("Order %s status -> %s", parsed_id, new_status)
        return success_response(data=data)

    def delete_orders(self, kind: OrderKind | str, order_ids: Iterable[str | UUID]) -> dict[str, Any]:
        valid: list[UUID] = []
        for raw in order_ids:
            try:
                valid.append(raw if isinstance(raw, UUID) else UUID(str(raw).strip()))
            except ValueError:
                log.debug("Ignoring invalid order id %r", raw)
        if not valid:
            return error_response("No valid order ids supplied", code=ErrorCode.VALIDATION_ERROR)
        try:
            deleted = self._with_orders(kind, lambda orders: orders.delete(valid))
        except ValueError as exc:
            return error_response(str(exc), code=ErrorCode.VALIDATION_ERROR)
        except (TransientStorageError, PersistenceError) as exc:
            return _storage_failure(exc)
        log.info("Deleted %s orders", deleted)
        return success_response(deleted=deleted)

    def list_orders(
        self,
        kind: OrderKind | str,
        *,
        page: int = 1,
        page_size: int = 20,
        search: str | None = None,
        status: str | None = None,
    ) -> dict[str, Any]:
        if page < 1 or not 1 <= page_size <= MAX_PAGE_SIZE:
            return error_response(
                f"page must be >= 1 and page_size between 1 and {MAX_PAGE_SIZE}",
                code=ErrorCode.VALIDATION_ERROR,
            )
        try:
            result = self._with_orders(
                kind,
                lambda orders: orders.page(
                    page=page,
                    page_size=page_size,
                    search=None if is_blank(search) else search,
                    status=None if is_blank(status) else status,
                ),
            )
        except ValueError as exc:
            return error_response(str(exc), code=ErrorCode.VALIDATION_ERROR)
        except (TransientStorageError, PersistenceError) as exc:
            return _storage_failure(exc)
        return success_response(
            data=[serialize_order(order, with_source=True) for order in result.orders],
            count=len(result.orders),
            pagination={
                "page": result.page,
                "page_size": result.page_size,
                "total": result.total,
                "pages": -(-result.total // result.page_size),
            },
        )

    def summarize_orders(self, kind: OrderKind | str) -> dict[str, Any]:
        try:
            summary = self._with_orders(kind, lambda orders: orders.summary())
        except ValueError as exc:
            return error_response(str(exc), code=ErrorCode.VALIDATION_ERROR)
        except (TransientStorageError, PersistenceError) as exc:
            return _storage_failure(exc)
        return success_response(
            data={
                "total": summary.total,
                "pending": summary.pending,
                "completed": summary.completed,
                "total_weight": summary.total_weight,
                "total_price": summary.total_price,
                "average_weight": summary.average_weight,
                "average_price": summary.average_price,
            }
        )

    def database_status(self) -> dict[str, Any]:
        status = self.gateway.ping()
        if not status.get("connected"):
            return error_response(
                "Database unavailable",
                code=ErrorCode.STORAGE_UNAVAILABLE,
                details=status,
            )
        return success_response(data=status)

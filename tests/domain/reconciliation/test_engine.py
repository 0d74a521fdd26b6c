from __future__ import annotations

from datetime import date

import pytest

from jigorders.domain.errors import BatchValidationError, PersistenceError, TransientStorageError
from jigorders.domain.model import PurchasablePart, ToolingMeta
from jigorders.domain.reconciliation.contracts import CandidateState, FailureMode
from jigorders.domain.reconciliation.engine import ReconciliationEngine
from jigorders.domain.reconciliation.kinds import (
    CUTTING_ORDERS,
    PURCHASE_ORDERS,
    OrderKindDefinition,
)
from tests.helpers.orders import (
    FakeOrderRepository,
    FakeReaders,
    FakeUnitOfWork,
    TickingClock,
    make_candidate,
    make_order,
)


def _engine(
    repository: FakeOrderRepository,
    readers: FakeReaders | None = None,
    *,
    kind: OrderKindDefinition = PURCHASE_ORDERS,
    failure_mode: FailureMode = FailureMode.ISOLATE,
) -> ReconciliationEngine:
    return ReconciliationEngine(
        kind=kind,
        unit_of_work_factory=lambda: FakeUnitOfWork(repository),
        readers=readers or FakeReaders(),
        failure_mode=failure_mode,
        clock=TickingClock(),
    )


def test_new_candidate_is_inserted_with_backfilled_fields() -> None:
    repository = FakeOrderRepository()
    readers = FakeReaders(
        tooling={"T1": ToolingMeta(id="T1", production_unit="Line 3", applicant_name="Wang")},
        parts={"P1": PurchasablePart(id="P1", free_text_notes="need by 2024-05-01")},
    )
    candidate = make_candidate(tooling_id="T1", part_id="P1", part_name="Bolt")

    report = _engine(repository, readers).reconcile([candidate])

    assert report.stats.as_dict() == {"inserted": 1, "updated": 0, "skipped": 0}
    order = report.orders[0]
    assert order.demand_date == date(2024, 5, 1)
    assert order.production_unit == "Line 3"
    assert order.applicant == "Wang"
    assert order.status == "pending"
    assert report.results[0].outcome is CandidateState.INSERTED


def test_reconciling_twice_is_idempotent() -> None:
    repository = FakeOrderRepository()
    readers = FakeReaders(tooling={"T1": ToolingMeta(id="T1", production_unit="Line 3")})
    batch = [
        make_candidate(child_item_id="C1", tooling_id="T1"),
        make_candidate(inventory_number="INV-2", part_id="P2"),
        make_candidate(inventory_number="INV-3"),
    ]
    engine = _engine(repository, readers)

    engine.reconcile(batch)
    writes_after_first = repository.writes
    second = engine.reconcile(batch)

    assert writes_after_first == 3
    assert repository.writes == 3
    assert second.stats.as_dict() == {"inserted": 0, "updated": 0, "skipped": 3}


def test_key_priority_does_not_touch_the_part_row() -> None:
    part_row = make_order(inventory_number="INV-P", part_id="Y", remark="original")
    repository = FakeOrderRepository([part_row])
    candidate = make_candidate(child_item_id="X", part_id="Y", remark="changed")

    report = _engine(repository).reconcile([candidate])

    assert report.stats.inserted == 1
    assert repository.rows[part_row.id].remark == "original"


def test_update_only_when_a_compared_field_changes() -> None:
    existing = make_order(child_item_id="C1", quantity=5)
    repository = FakeOrderRepository([existing])
    engine = _engine(repository)

    same = engine.reconcile([make_candidate(child_item_id="C1", quantity=5)])
    changed = engine.reconcile([make_candidate(child_item_id="C1", quantity=6)])

    assert same.stats.skipped == 1
    assert same.results[0].order == existing
    assert changed.stats.updated == 1
    assert repository.rows[existing.id].quantity == 6
    assert repository.rows[existing.id].updated_date is not None


def test_inventory_number_match_updates_plan_rows() -> None:
    existing = make_order(inventory_number="INV-9", remark="old")
    repository = FakeOrderRepository([existing])

    report = _engine(repository).reconcile([make_candidate(inventory_number="INV-9", remark="new")])

    assert report.stats.updated == 1
    assert repository.rows[existing.id].remark == "new"


def test_backfilled_values_never_regress_to_empty() -> None:
    existing = make_order(
        tooling_id="T1",
        child_item_id="C1",
        production_unit="Line 3",
        applicant="Wang",
    )
    repository = FakeOrderRepository([existing])
    readers = FakeReaders(failing={"tooling_meta", "standard_item", "standard_item_by_name"})
    candidate = make_candidate(tooling_id="T1", child_item_id="C1", quantity=9)

    _engine(repository, readers).reconcile([candidate])

    stored = repository.rows[existing.id]
    assert stored.quantity == 9
    assert stored.production_unit == "Line 3"
    assert stored.applicant == "Wang"


def test_in_batch_duplicates_produce_one_write() -> None:
    repository = FakeOrderRepository()
    batch = [
        make_candidate(part_id="P1", remark="first"),
        make_candidate(part_id="P1", remark="second"),
    ]

    report = _engine(repository).reconcile(batch)

    assert repository.writes == 1
    assert report.duplicates_dropped == 1
    assert report.duplicate_of == {1: 0}
    assert repository.inserted[0].remark == "first"


def test_invalid_batch_touches_nothing() -> None:
    repository = FakeOrderRepository()
    batch = [make_candidate(), make_candidate(inventory_number="INV-2", unit="")]

    with pytest.raises(BatchValidationError):
        _engine(repository).reconcile(batch)

    assert repository.lookups == []
    assert repository.writes == 0


def test_isolate_mode_records_failure_and_continues() -> None:
    repository = FakeOrderRepository()
    repository.fail_on_insert = {"INV-2"}
    batch = [make_candidate(), make_candidate(inventory_number="INV-2"), make_candidate(inventory_number="INV-3")]

    report = _engine(repository).reconcile(batch)

    assert report.stats.inserted == 2
    assert [result.outcome for result in report.results] == [
        CandidateState.INSERTED,
        CandidateState.FAILED,
        CandidateState.INSERTED,
    ]
    assert report.failures[0].error == "duplicate key for INV-2"


def test_fail_fast_mode_aborts_the_rest_of_the_batch() -> None:
    repository = FakeOrderRepository()
    repository.fail_on_insert = {"INV-2"}
    batch = [make_candidate(), make_candidate(inventory_number="INV-2"), make_candidate(inventory_number="INV-3")]

    with pytest.raises(PersistenceError):
        _engine(repository, failure_mode=FailureMode.FAIL_FAST).reconcile(batch)

    assert [order.inventory_number for order in repository.inserted] == ["INV-1"]


def test_transient_failures_always_abort() -> None:
    repository = FakeOrderRepository()

    def unavailable(_work: object) -> object:
        raise TransientStorageError("database unavailable")

    engine = _engine(repository)
    engine.run_attempt = unavailable  # type: ignore[assignment]

    with pytest.raises(TransientStorageError):
        engine.reconcile([make_candidate()])


def test_run_attempt_wraps_each_candidate() -> None:
    repository = FakeOrderRepository()
    attempts: list[int] = []

    def counting(work):  # noqa: ANN001, ANN202
        attempts.append(1)
        return work()

    engine = _engine(repository)
    engine.run_attempt = counting

    engine.reconcile([make_candidate(), make_candidate(inventory_number="INV-2")])

    assert len(attempts) == 2


def test_cutting_orders_backfill_weight() -> None:
    repository = FakeOrderRepository()
    readers = FakeReaders(parts={"P1": PurchasablePart(id="P1", unit_weight=1.25)})
    candidate = make_candidate(project_name=None, part_id="P1", quantity=4)

    report = _engine(repository, readers, kind=CUTTING_ORDERS).reconcile([candidate])

    assert report.orders[0].weight == 5.0

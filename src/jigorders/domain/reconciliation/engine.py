"""Reconcile batches of candidate order lines against one order table."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from functools import partial
from logging import getLogger
from typing import TYPE_CHECKING

from jigorders.domain.errors import PersistenceError
from jigorders.domain.model import DEFAULT_STATUS, is_blank

from .backfill import BackfillResolver
from .contracts import (
    CandidateState,
    FailureMode,
    ReconciliationReport,
    RecordResult,
)
from .deduplicate import deduplicate_candidates
from .diff import changed_fields
from .resolve import resolve_candidate
from .validate import validate_batch

if TYPE_CHECKING:
    from collections.abc import Sequence

    from jigorders.domain.model import Candidate
    from jigorders.domain.ports import OrderUnitOfWorkFactory, RelatedEntityReader

    from .kinds import OrderKindDefinition

log = getLogger(__name__)

type AttemptRunner = Callable[[Callable[[], RecordResult]], RecordResult]


def _run_once(work: Callable[[], RecordResult]) -> RecordResult:
    return work()


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(slots=True)
class ReconciliationEngine:
    """Validate, deduplicate and apply a batch, one transaction per candidate.

    ``run_attempt`` wraps each candidate transaction; storage adapters pass their
    retry policy here so a dropped connection replays the whole read-modify-write.
    """

    kind: OrderKindDefinition
    unit_of_work_factory: OrderUnitOfWorkFactory
    readers: RelatedEntityReader
    failure_mode: FailureMode = FailureMode.ISOLATE
    run_attempt: AttemptRunner = field(default=_run_once)
    clock: Callable[[], datetime] = field(default=_utcnow)

    def reconcile(self, candidates: Sequence[Candidate]) -> ReconciliationReport:
        validate_batch(candidates, kind=self.kind)
        deduplication = deduplicate_candidates(candidates)
        if deduplication.dropped:
            log.info(
                "Dropped %s duplicate %s candidates within the batch",
                deduplication.dropped,
                self.kind.name,
            )

        report = ReconciliationReport(kind=self.kind.kind)
        report.duplicate_of = dict(deduplication.representative_by_index)
        backfill = BackfillResolver(self.readers, backfill_weight=self.kind.backfill_weight)

        for index, candidate in deduplication.survivors:
            try:
                result = self.run_attempt(partial(self._apply, index, candidate, backfill))
            except PersistenceError as exc:
                if self.failure_mode is FailureMode.FAIL_FAST:
                    raise
                log.warning("Candidate %s (%s) failed: %s", index, self.kind.name, exc)
                result = RecordResult(index=index, outcome=CandidateState.FAILED, error=str(exc))
            report.record(result)

        log.info(
            "Reconciled %s %s candidates: inserted=%s, updated=%s, skipped=%s, failed=%s",
            len(candidates),
            self.kind.name,
            report.stats.inserted,
            report.stats.updated,
            report.stats.skipped,
            len(report.failures),
        )
        return report

    def _apply(self, index: int, candidate: Candidate, backfill: BackfillResolver) -> RecordResult:
        self._transition(index, CandidateState.RESOLVING)
        with self.unit_of_work_factory() as uow:
            resolution = resolve_candidate(candidate, uow.orders, keys=self.kind.identity_keys)
            target = resolution.target

            self._transition(index, CandidateState.BACKFILLING)
            resolved = backfill(candidate, existing=target)

            if target is None:
                if is_blank(resolved.status):
                    resolved = resolved.with_values(status=DEFAULT_STATUS)
                order = uow.orders.insert(resolved, created_at=self.clock())
                uow.commit()
                self._transition(index, CandidateState.INSERTED)
                return RecordResult(index=index, outcome=CandidateState.INSERTED, order=order)

            self._transition(index, CandidateState.DIFFING)
            differences = changed_fields(target, resolved)
            if not differences:
                uow.rollback()
                self._transition(index, CandidateState.SKIPPED)
                return RecordResult(index=index, outcome=CandidateState.SKIPPED, order=target)

            log.debug("Candidate %s changes %s on %s", index, ", ".join(differences), target.id)
            order = uow.orders.update(target.id, resolved, updated_at=self.clock())
            uow.commit()
            self._transition(index, CandidateState.UPDATED)
            return RecordResult(index=index, outcome=CandidateState.UPDATED, order=order)

    def _transition(self, index: int, state: CandidateState) -> None:
        log.debug("Candidate %s (%s) -> %s", index, self.kind.name, state.value)

"""Result types shared by the reconciliation stages."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from jigorders.domain.model import OrderKind, PersistedOrder

    from .kinds import IdentityKey


class FailureMode(StrEnum):
    """What to do when one candidate fails with a non-transient storage error."""

    ISOLATE = "isolate"
    FAIL_FAST = "fail_fast"


class CandidateState(StrEnum):
    NEW = "new"
    RESOLVING = "resolving"
    BACKFILLING = "backfilling"
    DIFFING = "diffing"
    INSERTED = "inserted"
    UPDATED = "updated"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class Resolution:
    """Outcome of the key resolver.

    ``consulted_key`` is the single identity key that was looked up (``None`` when
    the candidate carried none); ``target`` is the matched row, if any.
    """

    consulted_key: IdentityKey | None
    target: PersistedOrder | None = None

    @property
    def is_new(self) -> bool:
        return self.target is None


@dataclass(frozen=True, slots=True)
class RecordResult:
    index: int
    outcome: CandidateState
    order: PersistedOrder | None = None
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.outcome is not CandidateState.FAILED


@dataclass(slots=True)
class ReconciliationStats:
    inserted: int = 0
    updated: int = 0
    skipped: int = 0

    def as_dict(self) -> dict[str, int]:
        return {"inserted": self.inserted, "updated": self.updated, "skipped": self.skipped}


@dataclass(slots=True)
class ReconciliationReport:
    kind: OrderKind
    stats: ReconciliationStats = field(default_factory=ReconciliationStats)
    results: list[RecordResult] = field(default_factory=list)
    # dropped duplicate index -> index of the candidate that was kept
    duplicate_of: dict[int, int] = field(default_factory=dict)

    def record(self, result: RecordResult) -> None:
        self.results.append(result)
        if result.outcome is CandidateState.INSERTED:
            self.stats.inserted += 1
        elif result.outcome is CandidateState.UPDATED:
            self.stats.updated += 1
        elif result.outcome is CandidateState.SKIPPED:
            self.stats.skipped += 1

    @property
    def duplicates_dropped(self) -> int:
        return len(self.duplicate_of)

    @property
    def orders(self) -> list[PersistedOrder]:
        return [result.order for result in self.results if result.order is not None]

    @property
    def failures(self) -> list[RecordResult]:
        return [result for result in self.results if not result.succeeded]

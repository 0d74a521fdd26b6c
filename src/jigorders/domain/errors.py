"""Errors raised by the order reconciliation domain and its storage adapters."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence
    from uuid import UUID


class ReconciliationError(Exception):
    """Base class for reconciliation failures."""


@dataclass(frozen=True, slots=True)
class ValidationProblem:
    """One rejected record in a submitted batch."""

    index: int
    message: str
    fields: tuple[str, ...] = ()

    def as_dict(self) -> dict[str, object]:
        return {"index": self.index, "message": self.message, "fields": list(self.fields)}


class BatchValidationError(ReconciliationError):
    """Raised when a batch is rejected before anything is persisted."""

    def __init__(self, message: str, problems: Sequence[ValidationProblem] = ()) -> None:
        super().__init__(message)
        self.problems: tuple[ValidationProblem, ...] = tuple(problems)


class StorageError(ReconciliationError):
    """Base class for storage failures surfaced by the persistence gateway."""


class TransientStorageError(StorageError):
    """Raised once retries against an unreachable database are exhausted."""


class PersistenceError(StorageError):
    """Raised when a statement fails for a non-transient reason (constraints, SQL errors)."""


class BackfillLookupError(ReconciliationError):
    """Raised by related-entity readers; the backfill resolver logs and ignores it."""


class OrderNotFoundError(ReconciliationError):
    def __init__(self, order_id: UUID | str) -> None:
        super().__init__(f"Order {order_id} not found")
        self.order_id = order_id

"""Order reconciliation: validate, deduplicate, resolve, backfill, diff, persist."""

from __future__ import annotations

from .backfill import BackfillResolver, first_date_in_text
from .contracts import (
    CandidateState,
    FailureMode,
    ReconciliationReport,
    ReconciliationStats,
    RecordResult,
    Resolution,
)
from .deduplicate import DeduplicationResult, deduplicate_candidates
from .diff import COMPARED_FIELDS, changed, changed_fields
from .engine import ReconciliationEngine
from .kinds import (
    CUTTING_ORDERS,
    MANUAL_PLANS,
    PURCHASE_ORDERS,
    IdentityKey,
    OrderKindDefinition,
    definition_for,
)
from .resolve import resolve_candidate
from .validate import validate_batch

__all__ = [
    "COMPARED_FIELDS",
    "CUTTING_ORDERS",
    "MANUAL_PLANS",
    "PURCHASE_ORDERS",
    "BackfillResolver",
    "CandidateState",
    "DeduplicationResult",
    "FailureMode",
    "IdentityKey",
    "OrderKindDefinition",
    "ReconciliationEngine",
    "ReconciliationReport",
    "ReconciliationStats",
    "RecordResult",
    "Resolution",
    "changed",
    "changed_fields",
    "deduplicate_candidates",
    "definition_for",
    "first_date_in_text",
    "resolve_candidate",
    "validate_batch",
]

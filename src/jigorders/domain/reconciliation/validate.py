"""Whole-batch validation, run before anything touches storage."""

from __future__ import annotations

from typing import TYPE_CHECKING

from jigorders.domain.errors import BatchValidationError, ValidationProblem
from jigorders.domain.model import is_blank

if TYPE_CHECKING:
    from collections.abc import Sequence

    from jigorders.domain.model import Candidate

    from .kinds import OrderKindDefinition


def find_problems(
    candidates: Sequence[Candidate], *, kind: OrderKindDefinition
) -> list[ValidationProblem]:
    problems: list[ValidationProblem] = []
    for index, candidate in enumerate(candidates):
        missing = tuple(
            name for name in kind.required_fields if is_blank(getattr(candidate, name))
        )
        if missing:
            problems.append(
                ValidationProblem(
                    index=index,
                    message=f"missing required fields: {', '.join(missing)}",
                    fields=missing,
                )
            )
            continue
        quantity = candidate.quantity
        if quantity is None:
            continue
        if quantity < 0 or (kind.positive_quantity and quantity == 0):
            problems.append(
                ValidationProblem(
                    index=index,
                    message="quantity must be positive"
                    if kind.positive_quantity
                    else "quantity must not be negative",
                    fields=("quantity",),
                )
            )
    return problems


def validate_batch(candidates: Sequence[Candidate], *, kind: OrderKindDefinition) -> None:
    """Raise ``BatchValidationError`` if the batch cannot be reconciled as a whole."""

    if not candidates:
        raise BatchValidationError(f"No {kind.name} orders submitted")
    problems = find_problems(candidates, kind=kind)
    if problems:
        raise BatchValidationError(
            f"{len(problems)} of {len(candidates)} {kind.name} orders are incomplete",
            problems,
        )

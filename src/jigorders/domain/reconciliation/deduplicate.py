"""Collapse repeated candidates within one submitted batch."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from jigorders.domain.model import is_blank

if TYPE_CHECKING:
    from collections.abc import Sequence

    from jigorders.domain.model import Candidate

type DedupKey = tuple[str | None, str | None]


@dataclass(slots=True)
class DeduplicationResult:
    survivors: list[tuple[int, Candidate]] = field(default_factory=list)
    # dropped index -> index of the surviving first occurrence
    representative_by_index: dict[int, int] = field(default_factory=dict)

    @property
    def dropped(self) -> int:
        return len(self.representative_by_index)


def dedup_key(candidate: Candidate) -> DedupKey:
    inventory_number = None if is_blank(candidate.inventory_number) else candidate.inventory_number
    part_id = None if is_blank(candidate.part_id) else candidate.part_id
    return inventory_number, part_id


def deduplicate_candidates(candidates: Sequence[Candidate]) -> DeduplicationResult:
    """Keep the first candidate for every ``(inventory_number, part_id)`` pair."""

    result = DeduplicationResult()
    first_seen: dict[DedupKey, int] = {}
    for index, candidate in enumerate(candidates):
        key = dedup_key(candidate)
        representative = first_seen.get(key)
        if representative is not None:
            result.representative_by_index[index] = representative
            continue
        first_seen[key] = index
        result.survivors.append((index, candidate))
    return result

"""Fill derived order fields from the candidate, the stored row or related entities."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date
from logging import getLogger
from typing import TYPE_CHECKING, Final

from jigorders.domain.errors import BackfillLookupError
from jigorders.domain.model import is_blank

if TYPE_CHECKING:
    from collections.abc import Callable

    from jigorders.domain.model import Candidate, PersistedOrder, ToolingMeta
    from jigorders.domain.ports import RelatedEntityReader

log = getLogger(__name__)

# Written by older clients instead of leaving the column empty.
UNKNOWN_PRODUCTION_UNIT: Final[str] = "未知单位"
UNKNOWN_APPLICANT: Final[str] = "未知录入人"
PLACEHOLDER_VALUES: Final[frozenset[str]] = frozenset({UNKNOWN_PRODUCTION_UNIT, UNKNOWN_APPLICANT})

DATE_IN_TEXT: Final[re.Pattern[str]] = re.compile(r"\d{4}-\d{2}-\d{2}")


def is_empty(value: object) -> bool:
    if is_blank(value):
        return True
    return isinstance(value, str) and value.strip() in PLACEHOLDER_VALUES


def first_date_in_text(text: str | None) -> date | None:
    if not text:
        return None
    match = DATE_IN_TEXT.search(text)
    if match is None:
        return None
    try:
        return date.fromisoformat(match.group(0))
    except ValueError:
        return None


def _first_present[T](*values: T | None) -> T | None:
    for value in values:
        if not is_empty(value):
            return value
    return None


@dataclass(slots=True)
class BackfillResolver:
    """Resolve ``demand_date``, ``production_unit`` and ``applicant`` (and ``weight``).

    Lookups are best effort: misses and ``BackfillLookupError`` leave the field unset.
    """

    readers: RelatedEntityReader
    backfill_weight: bool = False

    def __call__(self, candidate: Candidate, *, existing: PersistedOrder | None = None) -> Candidate:
        demand_date = _first_present(
            candidate.demand_date,
            candidate.required_date,
            existing.demand_date if existing else None,
        )
        if demand_date is None:
            demand_date = self._lookup_demand_date(candidate)

        production_unit = _first_present(
            candidate.production_unit,
            existing.production_unit if existing else None,
        )
        applicant = _first_present(
            candidate.applicant,
            existing.applicant if existing else None,
        )
        if (production_unit is None or applicant is None) and not is_blank(candidate.tooling_id):
            tooling = self._tooling(str(candidate.tooling_id))
            if tooling is not None:
                if production_unit is None:
                    production_unit = _first_present(tooling.production_unit)
                if applicant is None:
                    applicant = _first_present(tooling.applicant_name)
        if existing is not None:
            # A stored placeholder is only replaced by a real value, never cleared.
            if production_unit is None and not is_blank(existing.production_unit):
                production_unit = existing.production_unit
            if applicant is None and not is_blank(existing.applicant):
                applicant = existing.applicant

        changes: dict[str, object] = {
            "demand_date": demand_date,
            "production_unit": production_unit,
            "applicant": applicant,
        }
        if self.backfill_weight:
            changes["weight"] = self._resolve_weight(candidate, existing)
        return candidate.with_values(**changes)

    def _lookup_demand_date(self, candidate: Candidate) -> date | None:
        if not is_blank(candidate.part_id):
            part = self._guard("parts_info", candidate.part_id, self.readers.purchasable_part)
            found = first_date_in_text(part.free_text_notes) if part else None
            if found is not None:
                return found
        if not is_blank(candidate.child_item_id):
            item = self._guard("child_items", candidate.child_item_id, self.readers.standard_item)
            if item is not None and item.required_date is not None:
                return item.required_date
        if not is_blank(candidate.tooling_id) and not is_blank(candidate.part_name):
            tooling_id = str(candidate.tooling_id)
            part_name = str(candidate.part_name)
            try:
                item = self.readers.standard_item_by_name(tooling_id, part_name)
            except BackfillLookupError as exc:
                log.warning(
                    "child_items lookup for %s/%s failed: %s", tooling_id, part_name, exc
                )
                item = None
            if item is not None and item.required_date is not None:
                return item.required_date
        return None

    def _resolve_weight(self, candidate: Candidate, existing: PersistedOrder | None) -> float | None:
        weight = _first_present(candidate.weight, existing.weight if existing else None)
        if weight is not None:
            return weight
        quantity = candidate.quantity
        if is_blank(candidate.part_id) or quantity is None or quantity <= 0:
            return None
        part = self._guard("parts_info", candidate.part_id, self.readers.purchasable_part)
        if part is None or part.unit_weight is None:
            return None
        return round(part.unit_weight * quantity, 3)

    def _tooling(self, tooling_id: str) -> ToolingMeta | None:
        return self._guard("tooling_info", tooling_id, self.readers.tooling_meta)

    @staticmethod
    def _guard[T](table: str, key: object, lookup: Callable[[str], T | None]) -> T | None:
        try:
            return lookup(str(key))
        except BackfillLookupError as exc:
            log.warning("%s lookup for %s failed: %s", table, key, exc)
            return None

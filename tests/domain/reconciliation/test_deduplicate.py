from __future__ import annotations

from jigorders.domain.reconciliation.deduplicate import deduplicate_candidates
from tests.helpers.orders import make_candidate


def test_first_occurrence_wins() -> None:
    first = make_candidate(inventory_number="INV-1", part_id="P1", remark="first")
    second = make_candidate(inventory_number="INV-1", part_id="P1", remark="second")
    other = make_candidate(inventory_number="INV-1", part_id="P2")

    result = deduplicate_candidates([first, second, other])

    assert [index for index, _ in result.survivors] == [0, 2]
    assert result.survivors[0][1].remark == "first"
    assert result.representative_by_index == {1: 0}
    assert result.dropped == 1


def test_blank_and_missing_part_ids_share_a_key() -> None:
    result = deduplicate_candidates(
        [make_candidate(part_id=None), make_candidate(part_id="")]
    )

    assert result.dropped == 1


def test_distinct_inventory_numbers_are_kept() -> None:
    result = deduplicate_candidates(
        [make_candidate(inventory_number="A"), make_candidate(inventory_number="B")]
    )

    assert result.dropped == 0
    assert len(result.survivors) == 2

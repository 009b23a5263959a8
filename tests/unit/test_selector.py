"""
Tests for review selection.
"""

import pytest
from datetime import datetime, timedelta
from unittest.mock import MagicMock

from study_engine.exceptions import StoreUnavailableError
from study_engine.schemas import Concept, LearningRecord
from study_engine.selector import ReviewSelector, count_reviewable, select_reviewable

NOW = datetime(2026, 3, 10, 9, 0)


def concepts(*ids):
    return [Concept(id=concept_id, notebook_id="nb1") for concept_id in ids]


def record(concept_id, days_until_due):
    return LearningRecord(
        concept_id=concept_id,
        notebook_id="nb1",
        next_review_date=NOW + timedelta(days=days_until_due)
    )


def test_partition_new_and_due():
    """Test that concepts without records are new and past records are due."""
    selection = select_reviewable(
        concepts("a", "b", "c", "d"),
        [record("b", -1), record("c", 3), record("d", 0)],
        NOW
    )

    assert [c.id for c in selection.new_concepts] == ["a"]
    assert [r.concept_id for r in selection.due_records] == ["b", "d"]


def test_due_later_today_counts():
    """Test that the comparison ignores the time of day."""
    later_today = LearningRecord(concept_id="a", next_review_date=NOW.replace(hour=23, minute=59))
    selection = select_reviewable(concepts("a"), [later_today], NOW)
    assert [r.concept_id for r in selection.due_records] == ["a"]


def test_new_and_due_are_disjoint():
    records = [record("a", -2), record("b", 5), record("c", 1)]
    selection = select_reviewable(concepts("a", "b", "c", "e"), records, NOW, min_batch=10)

    new_ids = {c.id for c in selection.new_concepts}
    due_ids = {r.concept_id for r in selection.due_records}
    assert not new_ids & due_ids


def test_backfill_with_nearest_future_record():
    """Test that nothing due still yields the closest upcoming concept."""
    selection = select_reviewable(
        concepts("a", "b", "c"),
        [record("a", 9), record("b", 2), record("c", 4)],
        NOW
    )

    assert selection.new_concepts == []
    assert [r.concept_id for r in selection.due_records] == ["b"]


def test_backfill_respects_min_batch():
    selection = select_reviewable(
        concepts("a", "b", "c"),
        [record("a", 9), record("b", 2), record("c", 4)],
        NOW,
        min_batch=2
    )
    assert [r.concept_id for r in selection.due_records] == ["b", "c"]


def test_no_backfill_without_records():
    assert select_reviewable([], [], NOW).total == 0


@pytest.mark.parametrize("notebook, records", [
    (concepts("a", "b", "c"), []),
    (concepts("a", "b"), [record("a", -1), record("b", 2)]),
    (concepts("a", "b"), [record("a", 3), record("b", 2)]),
    (concepts(), [record("x", 4)]),
    (concepts("a"), [record("a", 0), record("z", -3)]),
])
def test_count_matches_selection(notebook, records):
    selection = select_reviewable(notebook, records, NOW)

    assert count_reviewable(notebook, records, NOW) == selection.total
    if notebook or records:
        assert selection.total >= min(1, len(notebook))


def test_store_bound_select_orders_due_first():
    content = MagicMock()
    content.list_concepts.return_value = concepts("a", "b", "c", "d")
    record_store = MagicMock()
    record_store.get_all.return_value = [record("c", -1), record("b", 6), record("d", -4)]

    selected = ReviewSelector(record_store, content).select("u1", "nb1", NOW)

    assert [c.id for c in selected] == ["d", "c", "a"]
    record_store.delete.assert_not_called()


def test_orphaned_due_records_are_deleted():
    """Test that due records with no live concept get cleaned up."""
    content = MagicMock()
    content.list_concepts.return_value = concepts("a")
    record_store = MagicMock()
    record_store.get_all.return_value = [record("gone1", -1), record("gone2", 0)]

    selected = ReviewSelector(record_store, content).select("u1", "nb1", NOW)

    assert [c.id for c in selected] == ["a"]
    deleted = [call.args[1] for call in record_store.delete.call_args_list]
    assert deleted == ["gone1", "gone2"]


def test_orphan_cleanup_failure_is_not_raised():
    content = MagicMock()
    content.list_concepts.return_value = []
    record_store = MagicMock()
    record_store.get_all.return_value = [record("gone", -1)]
    record_store.delete.side_effect = StoreUnavailableError("down")

    assert ReviewSelector(record_store, content).select("u1", "nb1", NOW) == []


def test_read_failure_yields_empty_selection():
    content = MagicMock()
    content.list_concepts.side_effect = StoreUnavailableError("down")
    selector = ReviewSelector(MagicMock(), content)

    assert selector.select("u1", "nb1", NOW) == []
    assert selector.count("u1", "nb1", NOW) == 0


def test_sql_stores_round_trip(stores, make_notebook):
    """Test the selector against the SQLAlchemy-backed stores."""
    make_notebook("nb1", ids=["a", "b"])
    stores.records.put("u1", "b", record("b", -1))
    stores.records.put("u1", "orphan", record("orphan", 10))

    selector = ReviewSelector(stores.records, stores.content)

    assert [c.id for c in selector.select("u1", "nb1", NOW)] == ["b", "a"]
    assert selector.count("u1", "nb1", NOW) == 2

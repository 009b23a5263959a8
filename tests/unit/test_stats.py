"""
Tests for learning statistics and streak bookkeeping.
"""

from datetime import datetime, timedelta

from study_engine.metrics import SessionMetrics, sanitize
from study_engine.schemas import LearningRecord, ResponseQuality, UserStudyStats
from study_engine.stats import advance_streak, learning_stats, next_review_date

NOW = datetime(2026, 3, 10, 9, 0)


def make_record(concept_id, days_until_review, ease_factor=2.5, interval=1):
    return LearningRecord(
        concept_id=concept_id,
        notebook_id="nb1",
        ease_factor=ease_factor,
        interval=interval,
        next_review_date=NOW + timedelta(days=days_until_review)
    )


def test_learning_stats_counts_due_records():
    records = [
        make_record("a", -2, ease_factor=2.0, interval=4),
        make_record("b", 0, ease_factor=2.5, interval=1),
        make_record("c", 1, ease_factor=3.0, interval=1),
        make_record("d", 5, ease_factor=2.5, interval=6),
    ]

    stats = learning_stats(records, NOW)

    assert stats.total_concepts == 4
    assert stats.ready_for_review == 2
    assert stats.due_today == 1
    assert stats.due_tomorrow == 1
    assert stats.average_ease_factor == 2.5
    assert stats.average_interval == 3


def test_learning_stats_without_records():
    stats = learning_stats([], NOW)

    assert stats.total_concepts == 0
    assert stats.ready_for_review == 0
    assert stats.average_ease_factor == 2.5
    assert stats.average_interval == 1


def test_next_review_date():
    assert next_review_date([], NOW) is None
    assert next_review_date([make_record("a", 3), make_record("b", 0)], NOW) == NOW
    assert next_review_date([make_record("a", 3), make_record("b", 2)], NOW) == NOW + timedelta(days=2)


def test_streak_starts_extends_and_resets():
    first = advance_streak(None, NOW)
    assert first["current_streak"] == 1
    assert first["longest_streak"] == 1

    stats = UserStudyStats(user_id="u1", current_streak=3, longest_streak=4, last_study_date=NOW)

    assert advance_streak(stats, NOW + timedelta(hours=5)) == {}

    next_day = advance_streak(stats, NOW + timedelta(days=1))
    assert next_day["current_streak"] == 4
    assert next_day["longest_streak"] == 4

    after_gap = advance_streak(stats, NOW + timedelta(days=3))
    assert after_gap["current_streak"] == 1
    assert after_gap["longest_streak"] == 4


def test_sanitize_drops_nulls():
    payload = {"a": 1, "b": None, "c": {"d": None, "e": [1, None, {"f": None}]}}

    assert sanitize(payload) == {"a": 1, "c": {"e": [1, {}]}}


def test_final_verdict_wins():
    metrics = SessionMetrics(total_concepts=2, start_time=NOW)
    metrics.record("a", ResponseQuality.REVIEW_LATER)
    metrics.record("b", ResponseQuality.MASTERED)
    metrics.record("a", ResponseQuality.MASTERED)

    assert metrics.concepts_reviewed == 3
    assert metrics.mastered == 2
    assert metrics.reviewing == 1
    assert metrics.concepts_dominados == 2
    assert metrics.conceptos_no_dominados == 0

    results = {r["conceptId"]: r for r in metrics.concept_results()}
    assert results["a"]["firstQuality"] == "review_later"
    assert results["a"]["mastered"] is True

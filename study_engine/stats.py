from datetime import datetime, timedelta
from typing import Any, Dict, Optional, Sequence

from study_engine.schemas import LearningRecord, LearningStats, UserStudyStats
from study_engine.sm3 import INITIAL_EASE_FACTOR, SM3Algorithm


def learning_stats(records: Sequence[LearningRecord], reference_time: Optional[datetime] = None) -> LearningStats:
    """Summary of a user's learning records for one notebook"""
    reference_time = reference_time or datetime.now()
    today = reference_time.date()
    tomorrow = today + timedelta(days=1)

    total = len(records)
    return LearningStats(
        total_concepts=total,
        ready_for_review=sum(1 for r in records if SM3Algorithm.is_due_for_review(r, today)),
        due_today=sum(1 for r in records if r.next_review_date.date() == today),
        due_tomorrow=sum(1 for r in records if r.next_review_date.date() == tomorrow),
        average_ease_factor=sum(r.ease_factor for r in records) / total if total else INITIAL_EASE_FACTOR,
        average_interval=sum(r.interval for r in records) / total if total else 1,
    )


def next_review_date(records: Sequence[LearningRecord], reference_time: Optional[datetime] = None) -> Optional[datetime]:
    """
    When the next smart study becomes worthwhile: now if anything is due,
    otherwise the closest future review, None without records.
    """
    if not records:
        return None
    reference_time = reference_time or datetime.now()
    if any(SM3Algorithm.is_due_for_review(r, reference_time.date()) for r in records):
        return reference_time
    return min(r.next_review_date for r in records)


def advance_streak(stats: Optional[UserStudyStats], reference_time: datetime) -> Dict[str, Any]:
    """
    Streak fields after studying at `reference_time`.
    Same day keeps the streak, the next day extends it, a gap restarts it.
    """
    current = stats.current_streak if stats else 0
    longest = stats.longest_streak if stats else 0
    last = stats.last_study_date if stats else None

    if last is None:
        current = 1
    else:
        gap = (reference_time.date() - last.date()).days
        if gap == 0:
            return {}
        current = current + 1 if gap == 1 else 1

    return {
        "current_streak": current,
        "longest_streak": max(longest, current),
        "last_study_date": reference_time,
    }

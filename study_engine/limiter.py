"""
Per-user, per-notebook usage gates.

free study: once a day, smart study: once a day, quiz: once every 7 days.
Gates fail open when the limits store cannot be read; usage writes are
best-effort.
"""

from datetime import date, datetime, timedelta
from typing import Any, Callable, Dict, Optional

from study_engine.exceptions import StoreUnavailableError
from study_engine.logging import get_logger
from study_engine.schemas import NotebookLimits
from study_engine.stores import LimitsStore

logger = get_logger(__name__)

QUIZ_COOLDOWN_DAYS = 7


def start_of_day(moment: datetime) -> datetime:
    return datetime.combine(moment.date(), datetime.min.time())


def next_day(moment: datetime) -> datetime:
    """Local midnight following the given moment"""
    return start_of_day(moment) + timedelta(days=1)


def week_start(moment: datetime) -> datetime:
    """Midnight of the Sunday starting the week of `moment`"""
    days_since_sunday = (moment.weekday() + 1) % 7
    return start_of_day(moment) - timedelta(days=days_since_sunday)


def days_since(earlier: datetime, now: datetime) -> int:
    """Whole days elapsed, rounded down"""
    return int((now - earlier).total_seconds() // 86400)


def is_same_day(moment: Optional[datetime], today: date) -> bool:
    return moment is not None and moment.date() == today


class UsageLimiter:
    """Daily/weekly gates sharing one NotebookLimits record"""

    def __init__(self, limits_store: LimitsStore, clock: Callable[[], datetime] = datetime.now):
        self.limits_store = limits_store
        self.clock = clock

    def get_limits(self, user_id: str, notebook_id: str) -> NotebookLimits:
        """
        Current limits, a blank record when none exists.
        Raises StoreUnavailableError when the store cannot be read.
        """
        limits = self.limits_store.get(user_id, notebook_id)
        return limits or NotebookLimits(user_id=user_id, notebook_id=notebook_id)

    def _read(self, user_id: str, notebook_id: str) -> Optional[NotebookLimits]:
        try:
            return self.get_limits(user_id, notebook_id)
        except StoreUnavailableError as e:
            logger.warning(
                f"Limits unavailable for notebook {notebook_id}, allowing study: {e}",
                extra={"user_id": user_id, "action": "limits_fail_open"}
            )
            return None

    # Gates

    def can_free_study(self, user_id: str, notebook_id: str) -> bool:
        limits = self._read(user_id, notebook_id)
        if limits is None or limits.last_free_study_date is None:
            return True
        return not is_same_day(limits.last_free_study_date, self.clock().date())

    def can_smart_study(self, user_id: str, notebook_id: str) -> bool:
        limits = self._read(user_id, notebook_id)
        if limits is None or limits.last_smart_study_date is None:
            return True

        # Passed or failed validation alike, re-entry waits for the next calendar date
        return not is_same_day(limits.last_smart_study_date, self.clock().date())

    def can_quiz(self, user_id: str, notebook_id: str) -> bool:
        limits = self._read(user_id, notebook_id)
        if limits is None or limits.last_quiz_date is None:
            return True
        return days_since(limits.last_quiz_date, self.clock()) >= QUIZ_COOLDOWN_DAYS

    # Next eligible dates (None when available now)

    def next_free_study_date(self, user_id: str, notebook_id: str) -> Optional[datetime]:
        if self.can_free_study(user_id, notebook_id):
            return None
        limits = self._read(user_id, notebook_id)
        return next_day(limits.last_free_study_date) if limits else None

    def next_smart_study_date(self, user_id: str, notebook_id: str) -> Optional[datetime]:
        if self.can_smart_study(user_id, notebook_id):
            return None
        limits = self._read(user_id, notebook_id)
        return next_day(limits.last_smart_study_date) if limits else None

    def next_quiz_date(self, user_id: str, notebook_id: str) -> Optional[datetime]:
        if self.can_quiz(user_id, notebook_id):
            return None
        limits = self._read(user_id, notebook_id)
        return limits.last_quiz_date + timedelta(days=QUIZ_COOLDOWN_DAYS) if limits else None

    # Usage recording

    def record_free_study_usage(self, user_id: str, notebook_id: str):
        self._write(user_id, notebook_id, "free_study_usage", {
            "last_free_study_date": self.clock(),
            "free_study_count_today": 1,
        })

    def record_smart_study_usage(self, user_id: str, notebook_id: str, quiz_passed: bool = True):
        self._write(user_id, notebook_id, "smart_study_usage", {
            "last_smart_study_date": self.clock(),
            "smart_study_count_today": 1,
            "last_quiz_passed": quiz_passed,
        })

    def record_quiz_usage(self, user_id: str, notebook_id: str):
        now = self.clock()
        current_week = week_start(now)
        count = 1

        limits = self._read(user_id, notebook_id)
        if limits and limits.week_start_date == current_week:
            count = limits.quiz_count_this_week + 1

        self._write(user_id, notebook_id, "quiz_usage", {
            "last_quiz_date": now,
            "quiz_count_this_week": count,
            "week_start_date": current_week,
        })

    def _write(self, user_id: str, notebook_id: str, action: str, fields: Dict[str, Any]):
        fields["updated_at"] = self.clock()
        try:
            self.limits_store.merge_put(user_id, notebook_id, fields)
        except StoreUnavailableError as e:
            logger.error(
                f"Could not record {action} for notebook {notebook_id}: {e}",
                extra={"user_id": user_id, "action": action}
            )

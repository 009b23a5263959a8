from datetime import date, datetime, timedelta
from typing import NamedTuple, Optional

from study_engine.schemas import LearningRecord

MIN_EASE_FACTOR = 1.3
INITIAL_EASE_FACTOR = 2.5


class SM3Result(NamedTuple):
    interval: int
    ease_factor: float
    repetitions: int
    next_review_date: datetime


class SM3Algorithm:
    """
    SM-3 spaced repetition algorithm for calculating review intervals.
    Successor of SuperMemo 2 by Piotr Wozniak; same ease factor update,
    fixed first and second intervals of 1 and 6 days.
    """

    @staticmethod
    def calculate_next_review(
        record: LearningRecord,
        quality: int,
        reference_time: Optional[datetime] = None
    ) -> SM3Result:
        """
        Calculate next review date and updated SM-3 parameters.

        Args:
            record: Current learning record of the concept
            quality: Response quality (0-5). 0=total blackout, 5=perfect
            reference_time: Optional reference time (defaults to now)

        Returns:
            SM3Result(interval, ease_factor, repetitions, next_review_date)
        """
        if not 0 <= quality <= 5:
            raise ValueError(f"Quality must be between 0 and 5, got {quality}")

        # Update ease factor based on quality
        new_ef = record.ease_factor + (0.1 - (5 - quality) * (0.08 + (5 - quality) * 0.02))
        new_ef = max(MIN_EASE_FACTOR, new_ef)

        # If quality < 3, reset repetitions (failed recall)
        if quality < 3:
            new_repetitions = 0
            new_interval = 1
        else:
            new_repetitions = record.repetitions + 1

            if new_repetitions == 1:
                new_interval = 1
            elif new_repetitions == 2:
                new_interval = 6
            else:
                new_interval = round(record.interval * new_ef)

        base_time = reference_time or datetime.now()
        next_review_date = base_time + timedelta(days=new_interval)

        return SM3Result(new_interval, new_ef, new_repetitions, next_review_date)

    @staticmethod
    def apply_review(
        record: LearningRecord,
        quality: int,
        reference_time: Optional[datetime] = None
    ) -> LearningRecord:
        """Return a copy of the record updated with one review"""
        base_time = reference_time or datetime.now()
        result = SM3Algorithm.calculate_next_review(record, quality, base_time)
        return record.model_copy(update={
            "ease_factor": result.ease_factor,
            "interval": result.interval,
            "repetitions": result.repetitions,
            "next_review_date": result.next_review_date,
            "last_review_date": base_time,
            "quality": quality
        })

    @staticmethod
    def initialize_concept(
        concept_id: str,
        notebook_id: Optional[str] = None,
        reference_time: Optional[datetime] = None
    ) -> LearningRecord:
        """
        Initialize SM-3 parameters for a concept seen for the first time.
        The record is due tomorrow and carries no review yet.
        """
        base_time = reference_time or datetime.now()
        return LearningRecord(
            concept_id=concept_id,
            notebook_id=notebook_id,
            ease_factor=INITIAL_EASE_FACTOR,
            interval=1,
            repetitions=0,
            next_review_date=base_time + timedelta(days=1),
            last_review_date=None,
            quality=0
        )

    @staticmethod
    def is_due_for_review(record: LearningRecord, today: Optional[date] = None) -> bool:
        """Check if a concept is due, comparing calendar dates only"""
        today = today or date.today()
        return record.next_review_date.date() <= today

    @staticmethod
    def get_days_overdue(record: LearningRecord, today: Optional[date] = None) -> int:
        """Calculate how many days overdue a review is"""
        today = today or date.today()
        due = record.next_review_date.date()
        if today < due:
            return 0
        return (today - due).days

from datetime import datetime
from typing import Any, Dict, List, Optional

from study_engine.schemas import ResponseQuality


def sanitize(payload: Any) -> Any:
    """Drop keys whose value is None, recursively, so no nulls reach the store"""
    if isinstance(payload, dict):
        return {key: sanitize(value) for key, value in payload.items() if value is not None}
    if isinstance(payload, list):
        return [sanitize(item) for item in payload if item is not None]
    return payload


def quiz_score(correct_answers: int, time_remaining: int) -> Dict[str, int]:
    """
    Final quiz score: correct answers times the seconds left on the timer,
    never less than the number of correct answers.
    """
    time_bonus = correct_answers * max(0, time_remaining)
    return {
        "baseScore": correct_answers,
        "timeBonus": time_bonus,
        "finalScore": max(correct_answers, time_bonus),
    }


class SessionMetrics:
    """Running counters and per-concept verdicts of one study session"""

    def __init__(self, total_concepts: int, start_time: datetime):
        self.total_concepts = total_concepts
        self.start_time = start_time
        self.concepts_reviewed = 0
        self.mastered = 0
        self.reviewing = 0
        self.time_spent = 0
        self.first_verdicts: Dict[str, ResponseQuality] = {}
        self.final_verdicts: Dict[str, ResponseQuality] = {}

    def sample(self, now: datetime) -> int:
        """Recompute elapsed seconds from the start time"""
        self.time_spent = max(0, int((now - self.start_time).total_seconds()))
        return self.time_spent

    def record(self, concept_id: str, quality: ResponseQuality):
        self.concepts_reviewed += 1
        if quality is ResponseQuality.MASTERED:
            self.mastered += 1
        else:
            self.reviewing += 1
        self.first_verdicts.setdefault(concept_id, quality)
        # last verdict wins
        self.final_verdicts[concept_id] = quality

    @property
    def first_pass_correct(self) -> int:
        return sum(1 for q in self.first_verdicts.values() if q is ResponseQuality.MASTERED)

    @property
    def concepts_dominados(self) -> int:
        return sum(1 for q in self.final_verdicts.values() if q is ResponseQuality.MASTERED)

    @property
    def conceptos_no_dominados(self) -> int:
        return sum(1 for q in self.final_verdicts.values() if q is ResponseQuality.REVIEW_LATER)

    def concept_results(self) -> List[Dict[str, Any]]:
        return [
            {
                "conceptId": concept_id,
                "mastered": quality is ResponseQuality.MASTERED,
                "quality": quality.value,
                "firstQuality": self.first_verdicts[concept_id].value,
            }
            for concept_id, quality in self.final_verdicts.items()
        ]

    def to_payload(self, end_time: Optional[datetime] = None) -> Dict[str, Any]:
        return sanitize({
            "totalConcepts": self.total_concepts,
            "conceptsReviewed": self.concepts_reviewed,
            "mastered": self.mastered,
            "reviewing": self.reviewing,
            "timeSpent": self.time_spent,
            "startTime": self.start_time.isoformat(),
            "endTime": end_time.isoformat() if end_time else None,
        })

    def detailed_results(self, **extra) -> Dict[str, Any]:
        return sanitize({
            "conceptsDominados": self.concepts_dominados,
            "conceptosNoDominados": self.conceptos_no_dominados,
            "conceptsResults": self.concept_results(),
            **extra,
        })

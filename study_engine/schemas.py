from enum import Enum
from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Optional
from datetime import datetime

class StudyMode(str, Enum):
    SMART = "smart"
    FREE = "free"
    QUIZ = "quiz"

class StudyIntensity(str, Enum):
    WARM_UP = "warm_up"
    PROGRESS = "progress"
    ROCKET = "rocket"

class ResponseQuality(str, Enum):
    """Learner verdict for a concept. Maps onto the SM-3 0-5 scale."""
    MASTERED = "mastered"
    REVIEW_LATER = "review_later"

    @property
    def sm3_quality(self) -> int:
        return 5 if self is ResponseQuality.MASTERED else 2

class SessionState(str, Enum):
    NOT_STARTED = "not_started"
    ACTIVE = "active"
    IMMEDIATE_REVIEW = "immediate_review"
    COMPLETING = "completing"
    AWAITING_VALIDATION = "awaiting_validation"
    COMPLETE = "complete"

class Concept(BaseModel):
    """Concept as served by the content provider. Opaque beyond its id."""
    id: str
    notebook_id: Optional[str] = None
    term: Optional[str] = None
    definition: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

class LearningRecord(BaseModel):
    """SM-3 state for one (user, concept)"""
    concept_id: str
    notebook_id: Optional[str] = None
    ease_factor: float = Field(default=2.5, ge=1.3)
    interval: int = Field(default=1, ge=1)  # days until next review
    repetitions: int = Field(default=0, ge=0)  # consecutive successful reviews
    next_review_date: datetime
    last_review_date: Optional[datetime] = None
    quality: int = Field(default=0, ge=0, le=5)

    model_config = ConfigDict(from_attributes=True)

class NotebookLimits(BaseModel):
    """Usage bookkeeping for one (user, notebook)"""
    user_id: str
    notebook_id: str

    last_free_study_date: Optional[datetime] = None
    free_study_count_today: int = 0

    last_smart_study_date: Optional[datetime] = None
    smart_study_count_today: int = 0
    last_quiz_passed: bool = True

    last_quiz_date: Optional[datetime] = None
    quiz_count_this_week: int = 0
    week_start_date: Optional[datetime] = None

    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class QuizStats(BaseModel):
    """Best and latest quiz results for one (user, notebook)"""
    user_id: str
    notebook_id: str
    max_score: float = 0
    last_score: float = 0
    quizzes_taken: int = 0
    last_quiz_date: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class StudySessionRecord(BaseModel):
    """Persisted view of a study session"""
    id: Optional[str] = None
    user_id: str
    notebook_id: str
    mode: StudyMode
    intensity: Optional[StudyIntensity] = None
    start_time: datetime
    end_time: Optional[datetime] = None
    concepts: List[str] = Field(default_factory=list)
    metrics: Optional[Dict[str, Any]] = None
    detailed_results: Optional[Dict[str, Any]] = None
    validated: Optional[bool] = None
    validation_score: Optional[float] = None

    model_config = ConfigDict(from_attributes=True)

class UserStudyStats(BaseModel):
    """Per-user totals and study streak"""
    user_id: str
    sessions_completed: int = 0
    time_studied: int = 0  # seconds
    concepts_reviewed: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    last_study_date: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class ReviewSelection(BaseModel):
    """New concepts plus due (or backfilled) records, disjoint by concept id"""
    new_concepts: List[Concept] = Field(default_factory=list)
    due_records: List[LearningRecord] = Field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.new_concepts) + len(self.due_records)

class Availability(BaseModel):
    """Gate results and next eligible dates for a notebook"""
    notebook_id: str
    can_free_study: bool
    can_smart_study: bool
    can_quiz: bool
    reviewable_count: int
    next_free_study_date: Optional[datetime] = None
    next_smart_study_date: Optional[datetime] = None
    next_quiz_date: Optional[datetime] = None

class LearningStats(BaseModel):
    total_concepts: int
    ready_for_review: int
    due_today: int
    due_tomorrow: int
    average_ease_factor: float
    average_interval: float

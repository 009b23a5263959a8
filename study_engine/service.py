"""
Service layer over the engine: the operations a surrounding application calls.
"""

import random
from datetime import datetime
from typing import Any, Callable, Dict, Optional, Union

from sqlalchemy.orm import Session

from study_engine.config import Settings, settings as default_settings
from study_engine.exceptions import InvalidTransitionError, StoreUnavailableError
from study_engine.limiter import UsageLimiter
from study_engine.logging import get_logger
from study_engine.schemas import (
    Availability,
    LearningStats,
    ResponseQuality,
    SessionState,
    StudyIntensity,
    StudyMode,
)
from study_engine.selector import ReviewSelector
from study_engine.session import StudySessionRuntime
from study_engine.stats import learning_stats, next_review_date
from study_engine.stores import (
    ContentProvider,
    LearningRecordStore,
    LimitsStore,
    QuizStatsStore,
    SessionStore,
    SqlContentProvider,
    SqlLearningRecordStore,
    SqlLimitsStore,
    SqlQuizStatsStore,
    SqlSessionStore,
    SqlUserStatsStore,
    UserStatsStore,
)

logger = get_logger(__name__)


class StudyService:
    """Entry point for starting, driving and inspecting study sessions"""

    def __init__(
        self,
        record_store: LearningRecordStore,
        limits_store: LimitsStore,
        session_store: SessionStore,
        content_provider: ContentProvider,
        stats_store: Optional[UserStatsStore] = None,
        quiz_stats_store: Optional[QuizStatsStore] = None,
        clock: Callable[[], datetime] = datetime.now,
        rng: Optional[random.Random] = None,
        config: Optional[Settings] = None
    ):
        self.record_store = record_store
        self.limits_store = limits_store
        self.session_store = session_store
        self.content_provider = content_provider
        self.stats_store = stats_store
        self.quiz_stats_store = quiz_stats_store
        self.clock = clock
        self.rng = rng
        self.config = config or default_settings

        self.limiter = UsageLimiter(limits_store, clock)
        self.selector = ReviewSelector(record_store, content_provider, self.config.min_batch)
        self._sessions: Dict[str, StudySessionRuntime] = {}

    @classmethod
    def from_session_factory(cls, session_factory: Callable[[], Session], **kwargs) -> "StudyService":
        """Build a service backed by the SQLAlchemy stores"""
        return cls(
            record_store=SqlLearningRecordStore(session_factory),
            limits_store=SqlLimitsStore(session_factory),
            session_store=SqlSessionStore(session_factory),
            content_provider=SqlContentProvider(session_factory),
            stats_store=SqlUserStatsStore(session_factory),
            quiz_stats_store=SqlQuizStatsStore(session_factory),
            **kwargs
        )

    # Session operations

    def start_session(
        self,
        user_id: str,
        notebook_id: str,
        mode: Union[StudyMode, str],
        intensity: Union[StudyIntensity, str, None] = None
    ) -> StudySessionRuntime:
        runtime = StudySessionRuntime(
            user_id,
            notebook_id,
            record_store=self.record_store,
            limits_store=self.limits_store,
            session_store=self.session_store,
            content_provider=self.content_provider,
            stats_store=self.stats_store,
            quiz_stats_store=self.quiz_stats_store,
            clock=self.clock,
            rng=self.rng,
            config=self.config
        )
        session_id = runtime.begin(mode, intensity)
        self._sessions[session_id] = runtime
        return runtime

    def get_session(self, session_id: str) -> StudySessionRuntime:
        runtime = self._sessions.get(session_id)
        if runtime is None:
            raise InvalidTransitionError(f"No open study session {session_id}")
        return runtime

    def record_response(self, session_id: str, concept_id: str, quality: Union[ResponseQuality, str]) -> SessionState:
        runtime = self.get_session(session_id)
        state = runtime.record_response(concept_id, quality)
        self._forget_if_complete(runtime)
        return state

    def submit_validation(self, session_id: str, score: float, passed: Optional[bool] = None) -> SessionState:
        """Close a smart session; without an explicit outcome the score decides"""
        runtime = self.get_session(session_id)
        if passed is None:
            passed = score >= self.config.validation_pass_score
        state = runtime.submit_validation(passed, score)
        self._forget_if_complete(runtime)
        return state

    def abandon_session(self, session_id: str):
        """Drop an open session. Nothing further is persisted for it."""
        if self._sessions.pop(session_id, None):
            logger.info(f"Abandoned study session {session_id}", extra={"action": "session_abandoned"})

    def _forget_if_complete(self, runtime: StudySessionRuntime):
        if runtime.state is SessionState.COMPLETE:
            self._sessions.pop(runtime.session_id, None)

    # Availability

    def get_availability(self, user_id: str, notebook_id: str) -> Availability:
        dates = self.get_next_eligible_dates(user_id, notebook_id)
        return Availability(
            notebook_id=notebook_id,
            can_free_study=self.limiter.can_free_study(user_id, notebook_id),
            can_smart_study=self.limiter.can_smart_study(user_id, notebook_id),
            can_quiz=self.limiter.can_quiz(user_id, notebook_id),
            reviewable_count=self.selector.count(user_id, notebook_id, self.clock()),
            **dates
        )

    def get_next_eligible_dates(self, user_id: str, notebook_id: str) -> Dict[str, Optional[datetime]]:
        """
        Next time each mode opens up. None means available now, except for
        smart study where it can also mean nothing will ever be due.
        """
        smart_date = self.limiter.next_smart_study_date(user_id, notebook_id)
        if smart_date is None:
            try:
                records = self.record_store.get_all(user_id, notebook_id)
            except StoreUnavailableError as e:
                logger.error(f"Could not load learning records for notebook {notebook_id}: {e}")
                records = []
            due = next_review_date(records, self.clock())
            if due is not None and due > self.clock():
                smart_date = due

        return {
            "next_free_study_date": self.limiter.next_free_study_date(user_id, notebook_id),
            "next_smart_study_date": smart_date,
            "next_quiz_date": self.limiter.next_quiz_date(user_id, notebook_id),
        }

    # Reporting

    def get_learning_stats(self, user_id: str, notebook_id: str) -> LearningStats:
        try:
            records = self.record_store.get_all(user_id, notebook_id)
        except StoreUnavailableError as e:
            logger.error(f"Could not load learning records for notebook {notebook_id}: {e}")
            records = []
        return learning_stats(records, self.clock())

    def get_max_quiz_score(self, user_id: str, notebook_id: str) -> float:
        """Best quiz score on the notebook, the configured default until one is earned"""
        best = None
        if self.quiz_stats_store is not None:
            try:
                stats = self.quiz_stats_store.get(user_id, notebook_id)
                best = stats.max_score if stats else None
            except StoreUnavailableError as e:
                logger.error(f"Could not load quiz stats for notebook {notebook_id}: {e}")
        return best or self.config.default_max_quiz_score

    def get_dashboard(self, user_id: str, notebook_id: str, max_quiz_score: Optional[float] = None) -> Dict[str, Any]:
        stats = self.get_learning_stats(user_id, notebook_id)
        availability = self.get_availability(user_id, notebook_id)
        max_quiz_score = max_quiz_score or self.get_max_quiz_score(user_id, notebook_id)
        return {
            "general_score": stats.total_concepts * max_quiz_score,
            "smart_studies_count": stats.total_concepts,
            "max_quiz_score": max_quiz_score,
            "stats": stats.model_dump(),
            "availability": availability.model_dump(),
        }

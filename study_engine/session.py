"""
Study session runtime.

One instance drives one session through
NOT_STARTED -> ACTIVE -> IMMEDIATE_REVIEW* -> COMPLETING -> (AWAITING_VALIDATION) -> COMPLETE.
Calls are synchronous; the caller feeds one learner response at a time.
"""

import logging
import random
import threading
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Set, Union

from study_engine.config import Settings, settings as default_settings
from study_engine.exceptions import (
    EmptyNotebookError,
    InvalidTransitionError,
    LimitReachedError,
    NoReviewableConceptsError,
    PersistenceFailedError,
    StoreUnavailableError,
)
from study_engine.limiter import UsageLimiter
from study_engine.logging import get_logger, log_with_context
from study_engine.metrics import SessionMetrics, quiz_score
from study_engine.schemas import (
    Concept,
    ResponseQuality,
    SessionState,
    StudyIntensity,
    StudyMode,
    StudySessionRecord,
)
from study_engine.selector import ReviewSelector
from study_engine.sm3 import SM3Algorithm
from study_engine.stats import advance_streak
from study_engine.stores import (
    ContentProvider,
    LearningRecordStore,
    LimitsStore,
    QuizStatsStore,
    SessionStore,
    UserStatsStore,
)

logger = get_logger(__name__)

INTENSITY_MULTIPLIERS = {
    StudyIntensity.WARM_UP: 1.0,
    StudyIntensity.PROGRESS: 1.5,
    StudyIntensity.ROCKET: 2.0,
}

ANSWERING_STATES = (SessionState.ACTIVE, SessionState.IMMEDIATE_REVIEW)


def batch_size_for(intensity: StudyIntensity, config: Settings = default_settings) -> int:
    """Concepts drawn by a smart session at the given intensity"""
    return {
        StudyIntensity.WARM_UP: config.warm_up_batch_size,
        StudyIntensity.PROGRESS: config.progress_batch_size,
        StudyIntensity.ROCKET: config.rocket_batch_size,
    }[intensity]


class StudySessionRuntime:
    """State machine for a single study session of one user on one notebook"""

    def __init__(
        self,
        user_id: str,
        notebook_id: str,
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
        self.user_id = user_id
        self.notebook_id = notebook_id
        self.record_store = record_store
        self.session_store = session_store
        self.content_provider = content_provider
        self.stats_store = stats_store
        self.quiz_stats_store = quiz_stats_store
        self.clock = clock
        self.rng = rng or random.Random()
        self.config = config or default_settings

        self.limiter = UsageLimiter(limits_store, clock)
        self.selector = ReviewSelector(record_store, content_provider, self.config.min_batch)

        self.state = SessionState.NOT_STARTED
        self.session_id: Optional[str] = None
        self.mode: Optional[StudyMode] = None
        self.intensity: Optional[StudyIntensity] = None
        self.concepts: List[Concept] = []
        self.metrics: Optional[SessionMetrics] = None
        self.pass_number = 0
        self.end_time: Optional[datetime] = None
        self.valid: Optional[bool] = None
        self.validated: Optional[bool] = None
        self.quiz_result: Optional[Dict[str, int]] = None

        self._active: List[Concept] = []
        self._review_queue: List[Concept] = []
        self._applied: Set[str] = set()
        self._lock = threading.Lock()

    # Introspection

    @property
    def active_batch(self) -> List[Concept]:
        return list(self._active)

    @property
    def review_queue(self) -> List[Concept]:
        return list(self._review_queue)

    @property
    def current_concept(self) -> Optional[Concept]:
        return self._active[0] if self._active else None

    @property
    def multiplier(self) -> float:
        if self.mode is StudyMode.QUIZ or self.intensity is None:
            return 1.0
        return INTENSITY_MULTIPLIERS[self.intensity]

    def tick(self) -> int:
        """Resample elapsed time; call on a fixed cadence while the session is open"""
        if self.metrics is None:
            return 0
        return self.metrics.sample(self.clock())

    # Transitions

    def begin(self, mode: Union[StudyMode, str], intensity: Union[StudyIntensity, str, None] = None) -> str:
        """
        Start the session: check the usage gate, draw and shuffle the batch,
        create the session record.

        Returns:
            The new session id

        Raises:
            LimitReachedError, NoReviewableConceptsError, EmptyNotebookError,
            PersistenceFailedError
        """
        self._require(SessionState.NOT_STARTED)
        mode = StudyMode(mode)
        if mode is StudyMode.QUIZ:
            intensity = None
        else:
            intensity = StudyIntensity(intensity) if intensity else StudyIntensity.PROGRESS

        self._check_gate(mode)
        batch = self._draw(mode, intensity)
        self.rng.shuffle(batch)

        start_time = self.clock()
        record = StudySessionRecord(
            user_id=self.user_id,
            notebook_id=self.notebook_id,
            mode=mode,
            intensity=intensity,
            start_time=start_time,
            concepts=[concept.id for concept in batch]
        )
        self.session_id = self._persist("create", self.session_store.create, record)

        self.mode = mode
        self.intensity = intensity
        self.concepts = list(batch)
        self.metrics = SessionMetrics(len(batch), start_time)
        self._active = list(batch)
        self.pass_number = 1
        self.state = SessionState.ACTIVE

        log_with_context(
            logger, logging.INFO,
            f"Started {mode.value} session with {len(batch)} concepts",
            user_id=self.user_id, action="session_started", session_id=self.session_id,
            notebook_id=self.notebook_id
        )
        return self.session_id

    def record_response(self, concept_id: str, quality: Union[ResponseQuality, str]) -> SessionState:
        """
        Process one learner verdict for a concept of the active batch.
        Callers must not overlap calls on the same session.
        """
        if not self._lock.acquire(blocking=False):
            raise InvalidTransitionError("A response is already being processed for this session")
        try:
            if self.state not in ANSWERING_STATES:
                raise InvalidTransitionError(f"Cannot record a response while {self.state.value}")
            quality = ResponseQuality(quality)

            position = next((i for i, c in enumerate(self._active) if c.id == concept_id), None)
            if position is None:
                raise InvalidTransitionError(f"Concept {concept_id} is not in the active batch")
            concept = self._active.pop(position)

            self.metrics.record(concept_id, quality)
            self.metrics.sample(self.clock())

            if quality is ResponseQuality.REVIEW_LATER:
                self._review_queue.append(concept)
            else:
                # a later "mastered" overrides an earlier "review later"
                self._review_queue = [c for c in self._review_queue if c.id != concept_id]

            self._advance()
            return self.state
        finally:
            self._lock.release()

    def _advance(self):
        if self._active:
            return
        if self._review_queue:
            self._active = self._review_queue
            self._review_queue = []
            self.pass_number += 1
            self.state = SessionState.IMMEDIATE_REVIEW
            logger.debug(f"Session {self.session_id} starting review pass {self.pass_number}")
            return
        self.state = SessionState.COMPLETING
        self.complete()

    def complete(self) -> SessionState:
        """
        Persist the session outcome. Runs automatically when the last concept
        is answered; call again to retry after a PersistenceFailedError.
        """
        self._require(SessionState.COMPLETING)

        if self.end_time is None:
            self.end_time = self.clock()
            self.metrics.sample(self.end_time)
        if self.mode is StudyMode.FREE:
            self.valid = self.metrics.time_spent >= self.config.free_study_min_seconds
        elif self.mode is StudyMode.QUIZ and self.quiz_result is None:
            # first-pass answers only, re-asked concepts do not score
            time_remaining = max(0, self.config.quiz_time_limit_seconds - self.metrics.time_spent)
            self.quiz_result = quiz_score(self.metrics.first_pass_correct, time_remaining)
            self.quiz_result["timeRemaining"] = time_remaining

        details = self.metrics.detailed_results(
            studyMode=self.mode.value,
            studyIntensity=self.intensity.value if self.intensity else None,
            sessionMultiplier=self.multiplier,
            validSession=self.valid,
            passes=self.pass_number,
            **(self.quiz_result or {})
        )
        self._persist("complete", self.session_store.update, self.session_id, {
            "end_time": self.end_time,
            "metrics": self.metrics.to_payload(self.end_time),
            "detailed_results": details,
        })

        if self.mode is StudyMode.FREE:
            self.limiter.record_free_study_usage(self.user_id, self.notebook_id)
        elif self.mode is StudyMode.QUIZ:
            self.limiter.record_quiz_usage(self.user_id, self.notebook_id)
            self._record_quiz_result()
        self._update_user_stats()

        if self.mode is StudyMode.SMART:
            self.state = SessionState.AWAITING_VALIDATION
        else:
            self.state = SessionState.COMPLETE

        log_with_context(
            logger, logging.INFO,
            f"Completed {self.mode.value} session: {self.metrics.concepts_dominados} mastered, "
            f"{self.metrics.conceptos_no_dominados} to review",
            user_id=self.user_id, action="session_completed", session_id=self.session_id
        )
        return self.state

    def submit_validation(self, passed: bool, score: Optional[float] = None) -> SessionState:
        """
        Close a smart session with the outcome of the post-session check.
        Only a passed validation updates learning records.
        """
        self._require(SessionState.AWAITING_VALIDATION)
        now = self.clock()

        if passed:
            for concept_id, verdict in self.metrics.final_verdicts.items():
                if concept_id in self._applied:
                    continue
                self._apply_sm3(concept_id, verdict, now)
                self._applied.add(concept_id)

        self._persist("validate", self.session_store.update, self.session_id, {
            "validated": passed,
            "validation_score": score,
        })
        self.limiter.record_smart_study_usage(self.user_id, self.notebook_id, quiz_passed=passed)

        self.validated = passed
        self.state = SessionState.COMPLETE
        log_with_context(
            logger, logging.INFO,
            f"Smart session validation {'passed' if passed else 'failed'} (score {score})",
            user_id=self.user_id,
            action="smart_study_validated" if passed else "smart_study_failed_validation",
            session_id=self.session_id
        )
        return self.state

    # Helpers

    def _require(self, *states: SessionState):
        if self.state not in states:
            expected = ", ".join(s.value for s in states)
            raise InvalidTransitionError(f"Session is {self.state.value}, expected {expected}")

    def _check_gate(self, mode: StudyMode):
        if mode is StudyMode.SMART:
            allowed = self.limiter.can_smart_study(self.user_id, self.notebook_id)
            next_date = None if allowed else self.limiter.next_smart_study_date(self.user_id, self.notebook_id)
        elif mode is StudyMode.FREE:
            allowed = self.limiter.can_free_study(self.user_id, self.notebook_id)
            next_date = None if allowed else self.limiter.next_free_study_date(self.user_id, self.notebook_id)
        else:
            allowed = self.limiter.can_quiz(self.user_id, self.notebook_id)
            next_date = None if allowed else self.limiter.next_quiz_date(self.user_id, self.notebook_id)

        if not allowed:
            raise LimitReachedError(mode.value, next_date)

    def _draw(self, mode: StudyMode, intensity: Optional[StudyIntensity]) -> List[Concept]:
        if mode is StudyMode.SMART:
            candidates = self.selector.select(self.user_id, self.notebook_id, self.clock())
            if not candidates:
                raise NoReviewableConceptsError(f"Nothing to review in notebook {self.notebook_id}")
            return candidates[:batch_size_for(intensity, self.config)]

        try:
            concepts = self.content_provider.list_concepts(self.notebook_id)
        except StoreUnavailableError as e:
            logger.error(f"Could not list concepts of notebook {self.notebook_id}: {e}")
            concepts = []
        if not concepts:
            raise EmptyNotebookError(f"Notebook {self.notebook_id} has no concepts")

        if mode is StudyMode.QUIZ:
            return self.rng.sample(concepts, min(self.config.quiz_max_questions, len(concepts)))
        return list(concepts)

    def _apply_sm3(self, concept_id: str, verdict: ResponseQuality, now: datetime):
        record = self._persist("load_record", self.record_store.get, self.user_id, concept_id)
        if record is None:
            record = SM3Algorithm.initialize_concept(concept_id, self.notebook_id, now)
        updated = SM3Algorithm.apply_review(record, verdict.sm3_quality, now)
        self._persist("save_record", self.record_store.put, self.user_id, concept_id, updated)

    def _persist(self, action: str, operation: Callable[..., Any], *args) -> Any:
        """Run a store write that must not be lost, retrying once"""
        error = None
        for attempt in (1, 2):
            try:
                return operation(*args)
            except StoreUnavailableError as e:
                error = e
                logger.warning(
                    f"Session {action} failed (attempt {attempt}): {e}",
                    extra={"user_id": self.user_id, "action": action}
                )
        raise PersistenceFailedError(f"Could not {action} study session: {error}") from error

    def _update_user_stats(self):
        if self.stats_store is None:
            return
        now = self.end_time or self.clock()
        try:
            stats = self.stats_store.get(self.user_id)
            fields: Dict[str, Any] = {
                "sessions_completed": (stats.sessions_completed if stats else 0) + 1,
                "time_studied": (stats.time_studied if stats else 0) + self.metrics.time_spent,
                "concepts_reviewed": (stats.concepts_reviewed if stats else 0) + self.metrics.concepts_reviewed,
                "updated_at": now,
            }
            if self.metrics.concepts_reviewed >= self.config.streak_min_concepts:
                fields.update(advance_streak(stats, now))
            self.stats_store.merge_put(self.user_id, fields)
        except StoreUnavailableError as e:
            logger.error(
                f"Could not update study stats: {e}",
                extra={"user_id": self.user_id, "action": "update_user_stats"}
            )

    def _record_quiz_result(self):
        if self.quiz_stats_store is None:
            return
        try:
            self.quiz_stats_store.record_result(
                self.user_id, self.notebook_id, self.quiz_result["finalScore"], self.end_time
            )
        except StoreUnavailableError as e:
            logger.error(
                f"Could not record quiz score for notebook {self.notebook_id}: {e}",
                extra={"user_id": self.user_id, "action": "record_quiz_result"}
            )

"""
Store contracts consumed by the engine, and their SQLAlchemy implementations.

The engine only ever talks to these narrow interfaces. Every failure of the
backing database surfaces as StoreUnavailableError so callers can apply the
fail-open / fail-empty / propagate policy that fits the call.
"""

from contextlib import contextmanager
from datetime import datetime
from typing import Any, Callable, Dict, Iterator, List, Optional, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from study_engine import crud
from study_engine.exceptions import StoreUnavailableError
from study_engine.schemas import (
    Concept,
    LearningRecord,
    NotebookLimits,
    QuizStats,
    StudySessionRecord,
    UserStudyStats,
)


class LearningRecordStore(Protocol):
    def get(self, user_id: str, concept_id: str) -> Optional[LearningRecord]: ...

    def get_all(self, user_id: str, notebook_id: str) -> List[LearningRecord]: ...

    def put(self, user_id: str, concept_id: str, record: LearningRecord) -> None: ...

    def delete(self, user_id: str, concept_id: str) -> None: ...


class LimitsStore(Protocol):
    def get(self, user_id: str, notebook_id: str) -> Optional[NotebookLimits]: ...

    def merge_put(self, user_id: str, notebook_id: str, fields: Dict[str, Any]) -> None: ...


class SessionStore(Protocol):
    def create(self, session: StudySessionRecord) -> str: ...

    def get(self, session_id: str) -> Optional[StudySessionRecord]: ...

    def update(self, session_id: str, fields: Dict[str, Any]) -> None: ...


class QuizStatsStore(Protocol):
    def get(self, user_id: str, notebook_id: str) -> Optional[QuizStats]: ...

    def record_result(self, user_id: str, notebook_id: str, score: float, taken_at: datetime) -> None: ...


class ContentProvider(Protocol):
    def list_concepts(self, notebook_id: str) -> List[Concept]: ...


class UserStatsStore(Protocol):
    def get(self, user_id: str) -> Optional[UserStudyStats]: ...

    def merge_put(self, user_id: str, fields: Dict[str, Any]) -> None: ...


class _SqlStore:
    """Runs each call in its own database session"""

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    @contextmanager
    def _session(self, operation: str) -> Iterator[Session]:
        db = self.session_factory()
        try:
            yield db
        except SQLAlchemyError as e:
            db.rollback()
            raise StoreUnavailableError(f"{self.__class__.__name__}.{operation} failed: {e}") from e
        finally:
            db.close()


class SqlLearningRecordStore(_SqlStore):

    def get(self, user_id: str, concept_id: str) -> Optional[LearningRecord]:
        with self._session("get") as db:
            row = crud.get_learning_record(db, user_id, concept_id)
            return LearningRecord.model_validate(row) if row else None

    def get_all(self, user_id: str, notebook_id: str) -> List[LearningRecord]:
        with self._session("get_all") as db:
            rows = crud.get_learning_records(db, user_id, notebook_id)
            return [LearningRecord.model_validate(row) for row in rows]

    def put(self, user_id: str, concept_id: str, record: LearningRecord) -> None:
        if record.concept_id != concept_id:
            raise ValueError(f"Record for {record.concept_id} stored under {concept_id}")
        with self._session("put") as db:
            crud.save_learning_record(db, user_id, record)

    def delete(self, user_id: str, concept_id: str) -> None:
        with self._session("delete") as db:
            crud.delete_learning_record(db, user_id, concept_id)


class SqlLimitsStore(_SqlStore):

    def get(self, user_id: str, notebook_id: str) -> Optional[NotebookLimits]:
        with self._session("get") as db:
            row = crud.get_notebook_limits(db, user_id, notebook_id)
            return NotebookLimits.model_validate(row) if row else None

    def merge_put(self, user_id: str, notebook_id: str, fields: Dict[str, Any]) -> None:
        with self._session("merge_put") as db:
            crud.merge_notebook_limits(db, user_id, notebook_id, fields)


class SqlSessionStore(_SqlStore):

    def create(self, session: StudySessionRecord) -> str:
        with self._session("create") as db:
            return crud.create_study_session(db, session).id

    def get(self, session_id: str) -> Optional[StudySessionRecord]:
        with self._session("get") as db:
            row = crud.get_study_session(db, session_id)
            return StudySessionRecord.model_validate(row) if row else None

    def update(self, session_id: str, fields: Dict[str, Any]) -> None:
        with self._session("update") as db:
            if crud.update_study_session(db, session_id, fields) is None:
                raise StoreUnavailableError(f"Study session {session_id} not found")


class SqlQuizStatsStore(_SqlStore):

    def get(self, user_id: str, notebook_id: str) -> Optional[QuizStats]:
        with self._session("get") as db:
            row = crud.get_quiz_stats(db, user_id, notebook_id)
            return QuizStats.model_validate(row) if row else None

    def record_result(self, user_id: str, notebook_id: str, score: float, taken_at: datetime) -> None:
        with self._session("record_result") as db:
            crud.record_quiz_result(db, user_id, notebook_id, score, taken_at)


class SqlContentProvider(_SqlStore):

    def list_concepts(self, notebook_id: str) -> List[Concept]:
        with self._session("list_concepts") as db:
            return [Concept.model_validate(row) for row in crud.list_concepts(db, notebook_id)]


class SqlUserStatsStore(_SqlStore):

    def get(self, user_id: str) -> Optional[UserStudyStats]:
        with self._session("get") as db:
            row = crud.get_user_stats(db, user_id)
            return UserStudyStats.model_validate(row) if row else None

    def merge_put(self, user_id: str, fields: Dict[str, Any]) -> None:
        with self._session("merge_put") as db:
            crud.merge_user_stats(db, user_id, fields)

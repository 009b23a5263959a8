"""
Pytest fixtures for study engine tests.
"""

import pytest
from datetime import datetime, timedelta
from random import Random
from types import SimpleNamespace
from typing import List

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import study_engine.models  # noqa: F401
from study_engine.crud import add_concepts
from study_engine.database import Base
from study_engine.schemas import Concept
from study_engine.service import StudyService
from study_engine.session import StudySessionRuntime
from study_engine.stores import (
    SqlContentProvider,
    SqlLearningRecordStore,
    SqlLimitsStore,
    SqlQuizStatsStore,
    SqlSessionStore,
    SqlUserStatsStore,
)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    # Tuesday morning
    return FakeClock(datetime(2026, 3, 10, 9, 0))


@pytest.fixture
def session_factory():
    """SQLite in-memory database shared by every session of a test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(bind=engine, autocommit=False, autoflush=False)
    engine.dispose()


@pytest.fixture
def stores(session_factory):
    return SimpleNamespace(
        records=SqlLearningRecordStore(session_factory),
        limits=SqlLimitsStore(session_factory),
        sessions=SqlSessionStore(session_factory),
        content=SqlContentProvider(session_factory),
        stats=SqlUserStatsStore(session_factory),
        quiz_stats=SqlQuizStatsStore(session_factory),
    )


@pytest.fixture
def make_notebook(session_factory):
    """Add `count` concepts (ids c0, c1, ...) to a notebook."""

    def _make(notebook_id: str = "nb1", count: int = 3, ids: List[str] = None) -> List[Concept]:
        ids = ids or [f"c{i}" for i in range(count)]
        concepts = [
            Concept(id=concept_id, notebook_id=notebook_id, term=f"Term {concept_id}", definition=f"Definition {concept_id}")
            for concept_id in ids
        ]
        db = session_factory()
        try:
            add_concepts(db, notebook_id, concepts)
        finally:
            db.close()
        return concepts

    return _make


@pytest.fixture
def make_runtime(stores, clock):
    def _make(user_id: str = "u1", notebook_id: str = "nb1", **overrides) -> StudySessionRuntime:
        kwargs = dict(
            record_store=stores.records,
            limits_store=stores.limits,
            session_store=stores.sessions,
            content_provider=stores.content,
            stats_store=stores.stats,
            quiz_stats_store=stores.quiz_stats,
            clock=clock,
            rng=Random(7),
        )
        kwargs.update(overrides)
        return StudySessionRuntime(user_id, notebook_id, **kwargs)

    return _make


@pytest.fixture
def service(stores, clock):
    return StudyService(
        record_store=stores.records,
        limits_store=stores.limits,
        session_store=stores.sessions,
        content_provider=stores.content,
        stats_store=stores.stats,
        quiz_stats_store=stores.quiz_stats,
        clock=clock,
        rng=Random(7),
    )

"""
Tests for the study service facade.
"""

import pytest
from datetime import datetime, timedelta

from study_engine.exceptions import InvalidTransitionError, LimitReachedError
from study_engine.schemas import LearningRecord, ResponseQuality, SessionState, StudyMode


def finish(service, runtime, quality=ResponseQuality.MASTERED):
    state = runtime.state
    for concept in runtime.active_batch:
        state = service.record_response(runtime.session_id, concept.id, quality)
    return state


def test_fresh_notebook_is_fully_available(service, make_notebook):
    make_notebook(count=3)

    availability = service.get_availability("u1", "nb1")

    assert availability.can_free_study
    assert availability.can_smart_study
    assert availability.can_quiz
    assert availability.reviewable_count == 3
    assert availability.next_free_study_date is None
    assert availability.next_smart_study_date is None
    assert availability.next_quiz_date is None


def test_completed_sessions_close_their_gates(service, make_notebook):
    make_notebook(count=3)

    free = service.start_session("u1", "nb1", "free", "warm_up")
    assert finish(service, free) is SessionState.COMPLETE
    quiz = service.start_session("u1", "nb1", StudyMode.QUIZ)
    assert finish(service, quiz) is SessionState.COMPLETE

    availability = service.get_availability("u1", "nb1")
    assert not availability.can_free_study
    assert not availability.can_quiz
    assert availability.can_smart_study
    assert availability.next_free_study_date == datetime(2026, 3, 11)
    assert availability.next_quiz_date == datetime(2026, 3, 17, 9, 0)

    with pytest.raises(LimitReachedError):
        service.start_session("u1", "nb1", StudyMode.QUIZ)


@pytest.mark.parametrize("score,passed", [(7, False), (8, True), (10, True)])
def test_validation_score_threshold(service, make_notebook, stores, score, passed):
    make_notebook(count=2)
    runtime = service.start_session("u1", "nb1", StudyMode.SMART)
    assert finish(service, runtime) is SessionState.AWAITING_VALIDATION

    assert service.submit_validation(runtime.session_id, score) is SessionState.COMPLETE
    assert runtime.validated is passed
    assert (stores.records.get("u1", "c0") is not None) is passed


def test_finished_sessions_are_forgotten(service, make_notebook):
    make_notebook(count=1)
    runtime = service.start_session("u1", "nb1", StudyMode.FREE)
    assert service.get_session(runtime.session_id) is runtime

    finish(service, runtime)
    with pytest.raises(InvalidTransitionError):
        service.get_session(runtime.session_id)


def test_abandoned_session(service, make_notebook):
    make_notebook(count=2)
    runtime = service.start_session("u1", "nb1", StudyMode.FREE)
    service.abandon_session(runtime.session_id)

    with pytest.raises(InvalidTransitionError):
        service.record_response(runtime.session_id, "c0", ResponseQuality.MASTERED)
    assert service.get_availability("u1", "nb1").can_free_study


def test_smart_date_falls_back_to_next_review(service, make_notebook, stores, clock):
    make_notebook(count=1)
    due = clock.now + timedelta(days=4)
    stores.records.put("u1", "c0", LearningRecord(concept_id="c0", notebook_id="nb1", next_review_date=due))

    dates = service.get_next_eligible_dates("u1", "nb1")

    assert dates["next_smart_study_date"] == due
    assert dates["next_free_study_date"] is None


def test_dashboard_after_validated_session(service, make_notebook):
    make_notebook(count=3)
    runtime = service.start_session("u1", "nb1", StudyMode.SMART)
    finish(service, runtime)
    service.submit_validation(runtime.session_id, 9)

    dashboard = service.get_dashboard("u1", "nb1")

    assert dashboard["smart_studies_count"] == 3
    assert dashboard["general_score"] == 30
    assert dashboard["max_quiz_score"] == 10
    assert dashboard["stats"]["due_tomorrow"] == 3
    assert dashboard["availability"]["can_smart_study"] is False
    assert dashboard["availability"]["next_smart_study_date"] == datetime(2026, 3, 11)


def test_dashboard_uses_best_quiz_score(service, make_notebook, clock):
    make_notebook(count=4)

    assert service.get_dashboard("u1", "nb1")["max_quiz_score"] == 10

    quiz = service.start_session("u1", "nb1", StudyMode.QUIZ)
    clock.advance(seconds=200)
    finish(service, quiz)
    assert service.get_dashboard("u1", "nb1")["max_quiz_score"] == 1600

    # a slower quiz a week later does not lower the best score
    clock.advance(days=7)
    quiz = service.start_session("u1", "nb1", StudyMode.QUIZ)
    clock.advance(seconds=500)
    finish(service, quiz)
    assert service.get_dashboard("u1", "nb1")["max_quiz_score"] == 1600


def test_general_score_scales_with_best_quiz(service, make_notebook, clock):
    make_notebook(count=2)
    smart = service.start_session("u1", "nb1", StudyMode.SMART)
    finish(service, smart)
    service.submit_validation(smart.session_id, 10)

    quiz = service.start_session("u1", "nb1", StudyMode.QUIZ)
    clock.advance(seconds=590)
    finish(service, quiz)

    dashboard = service.get_dashboard("u1", "nb1")
    assert dashboard["max_quiz_score"] == 20
    assert dashboard["general_score"] == 40


def test_quiz_without_correct_answers_keeps_default(service, make_notebook):
    make_notebook(count=2)
    quiz = service.start_session("u1", "nb1", StudyMode.QUIZ)
    finish(service, quiz, ResponseQuality.REVIEW_LATER)
    finish(service, quiz)

    assert service.get_dashboard("u1", "nb1")["max_quiz_score"] == 10

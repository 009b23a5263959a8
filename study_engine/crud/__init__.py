from study_engine.crud.concept import list_concepts, add_concepts
from study_engine.crud.learning_record import (
    get_learning_record,
    get_learning_records,
    save_learning_record,
    delete_learning_record
)
from study_engine.crud.notebook_limits import get_notebook_limits, merge_notebook_limits
from study_engine.crud.quiz_stats import get_quiz_stats, record_quiz_result
from study_engine.crud.study_session import (
    create_study_session,
    get_study_session,
    update_study_session,
    get_study_sessions
)
from study_engine.crud.user_stats import get_user_stats, merge_user_stats

__all__ = [
    "list_concepts",
    "add_concepts",
    "get_learning_record",
    "get_learning_records",
    "save_learning_record",
    "delete_learning_record",
    "get_notebook_limits",
    "merge_notebook_limits",
    "get_quiz_stats",
    "record_quiz_result",
    "create_study_session",
    "get_study_session",
    "update_study_session",
    "get_study_sessions",
    "get_user_stats",
    "merge_user_stats",
]

from study_engine.models.concept import ConceptItem
from study_engine.models.learning_record import LearningRecordRow
from study_engine.models.notebook_limits import NotebookLimitsRow
from study_engine.models.quiz_stats import QuizStatsRow
from study_engine.models.study_session import StudySession
from study_engine.models.user_stats import UserStats

__all__ = [
    "ConceptItem",
    "LearningRecordRow",
    "NotebookLimitsRow",
    "QuizStatsRow",
    "StudySession",
    "UserStats"
]

from sqlalchemy.orm import Session
from study_engine.models import QuizStatsRow
from typing import Optional
from datetime import datetime

def get_quiz_stats(db: Session, user_id: str, notebook_id: str) -> Optional[QuizStatsRow]:
    """Get quiz results for a notebook"""
    return db.get(QuizStatsRow, (user_id, notebook_id))

def record_quiz_result(db: Session, user_id: str, notebook_id: str, score: float, taken_at: datetime) -> QuizStatsRow:
    """Store the latest score and keep the best one"""
    row = get_quiz_stats(db, user_id, notebook_id)
    if row is None:
        row = QuizStatsRow(user_id=user_id, notebook_id=notebook_id, max_score=0, quizzes_taken=0)
        db.add(row)

    row.max_score = max(row.max_score or 0, score)
    row.last_score = score
    row.quizzes_taken = (row.quizzes_taken or 0) + 1
    row.last_quiz_date = taken_at

    db.commit()
    db.refresh(row)
    return row

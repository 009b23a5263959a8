from sqlalchemy import Column, Integer, String, Float, DateTime
from study_engine.database import Base

class QuizStatsRow(Base):
    """Quiz results per (user, notebook)"""
    __tablename__ = "quiz_stats"

    user_id = Column(String, primary_key=True)
    notebook_id = Column(String, primary_key=True)

    max_score = Column(Float, nullable=False, default=0)
    last_score = Column(Float, nullable=False, default=0)
    quizzes_taken = Column(Integer, nullable=False, default=0)
    last_quiz_date = Column(DateTime)

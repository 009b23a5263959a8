from sqlalchemy import Column, Integer, String, Float, DateTime
from study_engine.database import Base

class LearningRecordRow(Base):
    """SM-3 spaced repetition tracking per (user, concept)"""
    __tablename__ = "learning_records"

    user_id = Column(String, primary_key=True)
    concept_id = Column(String, primary_key=True)
    notebook_id = Column(String, index=True)

    # SM-3 algorithm fields
    ease_factor = Column(Float, nullable=False, default=2.5)
    interval = Column(Integer, nullable=False, default=1)  # days until next review
    repetitions = Column(Integer, nullable=False, default=0)  # consecutive successful reviews
    quality = Column(Integer, nullable=False, default=0)  # last response, 0-5

    next_review_date = Column(DateTime, nullable=False)
    last_review_date = Column(DateTime)

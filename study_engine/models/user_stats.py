from sqlalchemy import Column, Integer, String, DateTime
from study_engine.database import Base

class UserStats(Base):
    """Study totals and streak per user"""
    __tablename__ = "user_stats"

    user_id = Column(String, primary_key=True)
    sessions_completed = Column(Integer, nullable=False, default=0)
    time_studied = Column(Integer, nullable=False, default=0)  # seconds
    concepts_reviewed = Column(Integer, nullable=False, default=0)
    current_streak = Column(Integer, nullable=False, default=0)
    longest_streak = Column(Integer, nullable=False, default=0)
    last_study_date = Column(DateTime)
    updated_at = Column(DateTime)

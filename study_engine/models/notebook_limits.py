from sqlalchemy import Column, Integer, String, Boolean, DateTime
from study_engine.database import Base

class NotebookLimitsRow(Base):
    """Daily/weekly usage per (user, notebook). Groups are written independently."""
    __tablename__ = "notebook_limits"

    user_id = Column(String, primary_key=True)
    notebook_id = Column(String, primary_key=True)

    last_free_study_date = Column(DateTime)
    free_study_count_today = Column(Integer, nullable=False, default=0)

    last_smart_study_date = Column(DateTime)
    smart_study_count_today = Column(Integer, nullable=False, default=0)
    last_quiz_passed = Column(Boolean, nullable=False, default=True)

    last_quiz_date = Column(DateTime)
    quiz_count_this_week = Column(Integer, nullable=False, default=0)
    week_start_date = Column(DateTime)

    updated_at = Column(DateTime)
